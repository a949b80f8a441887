"""Health endpoint router composition for liveness and database checks."""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, PlainTextResponse

from saas_backend.db import DatabaseHealthPort
from saas_backend.errors import AppError, ErrorResponse

logger = structlog.stdlib.get_logger(__name__)


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create health-check router with liveness and database connectivity routes.

    Only `/health/db` touches the database; `/` and `/health` answer even
    when the database is unreachable.

    Args:
        db_health_service: DB-layer health service interface.

    Returns:
        APIRouter: Router exposing `/`, `/health`, `/health/db` and example endpoints.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/", response_class=PlainTextResponse)
    def api_root() -> str:
        return "SaaS Backend API"

    @router.get("/health", response_class=PlainTextResponse)
    def api_health_status() -> str:
        """Return process liveness without touching dependencies."""

        return "OK"

    @router.get("/health/db", responses={500: {"model": ErrorResponse}})
    def api_health_database() -> JSONResponse:
        """Return database connectivity state.

        Returns:
            JSONResponse: `{"status": "healthy", "database": "connected"}` with HTTP 200.

        Raises:
            AppError: Raised with kind `DATABASE` when the round-trip query fails.
        """

        try:
            db_health = db_health_service.db_check_health()
        except AppError:
            logger.warning("Database health check failed", target=db_health_service.db_connection_label())
            raise
        payload = {"status": db_health.status, "database": db_health.database}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/example/success", response_class=PlainTextResponse)
    def api_example_success() -> str:
        return "Success"

    @router.get("/example/error", responses={422: {"model": ErrorResponse}})
    def api_example_error() -> None:
        raise AppError.validation("Example validation error")

    @router.get("/example/result", responses={500: {"model": ErrorResponse}})
    def api_example_result() -> None:
        """Demonstrate converting a failed operation into an internal error."""

        raise AppError.internal("Operation failed: Something went wrong")

    return router
