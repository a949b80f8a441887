"""FastAPI application factory.

This module composes the health and users route groups, the trace
middleware and the error boundary into one application.
"""

from fastapi import FastAPI

from saas_backend.config import AppSettings

from .exception_handlers import api_register_exception_handlers
from .middleware import RequestTraceMiddleware
from .routers import api_create_health_router, api_create_users_router
from .state import AppState

USERS_PREFIX = "/api/users"


def create_api_application(state: AppState, settings: AppSettings | None = None) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        state: Shared read-only state for request handlers.
        settings: Optional validated settings; production hides the docs UI.

    Returns:
        FastAPI: Framework application with routes, middleware and error handlers.

    Raises:
        ValueError: Raised when state is missing.
    """

    if state is None:
        raise ValueError("state must not be None")

    docs_enabled = settings is None or not settings.is_production
    application = FastAPI(
        title="SaaS Backend",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
    )
    application.state.app_state = state

    application.include_router(api_create_health_router(db_health_service=state.db_health_service))
    application.include_router(
        api_create_users_router(user_repository=state.user_repository),
        prefix=USERS_PREFIX,
    )

    application.add_middleware(RequestTraceMiddleware)
    api_register_exception_handlers(application)

    return application
