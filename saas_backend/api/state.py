"""Shared application state handed to the router factory."""

from dataclasses import dataclass

from sqlalchemy import Engine

from saas_backend.db import (
    DatabaseHealthPort,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyUserService,
    UserRepositoryPort,
)


@dataclass(frozen=True)
class AppState:
    """Read-only handles shared by every request handler for the process lifetime.

    Attributes:
        db_health_service: Database connectivity check service.
        user_repository: Users persistence service.
        engine: Underlying pooled engine, absent when built from test doubles.
    """

    db_health_service: DatabaseHealthPort
    user_repository: UserRepositoryPort
    engine: Engine | None = None


def api_create_state(engine: Engine) -> AppState:
    """Build shared state on top of one migrated engine.

    Args:
        engine: Verified SQLAlchemy engine.

    Returns:
        AppState: Frozen state with all SQLAlchemy-backed services.

    Raises:
        ValueError: Raised when engine is None.
    """

    if engine is None:
        raise ValueError("engine must not be None")
    return AppState(
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        user_repository=SQLAlchemyUserService(engine=engine),
        engine=engine,
    )
