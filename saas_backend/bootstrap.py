"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI
from sqlalchemy import Engine

from saas_backend.api import AppState, api_create_state, create_api_application
from saas_backend.config import AppSettings, config_load_settings
from saas_backend.db import db_connect
from saas_backend.lifecycle import ServerLifecycle


def bootstrap_connect_database(settings: AppSettings) -> Engine:
    """Open the pooled database connection and apply pending migrations.

    Args:
        settings: Validated runtime settings.

    Returns:
        Engine: Migrated engine shared by request handlers.

    Raises:
        AppError: Raised with kind `DATABASE` when connection or migration fails.
    """

    return db_connect(
        settings.database_url,
        pool_min_size=settings.db_pool_min_size,
        pool_max_size=settings.db_pool_max_size,
    )


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
        AppError: Raised with kind `DATABASE` when the database bootstrap fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = bootstrap_connect_database(resolved_settings)
    state: AppState = api_create_state(engine)
    return create_api_application(state=state, settings=resolved_settings)


def bootstrap_create_lifecycle(settings: AppSettings, application: FastAPI) -> ServerLifecycle:
    """Build the lifecycle controller for the configured listen address.

    Args:
        settings: Validated runtime settings.
        application: Composed FastAPI application.

    Returns:
        ServerLifecycle: Controller in the `STARTING` state.
    """

    return ServerLifecycle(
        application,
        host=settings.host,
        port=settings.port,
        drain_timeout_seconds=settings.shutdown_timeout_seconds,
    )
