"""Database engine bootstrap: pooled connection, connectivity check, migrations.

This module centralizes database connectivity primitives to enforce the
db-layer boundary for all SQLAlchemy usage. Startup failures surface as
`AppError` of kind `DATABASE`; there are no retries.
"""

import structlog
from alembic import command
from alembic.util import CommandError
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from saas_backend.errors import AppError

from .migrations import db_build_migration_config

logger = structlog.stdlib.get_logger(__name__)

_LEGACY_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def db_normalize_url(database_url: str) -> str:
    """Rewrite bare PostgreSQL schemes to the psycopg SQLAlchemy dialect.

    Args:
        database_url: Database URL as configured.

    Returns:
        str: URL accepted by SQLAlchemy `create_engine`.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    stripped_url = database_url.strip()
    if not stripped_url:
        raise ValueError("database_url must not be blank")

    for legacy_scheme in _LEGACY_POSTGRES_SCHEMES:
        if stripped_url.startswith(legacy_scheme):
            return "postgresql+psycopg://" + stripped_url[len(legacy_scheme):]
    return stripped_url


def db_create_engine(database_url: str, pool_min_size: int = 5, pool_max_size: int = 100) -> Engine:
    """Create the SQLAlchemy engine with a bounded connection pool.

    The pool keeps `pool_min_size` persistent connections and opens at most
    `pool_max_size` in total.

    Args:
        database_url: Database URL, legacy `postgres://` accepted.
        pool_min_size: Persistent pool size.
        pool_max_size: Upper bound on open connections.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the URL is blank or pool bounds are inverted.
    """

    if pool_min_size < 1 or pool_max_size < pool_min_size:
        raise ValueError("pool bounds must satisfy 1 <= pool_min_size <= pool_max_size")

    return create_engine(
        db_normalize_url(database_url),
        pool_size=pool_min_size,
        max_overflow=pool_max_size - pool_min_size,
        pool_pre_ping=True,
    )


def db_run_migrations(engine: Engine) -> None:
    """Apply all pending schema migrations up to head on one transaction.

    Args:
        engine: Engine connected to the migration target.

    Raises:
        AppError: Raised with kind `DATABASE` when a migration fails.
    """

    migration_config = db_build_migration_config(engine.url.render_as_string(hide_password=False))
    logger.info("Running database migrations...")
    try:
        with engine.begin() as connection:
            migration_config.attributes["connection"] = connection
            command.upgrade(migration_config, "head")
    except (CommandError, SQLAlchemyError) as error:
        raise AppError.database("schema migration failed") from error
    logger.info("Database migrations complete")


def db_connect(database_url: str, pool_min_size: int = 5, pool_max_size: int = 100) -> Engine:
    """Open the pooled database connection and migrate the schema.

    Args:
        database_url: Database URL.
        pool_min_size: Persistent pool size.
        pool_max_size: Upper bound on open connections.

    Returns:
        Engine: Verified, migrated engine shared by all request handlers.

    Raises:
        AppError: Raised with kind `DATABASE` when the engine cannot be created,
            the database is unreachable, or a migration fails.
    """

    try:
        engine = db_create_engine(database_url, pool_min_size=pool_min_size, pool_max_size=pool_max_size)
    except (SQLAlchemyError, ImportError, ValueError) as error:
        raise AppError.database("database engine could not be created") from error

    connection_label = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as error:
        engine.dispose()
        raise AppError.database(f"could not connect to {connection_label}") from error
    logger.info("Database connection established", target=connection_label)

    try:
        db_run_migrations(engine)
    except AppError:
        engine.dispose()
        raise
    return engine
