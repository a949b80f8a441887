"""Database health service implementations for connectivity checks."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from saas_backend.domain import HealthStatus
from saas_backend.errors import AppError

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by SQLAlchemy engine connectivity checks."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL for diagnostics.

        Returns:
            str: Rendered engine URL string with the password masked.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify database connectivity using a deterministic lightweight query.

        Returns:
            HealthStatus: Healthy status with connected database.

        Raises:
            AppError: Raised with kind `DATABASE` when connectivity check fails.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            raise AppError.database("database connectivity check failed") from error
        return HealthStatus(status="healthy", database="connected")
