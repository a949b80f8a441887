"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
Implementations raise `AppError` so callers never see driver exceptions.
"""

from typing import Protocol

from saas_backend.domain import HealthStatus, UserRecord


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.
        """

    def db_check_health(self) -> HealthStatus:
        """Run a trivial round-trip query against the database.

        Returns:
            HealthStatus: Healthy status payload.

        Raises:
            AppError: Raised with kind `DATABASE` when the database cannot be reached.
        """


class UserRepositoryPort(Protocol):
    """Port definition for user persistence."""

    def db_user_list(self, limit: int, offset: int) -> list[UserRecord]:
        """Return users ordered by id.

        Args:
            limit: Max rows.
            offset: Rows to skip.

        Returns:
            list[UserRecord]: Page of users.
        """

    def db_user_get(self, user_id: int) -> UserRecord:
        """Return one user.

        Raises:
            AppError: Raised with kind `NOT_FOUND` when the user does not exist.
        """

    def db_user_create(self, email: str, name: str) -> UserRecord:
        """Insert a user.

        Raises:
            AppError: Raised with kind `CONFLICT` when the email is taken.
        """

    def db_user_update(self, user_id: int, email: str | None, name: str | None) -> UserRecord:
        """Update provided user fields.

        Raises:
            AppError: Raised with kind `NOT_FOUND` or `CONFLICT`.
        """

    def db_user_delete(self, user_id: int) -> None:
        """Delete a user.

        Raises:
            AppError: Raised with kind `NOT_FOUND` when the user does not exist.
        """
