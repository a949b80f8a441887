"""SQLAlchemy Core repository for the users resource."""

from __future__ import annotations

from sqlalchemy import Engine, Row, delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from saas_backend.domain import UserRecord
from saas_backend.errors import AppError, ErrorKind, error_from_exception

from .interfaces import UserRepositoryPort
from .schema import users


class SQLAlchemyUserService(UserRepositoryPort):
    """User repository backed by the shared SQLAlchemy engine.

    Driver failures are converted to `AppError` here: unique email
    violations become `CONFLICT`, everything else `DATABASE`.
    """

    def __init__(self, engine: Engine):
        """Initialize user repository.

        Args:
            engine: SQLAlchemy engine shared across request handlers.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_user_list(self, limit: int, offset: int) -> list[UserRecord]:
        statement = select(users).order_by(users.c.id).limit(limit).offset(offset)
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).all()
        except SQLAlchemyError as error:
            raise error_from_exception(error) from error
        return [_db_user_record_from_row(row) for row in rows]

    def db_user_get(self, user_id: int) -> UserRecord:
        try:
            with self._engine.connect() as connection:
                row = connection.execute(select(users).where(users.c.id == user_id)).first()
        except SQLAlchemyError as error:
            raise error_from_exception(error) from error
        if row is None:
            raise AppError.not_found(f"User {user_id} not found")
        return _db_user_record_from_row(row)

    def db_user_create(self, email: str, name: str) -> UserRecord:
        """Insert a user and return the stored row.

        Args:
            email: Unique email address.
            name: Display name.

        Returns:
            UserRecord: Persisted user including generated id and timestamps.

        Raises:
            AppError: Raised with kind `CONFLICT` when the email is already registered.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(insert(users).values(email=email, name=name))
                user_id = result.inserted_primary_key[0]
                row = connection.execute(select(users).where(users.c.id == user_id)).one()
        except SQLAlchemyError as error:
            raise _db_user_convert_error(error, email) from error
        return _db_user_record_from_row(row)

    def db_user_update(self, user_id: int, email: str | None, name: str | None) -> UserRecord:
        """Update the provided fields of one user.

        Args:
            user_id: Target user id.
            email: Optional new email address.
            name: Optional new display name.

        Returns:
            UserRecord: Updated user row.

        Raises:
            AppError: Raised with kind `NOT_FOUND` when the user is missing,
                `CONFLICT` when the new email is taken.
        """

        changes: dict[str, object] = {"updated_at_utc": func.now()}
        if email is not None:
            changes["email"] = email
        if name is not None:
            changes["name"] = name

        try:
            with self._engine.begin() as connection:
                result = connection.execute(update(users).where(users.c.id == user_id).values(**changes))
                if result.rowcount == 0:
                    raise AppError.not_found(f"User {user_id} not found")
                row = connection.execute(select(users).where(users.c.id == user_id)).one()
        except SQLAlchemyError as error:
            raise _db_user_convert_error(error, email) from error
        return _db_user_record_from_row(row)

    def db_user_delete(self, user_id: int) -> None:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(delete(users).where(users.c.id == user_id))
        except SQLAlchemyError as error:
            raise error_from_exception(error) from error
        if result.rowcount == 0:
            raise AppError.not_found(f"User {user_id} not found")


def _db_user_record_from_row(row: Row) -> UserRecord:
    return UserRecord(
        user_id=row.id,
        email=row.email,
        name=row.name,
        created_at_utc=row.created_at_utc,
        updated_at_utc=row.updated_at_utc,
    )


def _db_user_convert_error(error: SQLAlchemyError, email: str | None) -> AppError:
    converted_error = error_from_exception(error)
    if converted_error.kind is ErrorKind.CONFLICT and email is not None:
        conflict_error = AppError.conflict(f"email {email} is already registered")
        conflict_error.__cause__ = error
        return conflict_error
    return converted_error
