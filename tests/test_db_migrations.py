"""Regression tests for database bootstrap and migration-on-connect."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from saas_backend.db import SQLAlchemyDatabaseHealthService, db_connect, db_create_engine, db_normalize_url
from saas_backend.errors import AppError, ErrorKind


def _sqlite_url(database_path: Path) -> str:
    return f"sqlite:///{database_path}"


def test_db_connect_applies_migrations_and_is_idempotent(tmp_path: Path) -> None:
    """Apply migrations on a fresh DB and verify idempotent re-run.

    Returns:
        None: Assertions validate migration behavior.

    Raises:
        AssertionError: Raised when expected migration artifacts are missing.
    """

    database_url = _sqlite_url(tmp_path / "bootstrap.db")

    first_engine = db_connect(database_url)
    first_engine.dispose()
    second_engine = db_connect(database_url)
    try:
        inspector = inspect(second_engine)
        assert {"users", "alembic_version"}.issubset(set(inspector.get_table_names()))
        column_names = {column["name"] for column in inspector.get_columns("users")}
        assert column_names == {"id", "email", "name", "created_at_utc", "updated_at_utc"}

        with second_engine.connect() as connection:
            versions = connection.execute(text("SELECT version_num FROM alembic_version")).scalars().all()
        assert versions == ["20261019_01"]
    finally:
        second_engine.dispose()


def test_db_connect_configures_bounded_pool(tmp_path: Path) -> None:
    engine = db_connect(_sqlite_url(tmp_path / "pool.db"), pool_min_size=2, pool_max_size=7)
    try:
        assert engine.pool.size() == 2
        assert engine.pool._max_overflow == 5  # pylint: disable=protected-access
    finally:
        engine.dispose()


def test_db_connect_unreachable_database_raises_database_error(tmp_path: Path) -> None:
    """Fail fast with `DATABASE` kind when the database cannot be opened.

    Returns:
        None: Assertions validate startup failure classification.

    Raises:
        AssertionError: Raised when the failure is not classified as database error.
    """

    unreachable_url = _sqlite_url(tmp_path / "missing-directory" / "app.db")

    with pytest.raises(AppError) as error_info:
        db_connect(unreachable_url)

    assert error_info.value.kind is ErrorKind.DATABASE
    assert error_info.value.status_code == 500
    assert error_info.value.__cause__ is not None


def test_db_connect_unknown_driver_raises_database_error() -> None:
    with pytest.raises(AppError) as error_info:
        db_connect("nosuchdialect://localhost/app")

    assert error_info.value.code == "DATABASE_ERROR"


def test_db_create_engine_rejects_inverted_pool_bounds() -> None:
    with pytest.raises(ValueError):
        db_create_engine("sqlite:///unused.db", pool_min_size=10, pool_max_size=5)


@pytest.mark.parametrize(
    ("configured_url", "expected_url"),
    [
        ("postgres://u:p@db:5432/app", "postgresql+psycopg://u:p@db:5432/app"),
        ("postgresql://u:p@db:5432/app", "postgresql+psycopg://u:p@db:5432/app"),
        ("postgresql+psycopg://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
        ("  sqlite:///local.db ", "sqlite:///local.db"),
    ],
)
def test_db_normalize_url_rewrites_bare_postgres_schemes(configured_url: str, expected_url: str) -> None:
    assert db_normalize_url(configured_url) == expected_url


def test_db_normalize_url_rejects_blank_value() -> None:
    with pytest.raises(ValueError):
        db_normalize_url("   ")


def test_db_health_service_reports_connected_database(tmp_path: Path) -> None:
    engine = db_connect(_sqlite_url(tmp_path / "health.db"))
    try:
        health_service = SQLAlchemyDatabaseHealthService(engine=engine)

        health_status = health_service.db_check_health()

        assert health_status.status == "healthy"
        assert health_status.database == "connected"
    finally:
        engine.dispose()


def test_db_health_service_raises_database_error_when_unreachable(tmp_path: Path) -> None:
    """Raise `DATABASE` kind when the round-trip query fails.

    Returns:
        None: Assertions validate health failure classification.

    Raises:
        AssertionError: Raised when the failure is not classified as database error.
    """

    engine = db_create_engine(_sqlite_url(tmp_path / "missing-directory" / "app.db"))
    health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    try:
        with pytest.raises(AppError) as error_info:
            health_service.db_check_health()
    finally:
        engine.dispose()

    assert error_info.value.kind is ErrorKind.DATABASE
    assert "missing-directory" in health_service.db_connection_label()
