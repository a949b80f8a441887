"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import DatabaseHealthPort, UserRepositoryPort
from .migrations import db_build_migration_config
from .session import db_connect, db_create_engine, db_normalize_url, db_run_migrations
from .users import SQLAlchemyUserService

__all__ = [
	"DatabaseHealthPort",
	"UserRepositoryPort",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyUserService",
	"db_build_migration_config",
	"db_connect",
	"db_create_engine",
	"db_normalize_url",
	"db_run_migrations",
]
