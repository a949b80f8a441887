"""SQLAlchemy Core table definitions mirrored by the Alembic migrations."""

from sqlalchemy import Column, DateTime, Index, Integer, MetaData, String, Table, UniqueConstraint, func

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False),
    Column("name", String(255), nullable=False),
    Column("created_at_utc", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at_utc", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("email", name="uq_users_email"),
    Index("ix_users_created_at_utc", "created_at_utc"),
)
