"""Alembic migration scripts and programmatic configuration.

The migration scripts live alongside this module so they ship with the
package; no alembic.ini is needed at runtime.
"""

from pathlib import Path

from alembic.config import Config


def db_build_migration_config(database_url: str) -> Config:
    """Build an Alembic config pointing at the packaged migration scripts.

    Args:
        database_url: SQLAlchemy URL for the migration target.

    Returns:
        Config: Alembic config with script location and URL set.
    """

    migration_config = Config()
    migration_config.set_main_option("script_location", str(Path(__file__).parent))
    # ConfigParser interpolation treats `%` specially.
    migration_config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return migration_config
