"""Configuration package for runtime settings, logging and startup validation."""

from .logging import logging_configure
from .settings import (
    DEFAULT_DATABASE_URL,
    AppSettings,
    SettingsLoadError,
    config_load_database_url,
    config_load_settings,
)

__all__ = [
    "AppSettings",
    "DEFAULT_DATABASE_URL",
    "SettingsLoadError",
    "config_load_settings",
    "config_load_database_url",
    "logging_configure",
]
