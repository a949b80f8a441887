"""API layer package for FastAPI application and route composition."""

from .application import USERS_PREFIX, create_api_application
from .state import AppState, api_create_state

__all__ = ["AppState", "USERS_PREFIX", "api_create_state", "create_api_application"]
