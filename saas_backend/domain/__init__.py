"""Domain models used across application layer boundaries."""

from .models import HealthStatus, UserRecord

__all__ = ["HealthStatus", "UserRecord"]
