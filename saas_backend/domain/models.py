"""Typed domain models shared across runtime layers.

This module provides simple data contracts for cross-layer communication
between the db package and the HTTP surface.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        database: Database connectivity state.
    """

    status: str
    database: str


@dataclass(frozen=True)
class UserRecord:
    """Persisted user row.

    Attributes:
        user_id: Surrogate primary key.
        email: Unique email address.
        name: Display name.
        created_at_utc: Creation timestamp in UTC.
        updated_at_utc: Last modification timestamp in UTC.
    """

    user_id: int
    email: str
    name: str
    created_at_utc: datetime
    updated_at_utc: datetime
