"""Request and response models for the users resource."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from saas_backend.domain import UserRecord


def _validate_email_value(value: str) -> str:
    stripped_value = value.strip()
    local_part, separator, domain = stripped_value.partition("@")
    if not separator or not local_part or "." not in domain:
        raise ValueError("email must look like local@domain.tld")
    return stripped_value.lower()


class UserCreate(BaseModel):
    """Payload for creating a user."""

    email: str = Field(min_length=3, max_length=320)
    name: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _validate_email_value(value)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("name must not be blank")
        return stripped_value


class UserUpdate(BaseModel):
    """Partial update payload; omitted fields stay unchanged."""

    email: str | None = Field(default=None, min_length=3, max_length=320)
    name: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_email_value(value)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("name must not be blank")
        return stripped_value


class UserRead(BaseModel):
    """User representation returned by the API."""

    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserRead":
        return cls(
            id=record.user_id,
            email=record.email,
            name=record.name,
            created_at=record.created_at_utc,
            updated_at=record.updated_at_utc,
        )
