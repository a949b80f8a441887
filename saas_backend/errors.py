"""Closed application error taxonomy and HTTP response mapping.

Every failure that crosses a layer boundary is converted into one `AppError`
value. The error kind is a closed `ErrorKind` enum; each member fixes the
HTTP status, the machine-readable code and the display prefix, so
classification is total by construction.

Usage:
    raise AppError.not_found("User 7 not found")

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as error:
        raise error_from_exception(error) from error

    response = error_to_response(AppError.conflict("email already registered"))
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, final

import structlog
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from .config import SettingsLoadError

logger = structlog.stdlib.get_logger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"


class ErrorKind(Enum):
    """Closed set of error kinds with fixed status, code and display prefix."""

    BAD_REQUEST = (400, "BAD_REQUEST", "Bad request")
    UNAUTHORIZED = (401, "UNAUTHORIZED", "Unauthorized")
    FORBIDDEN = (403, "FORBIDDEN", "Forbidden")
    NOT_FOUND = (404, "NOT_FOUND", "Not found")
    CONFLICT = (409, "CONFLICT", "Conflict")
    VALIDATION_ERROR = (422, "VALIDATION_ERROR", "Validation error")
    INTERNAL = (500, "INTERNAL_ERROR", "Internal server error")
    DATABASE = (500, "DATABASE_ERROR", "Database error")
    CONFIG = (500, "CONFIG_ERROR", "Configuration error")
    SERIALIZATION = (400, "SERIALIZATION_ERROR", "Serialization error")

    def __init__(self, status_code: int, code: str, label: str):
        self.status_code = status_code
        self.code = code
        self.label = label


def _error_schema_omit_default(schema: dict[str, Any]) -> None:
    # `details` is left out of the body when absent, never sent as null.
    schema.pop("default", None)


class ErrorResponse(BaseModel):
    """Wire envelope for every error response.

    Attributes:
        error: Machine-readable error code.
        message: Human-readable display message.
        details: Optional structured payload, omitted from the body when absent.
    """

    error: str
    message: str
    details: Any = Field(default=None, json_schema_extra=_error_schema_omit_default)


@final
class AppError(Exception):
    """Application error carrying one closed `ErrorKind`.

    The class is final: new failure categories are added as `ErrorKind`
    members, never as subclasses. For `INTERNAL` errors the lower-layer
    failure lives on `__cause__` and is used for logging only.

    Attributes:
        kind: Error kind selecting status and code.
        detail: Human-readable detail appended to the kind's display prefix.
        details: Optional JSON-compatible payload for the wire response.
    """

    def __init__(self, kind: ErrorKind, detail: str, details: Any | None = None):
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.details = details

    def __str__(self) -> str:
        return f"{self.kind.label}: {self.detail}"

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.name}, detail={self.detail!r})"

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def message(self) -> str:
        return str(self)

    def with_details(self, details: Any) -> AppError:
        """Return a copy of this error with a structured details payload attached.

        Args:
            details: JSON-compatible payload for the wire response.

        Returns:
            AppError: New error sharing kind, detail and cause.
        """

        copied_error = AppError(self.kind, self.detail, details=details)
        copied_error.__cause__ = self.__cause__
        return copied_error

    @classmethod
    def bad_request(cls, detail: str) -> AppError:
        return cls(ErrorKind.BAD_REQUEST, detail)

    @classmethod
    def unauthorized(cls, detail: str) -> AppError:
        return cls(ErrorKind.UNAUTHORIZED, detail)

    @classmethod
    def forbidden(cls, detail: str) -> AppError:
        return cls(ErrorKind.FORBIDDEN, detail)

    @classmethod
    def not_found(cls, detail: str) -> AppError:
        return cls(ErrorKind.NOT_FOUND, detail)

    @classmethod
    def conflict(cls, detail: str) -> AppError:
        return cls(ErrorKind.CONFLICT, detail)

    @classmethod
    def validation(cls, detail: str) -> AppError:
        return cls(ErrorKind.VALIDATION_ERROR, detail)

    @classmethod
    def database(cls, detail: str) -> AppError:
        return cls(ErrorKind.DATABASE, detail)

    @classmethod
    def config(cls, detail: str) -> AppError:
        return cls(ErrorKind.CONFIG, detail)

    @classmethod
    def serialization(cls, detail: str) -> AppError:
        return cls(ErrorKind.SERIALIZATION, detail)

    @classmethod
    def internal(cls, detail: str, cause: BaseException | None = None) -> AppError:
        """Create an internal error, optionally chained to a lower-layer failure.

        Args:
            detail: Client-safe description of the failed operation.
            cause: Optional original failure kept for diagnostic logging.

        Returns:
            AppError: Error of kind `INTERNAL`.
        """

        internal_error = cls(ErrorKind.INTERNAL, detail)
        internal_error.__cause__ = cause
        return internal_error


def error_classify(error: AppError) -> tuple[int, str, str]:
    """Map an application error to its HTTP status, code and display message.

    Args:
        error: Application error value.

    Returns:
        tuple[int, str, str]: Status code, error code and display message.
    """

    return error.kind.status_code, error.kind.code, str(error)


def error_log(error: AppError) -> None:
    """Log an application error at a severity derived from its status.

    Server errors and auth failures are logged at `error` level, server
    errors with their cause chain. Other client errors are logged at
    `warning`. Write failures are reported by the stdlib handler and never
    reach the caller.

    Args:
        error: Application error value.
    """

    status_code, code, message = error_classify(error)
    if status_code >= 500:
        logger.error("Server error", error_code=code, status_code=status_code, message=message, exc_info=error)
    elif status_code in (401, 403):
        logger.error("Auth error", error_code=code, status_code=status_code, message=message)
    else:
        logger.warning("Client error", error_code=code, status_code=status_code, message=message)


def error_to_response(error: AppError) -> JSONResponse:
    """Log the error, then render it as the standard JSON error response.

    Args:
        error: Application error value.

    Returns:
        JSONResponse: Response with the kind's status code and error envelope.
            `details` is omitted from the body unless attached.
    """

    error_log(error)
    status_code, code, message = error_classify(error)
    payload: dict[str, Any] = {"error": code, "message": message}
    if error.details is not None:
        payload["details"] = error.details
    return JSONResponse(content=payload, status_code=status_code)


def error_wrap_with_context(error: BaseException, note: str) -> AppError:
    """Reclassify a lower-layer failure as `INTERNAL` with a context note.

    Args:
        error: Original failure, preserved as `__cause__` for logging.
        note: Human-readable context describing the failed operation.

    Returns:
        AppError: Internal error whose display message includes the note.
    """

    return AppError.internal(note, cause=error)


def error_from_exception(error: BaseException) -> AppError:
    """Convert an arbitrary failure into exactly one taxonomy variant.

    Args:
        error: Failure observed at a layer boundary.

    Returns:
        AppError: Classified error chained to the original failure.
    """

    if isinstance(error, AppError):
        return error

    if isinstance(error, SettingsLoadError):
        converted_error = AppError.config("configuration could not be loaded")
    elif isinstance(error, json.JSONDecodeError):
        converted_error = AppError.serialization(f"invalid JSON at line {error.lineno} column {error.colno}")
    elif isinstance(error, ValidationError):
        converted_error = AppError.serialization(f"payload does not match {error.title}")
    elif isinstance(error, NoResultFound):
        converted_error = AppError.not_found("resource not found")
    elif isinstance(error, IntegrityError) and _error_is_unique_violation(error):
        converted_error = AppError.conflict("duplicate entry")
    elif isinstance(error, SQLAlchemyError):
        converted_error = AppError.database("database operation failed")
    else:
        return error_wrap_with_context(error, "unexpected failure")

    converted_error.__cause__ = error
    return converted_error


def _error_is_unique_violation(error: IntegrityError) -> bool:
    original_error = error.orig
    sqlstate = getattr(original_error, "sqlstate", None) or getattr(original_error, "pgcode", None)
    if sqlstate == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "UNIQUE constraint failed" in str(original_error)
