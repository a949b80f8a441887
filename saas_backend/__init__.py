"""SaaS backend starter: HTTP routing, configuration, error mapping and database bootstrap."""

from .errors import AppError, ErrorKind

__all__ = ["AppError", "ErrorKind"]
