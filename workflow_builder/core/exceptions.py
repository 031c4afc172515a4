"""Common exception base classes."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Application base exception.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code for API responses.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "APP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an HTTP error body."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


__all__ = ["AppError"]
