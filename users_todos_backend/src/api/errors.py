from __future__ import annotations

from typing import Any, Optional


class StorageError(Exception):
    """
    Base class for failures raised by a repository backend.

    Backends translate their driver-specific exceptions into this hierarchy so
    route handlers can react to the failure kind without knowing the driver.
    """

    def __init__(self, message: str, *, code: Optional[str] = None, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.detail = detail

    def to_details(self) -> dict:
        """Raw error description echoed in 500 responses when debug errors are enabled."""
        return {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class ConflictError(StorageError):
    """A unique constraint rejected the write (e.g. duplicate email)."""


class MissingReferenceError(StorageError):
    """A foreign key rejected the write (e.g. todo for an unknown user)."""


# PUBLIC_INTERFACE
class ApiError(Exception):
    """
    HTTP-level failure rendered by the application as an error envelope.

    Attributes:
        status_code: HTTP status to return.
        message: Human-readable message placed in the envelope.
        details: Optional extra payload placed in the envelope's `details` field.
    """

    def __init__(self, status_code: int, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details
