"""
Custom Exception Classes.

Application exceptions are converted to HTTP responses by the global
exception handler registered in ``main.py``. Per-record ingestion problems
are never raised; they are reported as skipped entries instead.
"""

from typing import Any


class AppException(Exception):
    """
    Base exception for all application-specific errors.

    The global exception handler renders these as ``{"message": ...}``
    with the exception's status code.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "APP_ERROR",
        status_code: int = 500,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the JSON body returned to the client."""
        return {"message": self.message}


class UnauthorizedError(AppException):
    """Authentication required or failed (401)."""

    def __init__(
        self,
        message: str = "Unauthorized: Invalid api-key header",
        error_code: str = "UNAUTHORIZED",
    ) -> None:
        super().__init__(message=message, error_code=error_code, status_code=401)
