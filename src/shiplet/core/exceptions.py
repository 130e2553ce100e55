"""
Custom exceptions for the Shiplet backend.

Provides structured error handling with appropriate HTTP status codes
and the JSON error envelope returned to clients.
"""

from typing import Any, Dict, Optional


class ShipletException(Exception):
    """Base exception for the Shiplet backend."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(ShipletException):
    """Raised when a required configuration value is missing."""

    def __init__(self, message: str = "Server configuration error") -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="configuration_error",
        )


class AuthenticationError(ShipletException):
    """Raised when the API key is missing or does not match."""

    def __init__(self, message: str = "Unauthorized: Invalid API key") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="authentication_error",
        )


class ValidationError(ShipletException):
    """Raised when a signup record is missing or has a malformed required field."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="validation_error",
            details=details,
        )


class UnknownUserTypeError(ShipletException):
    """Raised when the signup discriminator names no known record kind."""

    def __init__(self, user_type: Any = None) -> None:
        super().__init__(
            message="Invalid user type specified",
            status_code=400,
            error_code="invalid_user_type",
            details={"user_type": user_type},
        )


class MalformedBodyError(ShipletException):
    """Raised when the request body cannot be decoded into an object."""

    def __init__(self, message: str = "Malformed request body") -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="malformed_body",
        )


class PayloadTooLargeError(ShipletException):
    """Raised when the request body exceeds the configured cap."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            message="Request body too large",
            status_code=413,
            error_code="payload_too_large",
            details={"limit_bytes": limit},
        )


class StoreConnectivityError(ShipletException):
    """Raised when the record store is used before a connection exists."""

    def __init__(self, message: str = "Record store is not connected") -> None:
        super().__init__(
            message=message,
            status_code=503,
            error_code="store_unavailable",
        )


def error_content(message: str, detail: Optional[str], production: bool) -> Dict[str, Any]:
    """
    Build the JSON error envelope.

    The ``error`` detail is only exposed outside production.
    """
    content: Dict[str, Any] = {"success": False, "message": message}
    if detail is not None and not production:
        content["error"] = detail
    return content
