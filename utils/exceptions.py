"""
Service-level error taxonomy.

Raised by the token service and the auth blueprint; rendered by
api.errors into the uniform error envelope.
"""
from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class RequestValidationError(ServiceError):
    """Missing or malformed input."""
    status_code = 400
    error = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthenticationError(ServiceError):
    """Bad credentials or an invalid, expired or mismatched token."""
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Authentication failed"


class NotFoundError(ServiceError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ServiceError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Conflict"
