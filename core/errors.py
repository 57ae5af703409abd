"""
Error taxonomy shared by the auth layer, services and routers.

Every error carries a machine-stable ``code``, a short human message and the
HTTP status class it maps to. Routers never build error bodies themselves;
the exception handlers in ``app.py`` render these uniformly.
"""
from typing import Optional


class AppError(Exception):
    """Base class for all expected application errors."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingCredential(AppError):
    """No Authorization header, or one that is not ``Bearer <token>``."""
    status_code = 401
    code = "missing_credential"
    default_message = "Missing token"


class InvalidCredential(AppError):
    """Signature, format, expiry or payload failure; deliberately one kind."""
    status_code = 401
    code = "invalid_credential"
    default_message = "Invalid token"


class Unauthenticated(AppError):
    """Identity has no resolvable role."""
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request payload"


class SequenceUnavailable(AppError):
    """Display id could not be allocated atomically after bounded retries."""
    status_code = 409
    code = "sequence_unavailable"
    default_message = "Could not allocate request id, please retry"


class ServiceUnavailable(AppError):
    """A backing service (the database) is not initialized yet."""
    status_code = 503
    code = "service_unavailable"
    default_message = "Service unavailable"
