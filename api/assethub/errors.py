"""Application error taxonomy.

Every error surfaced to API consumers carries a stable machine-readable
code and a human-readable message. Services raise these directly and the
handlers registered in ``assethub.main`` render them.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors rendered to API clients."""

    code = "SERVER_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Request conflicts with current state"


class RateLimitExceededError(AppError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, message: Optional[str] = None, retry_after: int = 0, details: Any = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class ServerError(AppError):
    pass
