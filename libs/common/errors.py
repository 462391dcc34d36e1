"""Application error taxonomy.

Handlers in ``libs.common.error_handler`` render every ``AppError`` as
``{"message": ..., "code": ...}`` with the error's status code.
"""

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Could not validate credentials"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class PayloadTooLargeError(AppError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    default_message = "Request body too large"


class ServiceUnavailableError(AppError):
    status_code = 503
    code = "DB_CONNECTION_FAILED"
    default_message = "Database service is unavailable. Please configure DATABASE_URL."


class InternalError(AppError):
    pass
