# src/marketdesk/domain/errors.py
"""
Error taxonomy shared by the services, the REST layer and the realtime gateway.

Every business-rule violation is raised as a `DomainError` subclass at the
point of detection. The boundary (FastAPI exception handlers, socket `error`
events) reads `code`, `status_code` and the message; nothing below the
boundary knows about HTTP.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for all classified errors."""
    code: str = "INTERNAL_SERVER_ERROR"
    status_code: int = 500
    default_message: str = "Internal server error"
    retryable: bool = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ValidationError(DomainError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request"


# Name used by the chat registry for content-rule violations.
InvalidArgument = ValidationError


class Unauthorized(DomainError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(DomainError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(DomainError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found"


class InsufficientBalance(DomainError):
    code = "INSUFFICIENT_BALANCE"
    status_code = 400
    default_message = "Insufficient balance"


class InvalidState(DomainError):
    code = "INVALID_STATE"
    status_code = 409
    default_message = "Resource is not in the expected state"


class Conflict(DomainError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Resource already exists"


class Transient(DomainError):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Storage temporarily unavailable, please retry"
    retryable = True


class Internal(DomainError):
    pass
