"""Typed service errors rendered as {code, message, details}"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for failures surfaced to API callers"""
    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidPayloadError(ServiceError):
    status_code = 400
    code = "INVALID_PAYLOAD"


class UnauthorizedError(ServiceError):
    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(ServiceError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ServiceError):
    status_code = 409
    code = "CONFLICT"


class DuplicateOrderError(ServiceError):
    status_code = 409
    code = "DUPLICATE_ORDER"


class InvalidTransitionError(ServiceError):
    status_code = 400
    code = "INVALID_TRANSITION"


class InvalidOtpError(ServiceError):
    status_code = 400
    code = "INVALID_OTP"


class OtpRequestInvalidError(ServiceError):
    status_code = 400
    code = "OTP_REQUEST_INVALID"


class PhoneMismatchError(ServiceError):
    status_code = 400
    code = "PHONE_MISMATCH"


class OtpAttemptsExceededError(ServiceError):
    status_code = 400
    code = "OTP_ATTEMPTS_EXCEEDED"


class SubscriptionInactiveError(ServiceError):
    """Tenant is paywalled; distinct from auth failures"""
    status_code = 402
    code = "SUBSCRIPTION_INACTIVE"
