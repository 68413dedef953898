"""Domain error taxonomy and its HTTP mapping"""

from typing import Any, Dict


class ServiceError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    reason: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.reason, "detail": self.message}


class ValidationError(ServiceError):
    status_code = 400
    reason = "validation_error"


class InvalidCodeError(ValidationError):
    reason = "invalid_code"


class NotFoundError(ServiceError):
    status_code = 404
    reason = "not_found"


class ConflictError(ServiceError):
    """Duplicate or ambiguous payment application"""
    status_code = 409
    reason = "conflict"


class OrderExpiredError(ConflictError):
    reason = "order_expired"


class ChallengeExpiredError(ServiceError):
    status_code = 410
    reason = "expired"


class SignatureError(ServiceError):
    """Webhook body failed integrity verification"""
    status_code = 400
    reason = "invalid_signature"


class UpstreamUnavailable(ServiceError):
    """Payment gateway or notification channel failure"""
    status_code = 503
    reason = "service_unavailable"
