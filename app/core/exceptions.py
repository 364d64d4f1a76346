"""
API Error Taxonomy

Every error the API reports deliberately derives from ApiError, which
carries the HTTP status and the message rendered as
``{"error": true, "message": ...}`` by the handler in app.main.
"""

from typing import Optional


class ApiError(Exception):
    """Base class for errors mapped to a JSON error response."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": True, "message": self.message}


class Unauthenticated(ApiError):
    """Token missing, malformed, expired or signature-invalid."""
    status_code = 401
    default_message = "unauthorized access"


class Forbidden(ApiError):
    """Role check failed or the caller asked for someone else's data."""
    status_code = 403
    default_message = "forbidden access"


class InvalidArgument(ApiError):
    """Malformed identifier or body shape."""
    status_code = 400
    default_message = "invalid argument"


class NotFound(ApiError):
    status_code = 404
    default_message = "not found"


class UpstreamFailure(ApiError):
    """The document store or the payment processor rejected a call."""
    status_code = 500
    default_message = "upstream service failure"


class StoreError(UpstreamFailure):
    default_message = "document store operation failed"


class PaymentProviderError(UpstreamFailure):
    status_code = 502
    default_message = "payment processor rejected the request"


__all__ = [
    "ApiError",
    "Unauthenticated",
    "Forbidden",
    "InvalidArgument",
    "NotFound",
    "UpstreamFailure",
    "StoreError",
    "PaymentProviderError",
]
