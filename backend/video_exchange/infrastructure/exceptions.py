"""
Custom Exceptions for the Video Exchange API

Hierarchical exception classes for proper error handling across layers.
Every domain rule violation maps to one category; the API layer turns the
category into an HTTP status (see main.py).
"""

from typing import Optional, Dict, Any, List


class VideoExchangeError(Exception):
    """Base exception for all Video Exchange errors."""

    category = "internal"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "category": self.category,
            "message": self.message,
            "details": self.details
        }


class ValidationError(VideoExchangeError):
    """Raised when input validation fails."""

    category = "validation"

    @classmethod
    def from_messages(cls, messages: List[str]) -> "ValidationError":
        """Aggregate several field errors into one error, one message per line."""
        return cls("\n".join(messages), details={"errors": messages})


class NotFoundError(VideoExchangeError):
    """Raised when a requested resource is not found."""

    category = "not_found"

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if resource:
            details["resource"] = resource
        super().__init__(message, details, original_error)


class ConflictError(VideoExchangeError):
    """Raised when a write would duplicate an existing resource."""

    category = "conflict"


class QuotaExceededError(ConflictError):
    """Raised when an operation would exceed a plan limit."""

    def __init__(
        self,
        message: str,
        quota: str,
        plan: str,
        limit: int,
        current: Optional[int] = None,
    ):
        details = {"quota": quota, "plan": plan, "limit": limit}
        if current is not None:
            details["current"] = current
        super().__init__(message, details)


class AuthorizationError(VideoExchangeError):
    """Raised when the actor is not allowed to act on a resource."""

    category = "authorization"


class StateConflictError(VideoExchangeError):
    """Raised when an action requires a state the resource is no longer in."""

    category = "state_conflict"

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        expected_state: Optional[str] = None,
    ):
        details = {}
        if current_state:
            details["current_state"] = current_state
        if expected_state:
            details["expected_state"] = expected_state
        super().__init__(message, details)


class ExternalServiceError(VideoExchangeError):
    """Raised when an external provider (storage, moderation) fails."""

    category = "external_service"

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if service:
            details["service"] = service
        super().__init__(message, details, original_error)


class BillingUnavailableError(ExternalServiceError):
    """Raised when the billing provider cannot be reached or times out."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, service="billing", original_error=original_error)


class PaymentProviderError(ExternalServiceError):
    """
    Raised when the payment gateway rejects an operation with its own status.

    The provider status is passed through so callers can tell a declined
    card apart from a failure on our side.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 402,
        code: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, service="billing", original_error=original_error)
        self.status_code = status_code
        self.details["payment_gateway"] = True
        if code:
            self.details["code"] = code


class ConfigurationError(VideoExchangeError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
