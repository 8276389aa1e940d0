"""
Custom Exceptions for the Tiffin Subscription Service

This module defines the error taxonomy surfaced by the subscription and
scheduling engine. Every exception carries a stable error code and an
HTTP status so the API layer can render it without extra mapping.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    OPERATION_FAILED = "OPERATION_FAILED"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    FORBIDDEN = "FORBIDDEN"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    NO_ACTIVE_SUBSCRIPTION = "NO_ACTIVE_SUBSCRIPTION"

    # Business rule errors
    CONFLICT = "CONFLICT"
    ALREADY_PAUSED = "ALREADY_PAUSED"
    NOT_PAUSED = "NOT_PAUSED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    EXPIRED = "EXPIRED"
    INSUFFICIENT_TOKENS = "INSUFFICIENT_TOKENS"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class OperationError(BaseAppException):
    """Generic internal failure; the transaction was rolled back."""

    def __init__(
        self,
        message: str = "Operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, ErrorCode.OPERATION_FAILED, details, 500)


class ValidationError(BaseAppException):
    """Malformed or out-of-range input. No state was changed."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 400)


class NotFoundError(BaseAppException):
    """Referenced entity is absent or inactive."""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
        status_code: int = 404,
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details, status_code)


class NoActiveSubscriptionError(NotFoundError):
    """The caller has no active subscription to act on."""

    def __init__(self, user_id: Optional[str] = None):
        super().__init__(
            "Subscription",
            None,
            "No active subscription found",
            error_code=ErrorCode.NO_ACTIVE_SUBSCRIPTION,
            status_code=422,
        )
        self.details["user_id"] = user_id


class AuthenticationError(BaseAppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, None, 401)


class ForbiddenError(BaseAppException):
    """Entity exists but is not owned by the caller."""

    def __init__(
        self,
        message: str = "You do not have access to this resource",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = {"resource_type": resource_type, "resource_id": resource_id}
        super().__init__(message, ErrorCode.FORBIDDEN, details, 403)


# ========================================
# Business Rule Exceptions
# ========================================

class ConflictError(BaseAppException):
    """Violates a uniqueness or one-per-X rule, or an invalid state transition."""

    def __init__(
        self,
        message: str = "Request conflicts with current state",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(message, error_code, details, 422)


class AlreadyPausedError(ConflictError):
    def __init__(self, meal_date: Any = None, meal_type: Optional[str] = None):
        super().__init__(
            f"Meal already paused for {meal_date} ({meal_type})",
            {"meal_date": str(meal_date), "meal_type": meal_type},
            ErrorCode.ALREADY_PAUSED,
        )


class NotPausedError(ConflictError):
    def __init__(self, meal_date: Any = None, meal_type: Optional[str] = None):
        super().__init__(
            f"Meal is not paused for {meal_date} ({meal_type})",
            {"meal_date": str(meal_date), "meal_type": meal_type},
            ErrorCode.NOT_PAUSED,
        )


class DeadlineExceededError(BaseAppException):
    """Same-day change requested after the cutoff hour."""

    def __init__(self, cutoff_hour: int, message: Optional[str] = None):
        message = message or f"Same-day changes are closed after {cutoff_hour:02d}:00"
        super().__init__(
            message,
            ErrorCode.DEADLINE_EXCEEDED,
            {"cutoff_hour": cutoff_hour},
            422,
        )


class ExpiredError(BaseAppException):
    def __init__(self, message: str = "Wallet has expired", valid_until: Any = None):
        details = {"valid_until": str(valid_until)} if valid_until else {}
        super().__init__(message, ErrorCode.EXPIRED, details, 422)


class InsufficientTokensError(BaseAppException):
    def __init__(self, remaining: int = 0):
        super().__init__(
            "Not enough curry tokens in wallet",
            ErrorCode.INSUFFICIENT_TOKENS,
            {"remaining_tokens": remaining},
            422,
        )


class ConfigurationError(BaseAppException):
    """Required catalog data is missing. Operational, not caller fault."""

    def __init__(self, message: str = "Service configuration error", config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details, 500)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'OperationError',
    'ValidationError',
    'NotFoundError',
    'NoActiveSubscriptionError',
    'AuthenticationError',
    'ForbiddenError',
    'ConflictError',
    'AlreadyPausedError',
    'NotPausedError',
    'DeadlineExceededError',
    'ExpiredError',
    'InsufficientTokensError',
    'ConfigurationError',
]
