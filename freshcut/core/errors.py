"""Error types and classification into user-facing responses."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ValidationError

from freshcut.core.remote_store import DatabaseError, PermissionDeniedError, RecordNotFoundError


class NotSignedInError(PermissionError):
    """An operation needs a signed-in user and there is none. Raised before contacting the store."""


class ScanFailedError(RuntimeError):
    """Label scanning failed; the user may retry."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class ErrorCategory(Enum):
    """Categories of transient failures from external services."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Session errors
    ERR_NOT_SIGNED_IN = "ERR_NOT_SIGNED_IN"

    # Store errors
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_ITEM_NOT_FOUND = "ERR_ITEM_NOT_FOUND"
    ERR_STORE = "ERR_STORE"

    # Input errors
    ERR_VALIDATION = "ERR_VALIDATION"

    # Scan errors
    ERR_SCAN_FAILED = "ERR_SCAN_FAILED"
    ERR_RATE_LIMIT_EXCEEDED = "ERR_RATE_LIMIT_EXCEEDED"
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    retryable: bool = False


_ERROR_PATTERNS: dict[Literal["rate_limit", "network"], dict[str, list[str] | set[str]]] = {
    "rate_limit": {
        "phrases": [
            "rate limit",
            "too many requests",
            "rate_limit_exceeded",
            "throttled",
            "429",
        ],
        "exception_types": set(),
    },
    "network": {
        "phrases": [
            "connection",
            "timeout",
            "network",
            "503",
            "502",
            "504",
            "unreachable",
        ],
        "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout"},
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["rate_limit", "network"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_transient(exception: BaseException) -> ErrorCategory:
    """Return RATE_LIMIT_EXCEEDED or NETWORK_ERROR for transient failures, else UNKNOWN."""
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="rate_limit"):
        return ErrorCategory.RATE_LIMIT_EXCEEDED
    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return ErrorCategory.NETWORK_ERROR
    return ErrorCategory.UNKNOWN


def classify_error_with_response(exception: BaseException) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a store, a validator or the scanner

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, NotSignedInError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_SIGNED_IN,
            message="You must be logged in to do that.",
            suggestion="Sign in and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ValidationError):
        first = exception.errors()[0] if exception.errors() else {"msg": str(exception)}
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(first.get("msg", "Invalid input.")),
            suggestion="Check the highlighted fields and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, PermissionDeniedError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="You don't have permission for this action.",
            suggestion="Your changes were not saved. Contact the account owner if you think this is an error.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, RecordNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_ITEM_NOT_FOUND,
            message="That item no longer exists.",
            suggestion="It may have been removed on another device.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ScanFailedError):
        return ErrorResponse(
            code=ErrorCode.ERR_SCAN_FAILED,
            message=str(exception),
            suggestion="Try again with the label in focus, or enter the item manually.",
            severity=ErrorSeverity.LOW,
            retryable=exception.retryable,
        )

    transient = classify_transient(exception)
    if transient is ErrorCategory.RATE_LIMIT_EXCEEDED:
        return ErrorResponse(
            code=ErrorCode.ERR_RATE_LIMIT_EXCEEDED,
            message="Too many requests.",
            suggestion="Please wait a moment and try again.",
            severity=ErrorSeverity.MEDIUM,
            retryable=True,
        )
    if transient is ErrorCategory.NETWORK_ERROR:
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
            retryable=True,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE,
            message="Your changes could not be saved.",
            suggestion="Please try again later.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
