"""Standard error codes and exceptions for the refund workflow.

Every failure raised by the refund lifecycle carries an ErrorCode. The API
layer maps codes to HTTP statuses and serialises them as ErrorResponse.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes for refund operations."""

    # Refund error codes (ERR_001-ERR_007)
    VALIDATION_FAILED = "ERR_001"
    INVALID_STATE = "ERR_002"
    CONCURRENT_MODIFICATION = "ERR_003"
    REFUND_NOT_FOUND = "ERR_004"
    BOOKING_NOT_FOUND = "ERR_005"
    PROCESSOR_ERROR = "ERR_006"
    INVALID_WEBHOOK_SIGNATURE = "ERR_007"

    # Authorization error codes (ERR_AUTH_001-ERR_AUTH_003)
    AUTH_REQUIRED = "ERR_AUTH_001"
    ADMIN_REQUIRED = "ERR_AUTH_002"
    NOT_OWNER = "ERR_AUTH_003"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "The refund request is invalid",
    ErrorCode.INVALID_STATE: "The refund request is not in a state that allows this action",
    ErrorCode.CONCURRENT_MODIFICATION: "The refund request was modified by another action",
    ErrorCode.REFUND_NOT_FOUND: "Refund request not found",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.PROCESSOR_ERROR: "The payment processor could not complete the refund",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
    ErrorCode.ADMIN_REQUIRED: "Admin access required",
    ErrorCode.NOT_OWNER: "You can only access your own refund requests",
}

# Recovery suggestions for callers and operators
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Correct the highlighted fields and submit again",
    ErrorCode.INVALID_STATE: "Reload the refund request to see its current status",
    ErrorCode.CONCURRENT_MODIFICATION: "Reload the refund request and repeat the action if still needed",
    ErrorCode.REFUND_NOT_FOUND: "Verify the refund request ID",
    ErrorCode.BOOKING_NOT_FOUND: "Verify the booking ID",
    ErrorCode.PROCESSOR_ERROR: (
        "Re-verify the payment intent, check the Stripe dashboard for the refund, "
        "then complete the refund manually"
    ),
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.AUTH_REQUIRED: "Sign in and try again",
    ErrorCode.ADMIN_REQUIRED: "Ask an administrator to perform this action",
    ErrorCode.NOT_OWNER: "Open the refund from your own bookings",
}


class ErrorResponse(BaseModel):
    """Standard error response body for refund failures."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, Any]] = None


class RefundError(Exception):
    """Base exception raised by refund operations.

    The message defaults to the code's standard message; callers pass a
    specific message when the standard one is too vague.
    """

    default_code: ErrorCode = ErrorCode.VALIDATION_FAILED

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse(
            error_code=self.code,
            message=self.message,
            recovery=self.recovery,
            details=self.details,
        )


class ValidationError(RefundError):
    """Malformed or out-of-range input."""

    default_code = ErrorCode.VALIDATION_FAILED


class InvalidStateError(RefundError):
    """The requested transition is not allowed from the current status."""

    default_code = ErrorCode.INVALID_STATE


class ConcurrentModificationError(InvalidStateError):
    """Another writer changed the request between read and write."""

    default_code = ErrorCode.CONCURRENT_MODIFICATION


class NotFoundError(RefundError):
    """Refund request or booking does not exist."""

    default_code = ErrorCode.REFUND_NOT_FOUND


class ProcessorError(RefundError):
    """The payment processor failed or timed out."""

    default_code = ErrorCode.PROCESSOR_ERROR


class AuthorizationError(RefundError):
    """Caller is not allowed to perform the action."""

    default_code = ErrorCode.AUTH_REQUIRED
