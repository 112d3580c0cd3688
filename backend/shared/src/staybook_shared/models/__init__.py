"""Pydantic models for Staybook refund data entities."""

from .booking import Booking, PaymentSummary
from .enums import (
    BookingStatus,
    NotificationType,
    PaymentProvider,
    PaymentStatus,
    RefundAction,
    RefundStatus,
    TransactionStatus,
)
from .policy import PolicyDecision, PolicyTier
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    AuthorizationError,
    ConcurrentModificationError,
    ErrorCode,
    ErrorResponse,
    InvalidStateError,
    NotFoundError,
    ProcessorError,
    RefundError,
    ValidationError,
)
from .refund import (
    Pagination,
    RefundBreakdown,
    RefundPage,
    RefundRequest,
    RefundStatistics,
)
from .stripe_webhook import StripeWebhookEvent

__all__ = [
    # Enums
    "BookingStatus",
    "NotificationType",
    "PaymentProvider",
    "PaymentStatus",
    "RefundAction",
    "RefundStatus",
    "TransactionStatus",
    # Booking
    "Booking",
    "PaymentSummary",
    # Policy
    "PolicyDecision",
    "PolicyTier",
    # Refund
    "Pagination",
    "RefundBreakdown",
    "RefundPage",
    "RefundRequest",
    "RefundStatistics",
    # Errors
    "AuthorizationError",
    "ConcurrentModificationError",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "InvalidStateError",
    "NotFoundError",
    "ProcessorError",
    "RefundError",
    "ValidationError",
    # Stripe
    "StripeWebhookEvent",
]
