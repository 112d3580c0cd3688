"""Enumeration types for Staybook refund and booking models."""

from enum import Enum


class RefundStatus(str, Enum):
    """Lifecycle status of a refund request."""

    PENDING = "pending"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PARTIAL_COMPLETED = "partial_completed"  # Platform portion done, personal portion outstanding
    MANUAL_REVIEW = "manual_review"  # Whole refund is off-platform
    REJECTED = "rejected"
    FAILED = "failed"


class RefundAction(str, Enum):
    """Admin decisions on a pending refund request."""

    APPROVE = "approve"
    REJECT = "reject"


class BookingStatus(str, Enum):
    """Status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Payment status for a booking."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentProvider(str, Enum):
    """Where the guest's money went."""

    STRIPE = "stripe"  # Captured and held by the platform
    PERSONAL = "personal"  # Paid directly to the host


class TransactionStatus(str, Enum):
    """Status of a payment transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationType(str, Enum):
    """Notification kinds emitted by the refund workflow."""

    REFUND_REQUEST = "refund_request"  # To admins
    REFUND_REQUESTED = "refund_requested"  # To the client
    REFUND_APPROVED = "refund_approved"
    REFUND_REJECTED = "refund_rejected"
    REFUND_COMPLETED = "refund_completed"
    REFUND_PARTIAL_COMPLETED = "refund_partial_completed"
    REFUND_MANUAL_REVIEW = "refund_manual_review"
    REFUND_FAILED = "refund_failed"
