"""Refund request ledger model.

Amounts are stored in minor currency units (PHP centavos) so that the
breakdown invariants hold exactly.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from .enums import RefundStatus


class RefundBreakdown(BaseModel):
    """Split of a refund between the refunded and retained amounts.

    The platform/personal split is proportional to how the guest paid.
    """

    refund_percentage: int = Field(..., ge=0, le=100)
    refund_amount: int = Field(..., ge=0, description="Total refund in cents")
    deduction_amount: int = Field(..., ge=0, description="Amount retained in cents")
    platform_refund: int = Field(..., ge=0, description="Refund from platform-held funds")
    personal_refund: int = Field(..., ge=0, description="Refund the host returns directly")


class RefundRequest(BaseModel):
    """A customer's refund request for a cancelled booking.

    Construction validates the amount invariants, so a RefundRequest with an
    inconsistent breakdown can never be stored.
    """

    refund_id: str = Field(..., description="Unique refund request ID", examples=["RFD-1A2B3C4D5E6F"])
    booking_id: str = Field(..., description="Booking being refunded")
    client_id: str = Field(..., description="Customer who requested the refund")
    host_id: str = Field(..., description="Host of the booked listing")
    listing_title: str | None = Field(default=None, description="Listing title for display")
    currency: str = Field(default="PHP", description="Currency code")

    amount_paid: int = Field(..., ge=0, description="Total paid in cents")
    platform_paid: int = Field(..., ge=0, description="Paid through Stripe, held by the platform")
    personal_paid: int = Field(..., ge=0, description="Paid directly to the host")

    reason: str = Field(..., min_length=1)
    hours_before_checkin: int = Field(
        ..., description="Whole hours between the request and check-in (negative after check-in)"
    )
    refund_percentage: int = Field(..., ge=0, le=100)
    policy_description: str
    refund_amount: int = Field(..., ge=0)
    deduction_amount: int = Field(..., ge=0)
    platform_refund: int = Field(..., ge=0)
    personal_refund: int = Field(..., ge=0)
    custom_amount_applied: bool = False

    status: RefundStatus = RefundStatus.PENDING
    payment_intent_id: str | None = Field(
        default=None,
        description="Stripe PaymentIntent of the platform payment",
        examples=["pi_3ABC123DEF456"],
    )
    refund_intent_id: str | None = Field(
        default=None,
        description="Refund intent created on approval",
        examples=["rfi_4f1c2e9b8a7d"],
    )
    processor_refund_id: str | None = Field(
        default=None,
        description="Stripe Refund ID once executed",
        examples=["re_3ABC123DEF456"],
    )

    admin_notes: str | None = None
    personal_refund_notes: str | None = None
    failure_reason: str | None = None
    processed_by_user_id: str | None = None
    processed_at: datetime | None = None

    version: int = Field(default=1, ge=1, description="Optimistic concurrency counter")
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_amounts(self) -> "RefundRequest":
        if self.platform_paid + self.personal_paid != self.amount_paid:
            raise ValueError("platform_paid + personal_paid must equal amount_paid")
        if self.refund_amount > self.amount_paid:
            raise ValueError("refund_amount cannot exceed amount_paid")
        if self.refund_amount + self.deduction_amount != self.amount_paid:
            raise ValueError("refund_amount + deduction_amount must equal amount_paid")
        if self.platform_refund + self.personal_refund != self.refund_amount:
            raise ValueError("platform_refund + personal_refund must equal refund_amount")
        return self

    @property
    def breakdown(self) -> RefundBreakdown:
        return RefundBreakdown(
            refund_percentage=self.refund_percentage,
            refund_amount=self.refund_amount,
            deduction_amount=self.deduction_amount,
            platform_refund=self.platform_refund,
            personal_refund=self.personal_refund,
        )


class RefundStatistics(BaseModel):
    """Aggregate figures over a set of refund requests."""

    total: int = 0
    by_status: dict[RefundStatus, int] = Field(default_factory=dict)
    pending: int = 0
    approved: int = 0
    completed: int = 0
    rejected: int = 0
    requires_action: int = Field(default=0, description="Requests waiting on an admin")
    total_refunded: int = Field(default=0, description="Sum of completed refund amounts in cents")
    total_deductions: int = Field(default=0, description="Sum of completed deductions in cents")


class Pagination(BaseModel):
    """Page position within a listing."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Matching requests across all pages")


class RefundPage(BaseModel):
    """One page of the admin refund listing."""

    refunds: list[RefundRequest]
    statistics: RefundStatistics
    pagination: Pagination
