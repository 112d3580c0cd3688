"""Read models for the bookings and payments the refund workflow depends on."""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import BookingStatus, PaymentStatus


class Booking(BaseModel):
    """A booking as seen by the refund workflow."""

    booking_id: str
    client_id: str = Field(..., description="Customer who made the booking")
    host_id: str
    listing_title: str | None = None
    check_in: datetime = Field(..., description="Check-in time (timezone aware)")
    status: BookingStatus
    payment_status: PaymentStatus = PaymentStatus.PENDING


class PaymentSummary(BaseModel):
    """Completed payments for a booking, split by where the money went."""

    amount_paid: int = Field(..., ge=0, description="Total completed payments in cents")
    platform_paid: int = Field(..., ge=0, description="Completed Stripe payments in cents")
    personal_paid: int = Field(..., ge=0, description="Completed direct-to-host payments in cents")
    payment_intent_id: str | None = Field(
        default=None, description="PaymentIntent of the most recent Stripe payment"
    )
    currency: str = "PHP"
