"""Stripe webhook event log model for idempotency and auditing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    A stored event ID marks the event as handled; redeliveries are
    acknowledged without touching the refund again.
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["refund.updated", "refund.failed"],
    )
    processed_at: datetime
    payload_hash: str = Field(..., description="SHA-256 hash of the event payload")
    refund_id: str | None = Field(default=None, description="Refund request resolved by the event")
    refund_intent_id: str | None = Field(default=None, description="Refund intent from metadata")
    processing_result: str = Field(
        default="success",
        description="Result of processing: success, duplicate, skipped, error",
    )
    error_message: str | None = None
