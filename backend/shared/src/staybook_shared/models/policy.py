"""Cancellation policy models."""

from pydantic import BaseModel, Field


class PolicyTier(BaseModel):
    """One row of the cancellation policy table.

    A tier applies when the request is made at least ``min_hours`` before
    check-in. Tiers are evaluated in order and the first match wins.
    """

    min_hours: int = Field(..., description="Minimum whole hours before check-in")
    percentage: int = Field(..., ge=0, le=100, description="Refund percentage for this tier")
    description: str = Field(..., min_length=1)


class PolicyDecision(BaseModel):
    """Outcome of evaluating the policy table."""

    refund_percentage: int = Field(..., ge=0, le=100)
    hours_before_checkin: int
    description: str
    tier: PolicyTier | None = Field(default=None, description="Matched tier, None for the fallback")
