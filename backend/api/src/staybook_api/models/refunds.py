"""Request and response models for refund endpoints."""

from pydantic import BaseModel, Field

from staybook_shared.models.enums import RefundAction
from staybook_shared.models.refund import Pagination, RefundRequest, RefundStatistics


class RefundCreateRequest(BaseModel):
    """Customer request to refund a cancelled booking."""

    booking_id: str = Field(..., min_length=1, description="Cancelled booking to refund")
    reason: str = Field(
        ...,
        description="Why the refund is requested (at least 10 characters)",
        examples=["Family emergency, we can no longer travel"],
    )


class RefundProcessRequest(BaseModel):
    """Admin decision on a pending refund request."""

    action: RefundAction = Field(..., description="approve or reject")
    notes: str | None = Field(
        default=None,
        description="Admin notes, required when rejecting",
    )
    custom_amount: int | None = Field(
        default=None,
        description="Override of the policy refund amount, in cents",
        examples=[600000],
    )


class ConfirmIntentRequest(BaseModel):
    """Admin confirmation of an approved refund intent."""

    refund_intent_id: str = Field(..., min_length=1, examples=["rfi_4f1c2e9b8a7d"])


class CompletePersonalRequest(BaseModel):
    """Admin record of a personal refund returned by the host."""

    notes: str = Field(
        ...,
        description="How the personal refund was returned (at least 10 characters)",
        examples=["Host returned PHP 1,600 via GCash on 12 March"],
    )


class RefundListResponse(BaseModel):
    """A customer's refund requests."""

    results: int = Field(..., description="Number of requests returned")
    refunds: list[RefundRequest]


class AdminRefundListResponse(BaseModel):
    """One page of the admin refund listing."""

    results: int = Field(..., description="Number of requests on this page")
    refunds: list[RefundRequest]
    statistics: RefundStatistics
    pagination: Pagination
