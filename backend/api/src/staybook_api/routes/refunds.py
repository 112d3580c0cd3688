"""Customer refund endpoints.

Provides REST endpoints for:
- Requesting a refund for a cancelled booking
- Listing the caller's refund requests
- Retrieving one of the caller's refund requests

All endpoints require JWT authentication. API Gateway validates the JWT
and passes the user identity via the x-user-sub header.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from staybook_api.dependencies import get_refund_service
from staybook_api.models.refunds import RefundCreateRequest, RefundListResponse
from staybook_api.security import CurrentUser, get_current_user
from staybook_shared.models.enums import RefundStatus
from staybook_shared.models.errors import ErrorResponse
from staybook_shared.models.refund import RefundRequest
from staybook_shared.services.refund_service import RefundService

router = APIRouter(tags=["refunds"])


@router.post(
    "/refunds",
    summary="Request a refund",
    description="""
Request a refund for a cancelled booking.

**Requires JWT authentication.** Only the booking's customer can request it.

The refund amount is computed from the cancellation policy:
- 24+ hours before check-in: full refund
- Less than 24 hours before check-in: 50% refund
- After check-in: no refund (request is refused)

**Notes:**
- Reason must be at least 10 characters
- A booking can have only one active refund request
- The new request is `pending` until an admin reviews it
""",
    response_description="Created refund request with breakdown",
    response_model=RefundRequest,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid reason or nothing refundable", "model": ErrorResponse},
        401: {"description": "JWT token required", "model": ErrorResponse},
        403: {"description": "Booking belongs to another customer", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
        409: {
            "description": "Booking not cancelled, already refunded or already requested",
            "model": ErrorResponse,
        },
    },
)
async def request_refund(
    body: RefundCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.request_refund(
        client_id=user.user_id,
        booking_id=body.booking_id,
        reason=body.reason,
    )


@router.get(
    "/refunds/mine",
    summary="List my refund requests",
    description="List the caller's refund requests, newest first, optionally filtered by status.",
    response_model=RefundListResponse,
    responses={401: {"description": "JWT token required", "model": ErrorResponse}},
)
async def get_my_refunds(
    status: RefundStatus | None = Query(default=None, description="Filter by status"),
    user: CurrentUser = Depends(get_current_user),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundListResponse:
    refunds = refund_service.list_my_refunds(user.user_id, status)
    return RefundListResponse(results=len(refunds), refunds=refunds)


@router.get(
    "/refunds/{refund_id}",
    summary="Get my refund request",
    response_model=RefundRequest,
    responses={
        401: {"description": "JWT token required", "model": ErrorResponse},
        403: {"description": "Refund belongs to another customer", "model": ErrorResponse},
        404: {"description": "Refund request not found", "model": ErrorResponse},
    },
)
async def get_refund(
    refund_id: str,
    user: CurrentUser = Depends(get_current_user),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.get_refund_for_client(refund_id, user.user_id)
