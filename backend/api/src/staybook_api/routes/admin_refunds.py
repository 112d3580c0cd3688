"""Admin refund endpoints.

Provides REST endpoints for:
- Listing refund requests with statistics and pagination
- Reviewing a single request
- Approving or rejecting a pending request
- Confirming an approved refund intent (executes the Stripe refund)
- Recording a personal refund returned by the host

All endpoints require a caller in the admin group.
"""

from fastapi import APIRouter, Depends, Query

from staybook_api.dependencies import get_refund_service
from staybook_api.models.refunds import (
    AdminRefundListResponse,
    CompletePersonalRequest,
    ConfirmIntentRequest,
    RefundProcessRequest,
)
from staybook_api.security import CurrentUser, require_admin
from staybook_shared.models.enums import RefundStatus
from staybook_shared.models.errors import ErrorResponse
from staybook_shared.models.refund import RefundRequest
from staybook_shared.services.refund_service import RefundService

router = APIRouter(prefix="/admin", tags=["admin-refunds"])

_AUTH_RESPONSES: dict = {
    401: {"description": "JWT token required", "model": ErrorResponse},
    403: {"description": "Admin access required", "model": ErrorResponse},
}


@router.get(
    "/refunds",
    summary="List refund requests",
    description="""
List refund requests for review.

Requests waiting on an admin come first (pending, then in-flight), newest
first within each group. Statistics always cover every request, regardless
of the status filter.
""",
    response_model=AdminRefundListResponse,
    responses=_AUTH_RESPONSES,
)
async def list_refunds(
    status: RefundStatus | None = Query(default=None, description="Filter by status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=RefundService.DEFAULT_PAGE_LIMIT, ge=1, le=RefundService.MAX_PAGE_LIMIT),
    _admin: CurrentUser = Depends(require_admin),
    refund_service: RefundService = Depends(get_refund_service),
) -> AdminRefundListResponse:
    result = refund_service.list_refunds(status=status, page=page, limit=limit)
    return AdminRefundListResponse(
        results=len(result.refunds),
        refunds=result.refunds,
        statistics=result.statistics,
        pagination=result.pagination,
    )


# Declared before the /refunds/{refund_id} routes so the literal path wins
@router.post(
    "/refunds/confirm-intent",
    summary="Confirm refund intent",
    description="""
Execute the Stripe refund for an approved request.

The request moves to `processing`, then to `completed` (all paid through
the platform), `partial_completed` (a personal portion remains) or
`failed`. If Stripe reports the refund as pending, the request stays
`processing` until the webhook reports the outcome.

Confirming the same intent twice is refused; the Stripe call uses the
intent ID as idempotency key.
""",
    response_model=RefundRequest,
    responses={
        **_AUTH_RESPONSES,
        404: {"description": "No request has this intent", "model": ErrorResponse},
        409: {"description": "Request is not approved", "model": ErrorResponse},
        502: {"description": "Stripe failed; request is marked failed", "model": ErrorResponse},
    },
)
async def confirm_refund_intent(
    body: ConfirmIntentRequest,
    admin: CurrentUser = Depends(require_admin),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.confirm_refund_intent(body.refund_intent_id, admin_id=admin.user_id)


@router.get(
    "/refunds/{refund_id}",
    summary="Get refund request details",
    response_model=RefundRequest,
    responses={
        **_AUTH_RESPONSES,
        404: {"description": "Refund request not found", "model": ErrorResponse},
    },
)
async def get_refund_details(
    refund_id: str,
    _admin: CurrentUser = Depends(require_admin),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.get_refund(refund_id)


@router.post(
    "/refunds/{refund_id}/process",
    summary="Approve or reject a refund request",
    description="""
Decide on a pending refund request.

- **approve**: verifies the Stripe payment and creates a refund intent
  (`approved`). When nothing was paid through the platform the request
  goes to `manual_review` instead. `custom_amount` overrides the policy
  amount and must be within 0 and the amount paid.
- **reject**: requires `notes`. The booking can be requested again.
""",
    response_model=RefundRequest,
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Missing notes or invalid custom amount", "model": ErrorResponse},
        404: {"description": "Refund request not found", "model": ErrorResponse},
        409: {
            "description": "Request is not pending or was changed concurrently",
            "model": ErrorResponse,
        },
        502: {"description": "Stripe could not verify the payment", "model": ErrorResponse},
    },
)
async def process_refund(
    refund_id: str,
    body: RefundProcessRequest,
    admin: CurrentUser = Depends(require_admin),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.process_refund(
        refund_id,
        admin_id=admin.user_id,
        action=body.action,
        notes=body.notes,
        custom_amount=body.custom_amount,
    )


@router.post(
    "/refunds/{refund_id}/complete-personal",
    summary="Complete personal refund",
    description="""
Record that the host returned the personal portion of a refund.

Allowed for `partial_completed` and `manual_review` requests. Notes must
be at least 10 characters. The request becomes `completed` and the
booking is marked refunded.
""",
    response_model=RefundRequest,
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Notes too short", "model": ErrorResponse},
        404: {"description": "Refund request not found", "model": ErrorResponse},
        409: {"description": "Request is not awaiting a personal refund", "model": ErrorResponse},
    },
)
async def complete_personal_refund(
    refund_id: str,
    body: CompletePersonalRequest,
    admin: CurrentUser = Depends(require_admin),
    refund_service: RefundService = Depends(get_refund_service),
) -> RefundRequest:
    return refund_service.complete_personal_refund(
        refund_id, admin_id=admin.user_id, notes=body.notes
    )
