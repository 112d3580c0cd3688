"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe refund events (refund.updated, refund.failed)

These endpoints do NOT require JWT authentication as they receive
signed payloads from external services.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from staybook_api.dependencies import get_processor, get_webhook_handler
from staybook_shared.models.errors import ErrorCode, ErrorResponse, RefundError
from staybook_shared.services.stripe_service import StripeService, StripeServiceError
from staybook_shared.services.webhook_handler import RETRY_RESULT, WebhookHandler
from staybook_shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


# === Response Models ===


class WebhookResponse(BaseModel):
    """Standard webhook response."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # "success", "duplicate", "skipped", "error", "retry"
    message: str | None = None


# === Webhook Endpoint ===


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- refund.updated: Completes or fails a processing refund once Stripe reports a final status
- refund.failed: Marks a processing refund as failed

**No authentication required** - signature is verified using Stripe webhook secret.

**Idempotent**: Duplicate events (same event_id) return 200 with 'duplicate' result.

**Retry**: An event that raced another update answers 503 so Stripe redelivers it.
""",
    response_model=WebhookResponse,
    responses={
        200: {
            "description": "Event received and processed (or acknowledged)",
            "model": WebhookResponse,
        },
        400: {
            "description": "Invalid signature or missing header",
            "model": ErrorResponse,
        },
        503: {
            "description": "Event raced another update; Stripe will redeliver it",
            "model": WebhookResponse,
        },
    },
)
async def handle_stripe_webhook(
    request: Request,
    response: Response,
    processor: StripeService = Depends(get_processor),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify the signature, then hand the event to the webhook handler."""
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        logger.warning("Webhook request missing Stripe-Signature header")
        raise RefundError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"reason": "Missing Stripe-Signature header"},
        )

    # Raw body is required for signature verification
    payload = await request.body()

    try:
        event = processor.verify_webhook_signature(payload, signature)
    except StripeServiceError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise RefundError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"reason": "Invalid webhook signature"},
        ) from e

    event_id = event.get("id")
    event_type = event.get("type")
    log_webhook_event(logger, event_type or "", event_id or "", result="received")

    processing_result, message = handler.handle_event(
        event, StripeService.compute_payload_hash(payload)
    )
    if processing_result == RETRY_RESULT:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return WebhookResponse(
        received=True,
        event_id=event_id,
        event_type=event_type,
        processing_result=processing_result,
        message=message,
    )
