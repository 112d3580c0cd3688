"""Webhook handler for Stripe refund events.

Keeps webhook business logic separate from HTTP routing so it can be
unit tested without a request. Events are processed at most once: the
event ID is recorded in the webhook events table after handling.
"""

import datetime as dt

from staybook_shared.models.errors import (
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
)
from staybook_shared.models.stripe_webhook import StripeWebhookEvent
from staybook_shared.services.dynamodb import DynamoDBService
from staybook_shared.services.refund_service import RefundService
from staybook_shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

# Event types that can resolve a processing refund
HANDLED_EVENT_TYPES = {
    "refund.updated",
    "refund.failed",
}

_FAILED_REFUND_STATUSES = {"failed", "canceled"}

# Event lost a write race; left unrecorded so the redelivery is processed
RETRY_RESULT = "retry"


class WebhookHandler:
    """Handler for Stripe refund webhook events."""

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(self, db: DynamoDBService, refunds: RefundService) -> None:
        self._db = db
        self._refunds = refunds

    def is_event_already_processed(self, event_id: str) -> bool:
        """Check if webhook event was already processed (idempotency)."""
        existing = self._db.get_item(self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id})
        return existing is not None

    def log_event(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str,
        processing_result: str,
        refund_id: str | None = None,
        refund_intent_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record a webhook event for idempotency and audit trail."""
        record = StripeWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            processed_at=dt.datetime.now(dt.UTC),
            payload_hash=payload_hash,
            refund_id=refund_id,
            refund_intent_id=refund_intent_id,
            processing_result=processing_result,
            error_message=error_message,
        )
        item = {k: v for k, v in record.model_dump(mode="json").items() if v is not None}
        self._db.put_item(self.WEBHOOK_EVENTS_TABLE, item)

    def handle_event(self, event: dict, payload_hash: str) -> tuple[str, str | None]:
        """Process a verified Stripe event.

        Args:
            event: Parsed Stripe webhook event
            payload_hash: SHA-256 of the raw payload

        Returns:
            Tuple of (processing_result, message) where processing_result is
            one of success, duplicate, skipped, error, retry
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")

        if self.is_event_already_processed(event_id):
            log_webhook_event(logger, event_type, event_id, result="duplicate")
            return "duplicate", "Event already processed"

        if event_type not in HANDLED_EVENT_TYPES:
            message = f"Event type '{event_type}' not handled"
            self.log_event(event_id, event_type, payload_hash, "skipped", error_message=message)
            log_webhook_event(logger, event_type, event_id, result="skipped")
            return "skipped", message

        stripe_refund = event.get("data", {}).get("object", {})
        metadata = stripe_refund.get("metadata") or {}
        refund_intent_id = metadata.get("refund_intent_id")
        refund_id = metadata.get("refund_id")
        stripe_status = stripe_refund.get("status")

        if not refund_intent_id:
            message = "No refund_intent_id in refund metadata"
            self.log_event(event_id, event_type, payload_hash, "skipped", error_message=message)
            log_webhook_event(logger, event_type, event_id, result="skipped", error=message)
            return "skipped", message

        if stripe_status == "succeeded":
            succeeded = True
        elif stripe_status in _FAILED_REFUND_STATUSES or event_type == "refund.failed":
            succeeded = False
        else:
            message = f"Refund status is '{stripe_status}', waiting for a final status"
            log_webhook_event(
                logger, event_type, event_id, refund_id=refund_id, result="skipped", error=message
            )
            # Not recorded: a later delivery of this event may carry the final status
            return "skipped", message

        try:
            refund = self._refunds.record_processor_outcome(
                refund_intent_id,
                succeeded=succeeded,
                processor_refund_id=stripe_refund.get("id"),
                failure_reason=stripe_refund.get("failure_reason"),
            )
        except ConcurrentModificationError as e:
            log_webhook_event(
                logger, event_type, event_id, refund_id=refund_id, result="error", error=e.message
            )
            return RETRY_RESULT, e.message
        except InvalidStateError as e:
            message = f"Refund already resolved: {e.message}"
            self.log_event(
                event_id,
                event_type,
                payload_hash,
                "skipped",
                refund_id=refund_id,
                refund_intent_id=refund_intent_id,
                error_message=message,
            )
            log_webhook_event(logger, event_type, event_id, refund_id=refund_id, result="skipped")
            return "skipped", message
        except NotFoundError as e:
            self.log_event(
                event_id,
                event_type,
                payload_hash,
                "error",
                refund_id=refund_id,
                refund_intent_id=refund_intent_id,
                error_message=e.message,
            )
            log_webhook_event(
                logger, event_type, event_id, refund_id=refund_id, result="error", error=e.message
            )
            return "error", e.message

        self.log_event(
            event_id,
            event_type,
            payload_hash,
            "success",
            refund_id=refund.refund_id,
            refund_intent_id=refund_intent_id,
        )
        log_webhook_event(
            logger,
            event_type,
            event_id,
            refund_id=refund.refund_id,
            result="success",
            status=refund.status.value,
        )
        return "success", None
