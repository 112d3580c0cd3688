"""Unit tests for Stripe refund webhook handling.

Tests verify event processing against mocked DynamoDB. Signatures are
covered in test_stripe_service.py.

Test categories:
- Resolving processing refunds (refund.updated, refund.failed)
- Idempotency (duplicate event IDs)
- Skipped events (unhandled types, missing metadata, non-final status)
- Errors (unknown intents, lost write races)
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from staybook_shared.models.enums import RefundStatus
from staybook_shared.services.refund_service import RefundService
from staybook_shared.services.webhook_handler import RETRY_RESULT, WebhookHandler

# === Test Configuration ===

CLIENT_ID = "client-sub-001"
ADMIN_ID = "admin-sub-001"
REASON = "Family emergency, we cannot travel"
PAYLOAD_HASH = "a" * 64


@pytest.fixture
def processing_refund(
    refund_service: RefundService,
    seed_booking: Callable[..., str],
    mock_processor: MagicMock,
) -> Any:
    """A refund left processing because Stripe answered 'pending'."""
    refund = refund_service.request_refund(
        client_id=CLIENT_ID, booking_id=seed_booking(), reason=REASON
    )
    approved = refund_service.approve_refund(refund.refund_id, admin_id=ADMIN_ID)
    mock_processor.create_refund.side_effect = None
    mock_processor.create_refund.return_value = {
        "refund_id": "re_pending",
        "amount": approved.platform_refund,
        "status": "pending",
    }
    return refund_service.confirm_refund_intent(approved.refund_intent_id, admin_id=ADMIN_ID)


def refund_event(
    refund: Any,
    *,
    event_id: str = "evt_refund_1",
    event_type: str = "refund.updated",
    status: str = "succeeded",
    failure_reason: str | None = None,
) -> dict[str, Any]:
    stripe_refund: dict[str, Any] = {
        "id": "re_pending",
        "object": "refund",
        "amount": refund.platform_refund,
        "status": status,
        "metadata": {
            "refund_id": refund.refund_id,
            "refund_intent_id": refund.refund_intent_id,
            "booking_id": refund.booking_id,
        },
    }
    if failure_reason:
        stripe_refund["failure_reason"] = failure_reason
    return {"id": event_id, "type": event_type, "data": {"object": stripe_refund}}


# === Resolution ===


class TestRefundOutcomes:
    """Events that resolve a processing refund."""

    def test_succeeded_completes_refund(
        self,
        webhook_handler: WebhookHandler,
        refund_service: RefundService,
        processing_refund: Any,
        db: Any,
    ) -> None:
        result, message = webhook_handler.handle_event(refund_event(processing_refund), PAYLOAD_HASH)

        assert (result, message) == ("success", None)
        stored = refund_service.get_refund(processing_refund.refund_id)
        assert stored.status == RefundStatus.COMPLETED
        logged = db.get_item("stripe-webhook-events", {"event_id": "evt_refund_1"})
        assert logged["processing_result"] == "success"
        assert logged["refund_id"] == processing_refund.refund_id
        assert logged["payload_hash"] == PAYLOAD_HASH

    def test_refund_failed_marks_failed(
        self,
        webhook_handler: WebhookHandler,
        refund_service: RefundService,
        processing_refund: Any,
    ) -> None:
        event = refund_event(
            processing_refund,
            event_type="refund.failed",
            status="failed",
            failure_reason="expired_or_canceled_card",
        )

        result, _ = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "success"
        stored = refund_service.get_refund(processing_refund.refund_id)
        assert stored.status == RefundStatus.FAILED
        assert stored.failure_reason == "expired_or_canceled_card"

    def test_already_resolved_is_skipped(
        self,
        webhook_handler: WebhookHandler,
        refund_service: RefundService,
        processing_refund: Any,
    ) -> None:
        refund_service.record_processor_outcome(processing_refund.refund_intent_id, succeeded=True)

        result, message = webhook_handler.handle_event(
            refund_event(processing_refund, event_id="evt_late"), PAYLOAD_HASH
        )

        assert result == "skipped"
        assert "already resolved" in (message or "")


# === Idempotency ===


class TestIdempotency:
    def test_duplicate_event_is_not_reprocessed(
        self,
        webhook_handler: WebhookHandler,
        processing_refund: Any,
    ) -> None:
        event = refund_event(processing_refund)
        webhook_handler.handle_event(event, PAYLOAD_HASH)

        result, message = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "duplicate"
        assert message == "Event already processed"

    def test_is_event_already_processed(self, webhook_handler: WebhookHandler) -> None:
        assert not webhook_handler.is_event_already_processed("evt_new")

        webhook_handler.log_event("evt_new", "refund.updated", PAYLOAD_HASH, "skipped")

        assert webhook_handler.is_event_already_processed("evt_new")


# === Skipped ===


class TestSkippedEvents:
    def test_unhandled_event_type(self, webhook_handler: WebhookHandler, db: Any) -> None:
        event = {"id": "evt_checkout", "type": "checkout.session.completed", "data": {"object": {}}}

        result, message = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "skipped"
        assert "not handled" in (message or "")
        assert webhook_handler.is_event_already_processed("evt_checkout")

    def test_missing_intent_metadata(self, webhook_handler: WebhookHandler) -> None:
        event = {
            "id": "evt_no_meta",
            "type": "refund.updated",
            "data": {"object": {"id": "re_x", "status": "succeeded", "metadata": {}}},
        }

        result, message = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "skipped"
        assert "refund_intent_id" in (message or "")

    def test_pending_status_is_not_recorded(
        self,
        webhook_handler: WebhookHandler,
        refund_service: RefundService,
        processing_refund: Any,
    ) -> None:
        event = refund_event(processing_refund, event_id="evt_still_pending", status="pending")

        result, _ = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "skipped"
        assert not webhook_handler.is_event_already_processed("evt_still_pending")
        stored = refund_service.get_refund(processing_refund.refund_id)
        assert stored.status == RefundStatus.PROCESSING


# === Errors ===


class TestErrors:
    def test_unknown_intent_is_error(self, webhook_handler: WebhookHandler, db: Any) -> None:
        event = {
            "id": "evt_orphan",
            "type": "refund.updated",
            "data": {
                "object": {
                    "id": "re_x",
                    "status": "succeeded",
                    "metadata": {"refund_intent_id": "rfi_unknown"},
                }
            },
        }

        result, message = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "error"
        assert message
        logged = db.get_item("stripe-webhook-events", {"event_id": "evt_orphan"})
        assert logged["processing_result"] == "error"

    def test_lost_write_race_is_left_for_redelivery(
        self,
        webhook_handler: WebhookHandler,
        refund_service: RefundService,
        processing_refund: Any,
        db: Any,
    ) -> None:
        # Another writer bumps the stored version after the handler has read it
        moved_on = processing_refund.model_copy(update={"version": processing_refund.version + 1})
        db.put_item("refunds", RefundService._refund_to_item(moved_on))
        event = refund_event(processing_refund, event_id="evt_raced")

        with patch.object(refund_service, "get_refund", return_value=processing_refund):
            result, message = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == RETRY_RESULT
        assert message
        assert not webhook_handler.is_event_already_processed("evt_raced")

        result, _ = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "success"
        assert refund_service.get_refund(processing_refund.refund_id).status == RefundStatus.COMPLETED
