"""Integration tests for complete refund flows.

Drives the REST API through RefundClient (wrapping FastAPI's TestClient)
with DynamoDB mocked by moto and Stripe mocked at the processor seam.

Test categories:
- Platform-only refund: request, approve, confirm, completed
- Split payment: partial completion, then personal completion
- Personal-only payment: manual review, then personal completion
- Rejection and re-request
- Processor failure leaves the request failed
- Webhook resolution of a pending Stripe refund
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from staybook_shared.models.enums import RefundAction, RefundStatus
from staybook_shared.models.policy import PolicyTier
from staybook_shared.services.refund_client import RefundClient, RefundClientError
from staybook_shared.services.refund_policy_service import RefundPolicyService
from staybook_shared.services.refund_service import RefundService
from staybook_shared.services.stripe_service import StripeServiceError

# === Test Configuration ===

CLIENT_ID = "client-sub-001"
ADMIN_ID = "admin-sub-001"
REASON = "Family emergency, we cannot travel"
PERSONAL_NOTES = "Host returned PHP 3,200 via GCash"


@pytest.fixture
def eighty_percent_policy(refund_service: RefundService) -> None:
    refund_service.policy = RefundPolicyService(
        [PolicyTier(min_hours=0, percentage=80, description="80% refund (cancelled before check-in)")]
    )


@pytest.fixture
def customer(api_client: TestClient) -> RefundClient:
    return RefundClient(user_id=CLIENT_ID, http_client=api_client)


@pytest.fixture
def admin(api_client: TestClient) -> RefundClient:
    return RefundClient(user_id=ADMIN_ID, groups=["admins"], http_client=api_client)


# === Platform Only ===


@pytest.mark.usefixtures("eighty_percent_policy")
class TestPlatformOnlyFlow:
    def test_request_approve_confirm(
        self,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
        db: Any,
    ) -> None:
        booking_id = seed_booking(platform_paid=1_000_000)

        requested = customer.request_refund(booking_id, REASON)

        assert requested.status_label == "Pending Review"
        assert requested.formatted_refund_amount == "₱8,000.00"
        assert requested.formatted_deduction == "₱2,000.00"
        assert requested.formatted_platform_refund == "₱8,000.00"
        assert requested.formatted_personal_refund == "₱0.00"

        approved = admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)
        assert approved.can_confirm is True

        completed = admin.confirm_refund_intent(approved.refund.refund_intent_id or "")

        assert completed.refund.status == RefundStatus.COMPLETED
        assert completed.status_label == "Completed"
        assert customer.get_refund(requested.refund.refund_id).refund.status == RefundStatus.COMPLETED
        booking = db.get_item("bookings", {"booking_id": booking_id})
        assert booking["payment_status"] == "refunded"


# === Split Payment ===


@pytest.mark.usefixtures("eighty_percent_policy")
class TestSplitPaymentFlow:
    def test_partial_then_personal_completion(
        self,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
    ) -> None:
        booking_id = seed_booking(platform_paid=600_000, personal_paid=400_000)

        requested = customer.request_refund(booking_id, REASON)
        assert requested.refund.refund_amount == 800_000
        assert requested.refund.platform_refund == 480_000
        assert requested.refund.personal_refund == 320_000

        approved = admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)
        partial = admin.confirm_refund_intent(approved.refund.refund_intent_id or "")

        assert partial.refund.status == RefundStatus.PARTIAL_COMPLETED
        assert partial.requires_manual_refund is True

        listing = admin.get_all_refund_requests()
        assert listing.statistics.requires_action == 1

        completed = admin.complete_personal_refund(requested.refund.refund_id, PERSONAL_NOTES)

        assert completed.refund.status == RefundStatus.COMPLETED
        assert completed.refund.personal_refund_notes == PERSONAL_NOTES
        assert completed.refund.processed_by_user_id == ADMIN_ID


# === Personal Only ===


class TestPersonalOnlyFlow:
    def test_manual_review_then_completion(
        self,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
        mock_processor: MagicMock,
    ) -> None:
        booking_id = seed_booking(platform_paid=0, personal_paid=500_000, payment_intent_id=None)

        requested = customer.request_refund(booking_id, REASON)
        reviewed = admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)

        assert reviewed.refund.status == RefundStatus.MANUAL_REVIEW
        assert reviewed.status_label == "Manual Review Required"
        mock_processor.create_refund_intent.assert_not_called()

        completed = admin.complete_personal_refund(requested.refund.refund_id, PERSONAL_NOTES)

        assert completed.refund.status == RefundStatus.COMPLETED


# === Rejection ===


class TestRejectionFlow:
    def test_rejected_request_is_terminal(
        self,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
    ) -> None:
        booking_id = seed_booking()
        requested = customer.request_refund(booking_id, REASON)

        rejected = admin.process_refund(
            requested.refund.refund_id, RefundAction.REJECT, notes="not eligible"
        )
        assert rejected.refund.status == RefundStatus.REJECTED

        with pytest.raises(RefundClientError) as exc_info:
            admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "ERR_002"

        again = customer.request_refund(booking_id, REASON + " - with documents")
        assert again.refund.status == RefundStatus.PENDING
        assert len(customer.get_my_refunds()) == 2
        assert len(customer.get_my_refunds(RefundStatus.REJECTED)) == 1


# === Processor Failure ===


class TestProcessorFailureFlow:
    def test_failed_refund_is_not_retried(
        self,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
        mock_processor: MagicMock,
    ) -> None:
        requested = customer.request_refund(seed_booking(), REASON)
        approved = admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)
        mock_processor.create_refund.side_effect = StripeServiceError("Request timed out")

        with pytest.raises(RefundClientError) as exc_info:
            admin.confirm_refund_intent(approved.refund.refund_intent_id or "")

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["status"] == "failed"
        details = admin.get_refund_details(requested.refund.refund_id)
        assert details.refund.status == RefundStatus.FAILED
        assert details.status_label == "Failed"
        assert mock_processor.create_refund.call_count == 1


# === Webhook Resolution ===


class TestWebhookFlow:
    def test_pending_refund_resolved_by_webhook(
        self,
        api_client: TestClient,
        customer: RefundClient,
        admin: RefundClient,
        seed_booking: Callable[..., str],
        mock_processor: MagicMock,
    ) -> None:
        requested = customer.request_refund(seed_booking(), REASON)
        approved = admin.process_refund(requested.refund.refund_id, RefundAction.APPROVE)
        mock_processor.create_refund.side_effect = None
        mock_processor.create_refund.return_value = {
            "refund_id": "re_pending",
            "amount": approved.refund.platform_refund,
            "status": "pending",
        }
        intent_id = approved.refund.refund_intent_id or ""

        waiting = admin.confirm_refund_intent(intent_id)
        assert waiting.refund.status == RefundStatus.PROCESSING

        event = {
            "id": "evt_refund_done",
            "type": "refund.updated",
            "data": {
                "object": {
                    "id": "re_pending",
                    "status": "succeeded",
                    "metadata": {
                        "refund_id": requested.refund.refund_id,
                        "refund_intent_id": intent_id,
                    },
                }
            },
        }
        mock_processor.verify_webhook_signature.return_value = event
        response = api_client.post(
            "/api/webhooks/stripe",
            content=json.dumps(event).encode(),
            headers={"Stripe-Signature": "t=1,v1=abc"},
        )

        assert response.json()["processing_result"] == "success"
        assert customer.get_refund(requested.refund.refund_id).refund.status == RefundStatus.COMPLETED
