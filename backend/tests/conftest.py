"""Pytest configuration and fixtures for Staybook refunds backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (all refund workflow tables)
- Booking and payment seed helpers
- A mocked Stripe processor and a wired RefundService
- A FastAPI TestClient with service dependencies overridden
"""

import datetime as dt
import os
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-staybook")
os.environ.setdefault("ENVIRONMENT", "dev")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TABLE_PREFIX = "test-staybook"

CLIENT_ID = "client-sub-001"
OTHER_CLIENT_ID = "client-sub-002"
ADMIN_ID = "admin-sub-001"
HOST_ID = "host-sub-001"
PAYMENT_INTENT_ID = "pi_3TEST000PLATFORM"


# === Singleton Resets ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws need a fresh DynamoDBService created inside the
    mock context rather than one left over from a previous test.
    """
    from staybook_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


def _table(
    name: str,
    key: str,
    indexes: dict[str, str] | None = None,
) -> dict[str, Any]:
    attributes = {key} | set((indexes or {}).values())
    definition: dict[str, Any] = {
        "TableName": f"{TABLE_PREFIX}-{name}",
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": attr, "AttributeType": "S"} for attr in sorted(attributes)
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        definition["GlobalSecondaryIndexes"] = [
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": attr, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for index_name, attr in indexes.items()
        ]
    return definition


TABLES = [
    _table("bookings", "booking_id"),
    _table("payments", "payment_id", {"booking-index": "booking_id"}),
    _table(
        "refunds",
        "refund_id",
        {"client-index": "client_id", "refund-intent-index": "refund_intent_id"},
    ),
    _table("refund-booking-locks", "booking_id"),
    _table("notifications", "notification_id"),
    _table("stripe-webhook-events", "event_id"),
]


@pytest.fixture
def dynamodb_tables() -> Generator[None, None, None]:
    """Create all refund workflow tables inside a moto mock."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        for table in TABLES:
            client.create_table(**table)
        yield


@pytest.fixture
def db(dynamodb_tables: None) -> Any:
    """DynamoDBService bound to the mocked tables."""
    from staybook_shared.services.dynamodb import DynamoDBService

    return DynamoDBService(name_prefix=TABLE_PREFIX)


# === Seed Helpers ===


@pytest.fixture
def seed_booking(db: Any) -> Callable[..., str]:
    """Insert a booking and its completed payments.

    Amounts are in centavos. ``platform_paid`` is recorded as a Stripe
    payment, ``personal_paid`` as a direct payment to the host.
    """

    def _seed(
        booking_id: str = "BKG-0001",
        *,
        client_id: str = CLIENT_ID,
        check_in: dt.datetime | None = None,
        status: str = "cancelled",
        payment_status: str = "paid",
        platform_paid: int = 1_000_000,
        personal_paid: int = 0,
        payment_intent_id: str | None = PAYMENT_INTENT_ID,
    ) -> str:
        check_in = check_in or dt.datetime.now(dt.UTC) + dt.timedelta(days=10)
        db.put_item(
            "bookings",
            {
                "booking_id": booking_id,
                "client_id": client_id,
                "host_id": HOST_ID,
                "listing_title": "Siargao Beach Villa",
                "check_in": check_in.isoformat(),
                "status": status,
                "payment_status": payment_status,
            },
        )
        if platform_paid:
            payment: dict[str, Any] = {
                "payment_id": f"PAY-{booking_id}-1",
                "booking_id": booking_id,
                "amount": platform_paid,
                "currency": "PHP",
                "status": "completed",
                "provider": "stripe",
                "created_at": "2026-01-01T10:00:00+00:00",
            }
            if payment_intent_id:
                payment["stripe_payment_intent_id"] = payment_intent_id
            db.put_item("payments", payment)
        if personal_paid:
            db.put_item(
                "payments",
                {
                    "payment_id": f"PAY-{booking_id}-2",
                    "booking_id": booking_id,
                    "amount": personal_paid,
                    "currency": "PHP",
                    "status": "completed",
                    "provider": "personal",
                    "created_at": "2026-01-01T11:00:00+00:00",
                },
            )
        return booking_id

    return _seed


# === Service Fixtures ===


@pytest.fixture
def mock_processor() -> MagicMock:
    """Stripe processor that verifies payments and refunds immediately."""
    from staybook_shared.services.stripe_service import StripeService

    processor = MagicMock(spec=StripeService)
    processor.create_refund_intent.side_effect = lambda **kwargs: {
        "refund_intent_id": f"rfi_{kwargs['refund_id'].lower()}",
        "payment_intent_id": kwargs["payment_intent_id"],
        "amount": kwargs["amount_cents"],
    }
    processor.create_refund.side_effect = lambda **kwargs: {
        "refund_id": "re_3TEST000REFUND",
        "amount": kwargs["amount_cents"],
        "status": "succeeded",
    }
    processor.compute_payload_hash.side_effect = StripeService.compute_payload_hash
    return processor


@pytest.fixture
def refund_service(db: Any, mock_processor: MagicMock) -> Any:
    """RefundService wired to mocked tables and processor."""
    from staybook_shared.config import DEFAULT_POLICY_TIERS
    from staybook_shared.services.booking_store import BookingStore
    from staybook_shared.services.notification_service import NotificationService
    from staybook_shared.services.refund_policy_service import RefundPolicyService
    from staybook_shared.services.refund_service import RefundService

    return RefundService(
        db=db,
        bookings=BookingStore(db),
        policy=RefundPolicyService(DEFAULT_POLICY_TIERS),
        processor=mock_processor,
        notifications=NotificationService(db),
    )


@pytest.fixture
def webhook_handler(db: Any, refund_service: Any) -> Any:
    from staybook_shared.services.webhook_handler import WebhookHandler

    return WebhookHandler(db=db, refunds=refund_service)


# === API Fixtures ===


@pytest.fixture
def api_client(
    refund_service: Any,
    webhook_handler: Any,
    mock_processor: MagicMock,
) -> Generator[Any, None, None]:
    """TestClient with service dependencies pointed at the mocks."""
    from fastapi.testclient import TestClient

    from staybook_api.dependencies import get_processor, get_refund_service, get_webhook_handler
    from staybook_api.main import app

    app.dependency_overrides[get_refund_service] = lambda: refund_service
    app.dependency_overrides[get_webhook_handler] = lambda: webhook_handler
    app.dependency_overrides[get_processor] = lambda: mock_processor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

