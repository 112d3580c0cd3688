"""Booking store for the data the refund workflow reads from bookings.

Bookings and payments are owned by the booking service; this module only
reads them and flags a booking as refunded once its refund completes.
"""

import datetime as dt
from typing import Any

from staybook_shared.config import get_settings
from staybook_shared.models.booking import Booking, PaymentSummary
from staybook_shared.models.enums import (
    BookingStatus,
    PaymentProvider,
    PaymentStatus,
    TransactionStatus,
)
from staybook_shared.services.dynamodb import DynamoDBService


def parse_timestamp(value: str) -> dt.datetime:
    """Parse an ISO timestamp or date, treating naive values as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = dt.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


class BookingStore:
    """Reads bookings and their payments from DynamoDB."""

    BOOKINGS_TABLE = "bookings"
    PAYMENTS_TABLE = "payments"
    PAYMENTS_BOOKING_INDEX = "booking-index"

    def __init__(self, db: DynamoDBService, default_currency: str | None = None) -> None:
        self.db = db
        self.default_currency = default_currency or get_settings().currency

    def get_booking(self, booking_id: str) -> Booking | None:
        """Get a booking by ID.

        Args:
            booking_id: Booking ID

        Returns:
            Booking or None if not found
        """
        item = self.db.get_item(self.BOOKINGS_TABLE, {"booking_id": booking_id})
        return self._item_to_booking(item) if item else None

    def get_payment_summary(self, booking_id: str) -> PaymentSummary:
        """Sum the completed payments for a booking by provider.

        Stripe payments are held by the platform and can be refunded through
        the processor. Personal payments went straight to the host.

        Args:
            booking_id: Booking ID

        Returns:
            PaymentSummary (all zero when nothing was paid)
        """
        items = self.db.query_by_gsi(
            self.PAYMENTS_TABLE,
            self.PAYMENTS_BOOKING_INDEX,
            "booking_id",
            booking_id,
        )
        completed = [
            item for item in items if item.get("status") == TransactionStatus.COMPLETED.value
        ]
        completed.sort(key=lambda item: item.get("created_at", ""))

        platform_paid = 0
        personal_paid = 0
        payment_intent_id: str | None = None
        currency = self.default_currency
        for item in completed:
            amount = int(item.get("amount", 0))
            currency = item.get("currency", currency)
            if item.get("provider") == PaymentProvider.PERSONAL.value:
                personal_paid += amount
            else:
                platform_paid += amount
                payment_intent_id = item.get("stripe_payment_intent_id") or payment_intent_id

        return PaymentSummary(
            amount_paid=platform_paid + personal_paid,
            platform_paid=platform_paid,
            personal_paid=personal_paid,
            payment_intent_id=payment_intent_id,
            currency=currency,
        )

    def mark_refunded(self, booking_id: str, refunded_amount: int) -> bool:
        """Flag a booking's payment status as refunded.

        Args:
            booking_id: Booking ID
            refunded_amount: Total refunded in cents

        Returns:
            True if the booking exists and was updated
        """
        result = self.db.update_item(
            self.BOOKINGS_TABLE,
            {"booking_id": booking_id},
            "SET payment_status = :refunded, refunded_amount = :amount, updated_at = :now",
            {
                ":refunded": PaymentStatus.REFUNDED.value,
                ":amount": refunded_amount,
                ":now": dt.datetime.now(dt.UTC).isoformat(),
            },
            condition_expression="attribute_exists(booking_id)",
        )
        return result is not None

    @staticmethod
    def _item_to_booking(item: dict[str, Any]) -> Booking:
        return Booking(
            booking_id=item["booking_id"],
            client_id=item["client_id"],
            host_id=item["host_id"],
            listing_title=item.get("listing_title"),
            check_in=parse_timestamp(item["check_in"]),
            status=BookingStatus(item["status"]),
            payment_status=PaymentStatus(item.get("payment_status", PaymentStatus.PENDING.value)),
        )
