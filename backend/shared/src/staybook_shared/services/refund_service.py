"""Refund lifecycle controller.

Validates refund requests against bookings and payments, computes the
refund breakdown from the cancellation policy, drives the Stripe refund for
the platform-held portion and records every status change.

Every write is conditional on the status and version that were read, so two
admins acting on the same request cannot both succeed. A booking can have
only one active request: creating one also writes a lock item keyed by
booking ID in the same transaction.
"""

import datetime as dt
import uuid
from typing import Any

from staybook_shared.models.enums import (
    BookingStatus,
    NotificationType,
    PaymentStatus,
    RefundAction,
    RefundStatus,
)
from staybook_shared.models.errors import (
    AuthorizationError,
    ConcurrentModificationError,
    ErrorCode,
    InvalidStateError,
    NotFoundError,
    ProcessorError,
    ValidationError,
)
from staybook_shared.models.refund import Pagination, RefundPage, RefundRequest
from staybook_shared.services.booking_store import BookingStore, parse_timestamp
from staybook_shared.services.dynamodb import DynamoDBService
from staybook_shared.services.notification_service import NotificationService
from staybook_shared.services.refund_lifecycle import (
    calculate_breakdown,
    success_status_for,
    transition,
)
from staybook_shared.services.refund_policy_service import RefundPolicyService
from staybook_shared.services.refund_presenter import calculate_statistics, format_currency
from staybook_shared.services.stripe_service import StripeService, StripeServiceError
from staybook_shared.utils.logging import get_logger, log_refund_operation

logger = get_logger(__name__)

# Admin listing order: new requests first, then in-flight ones, then closed
_LIST_PRIORITY: dict[RefundStatus, int] = {
    RefundStatus.PENDING: 0,
    RefundStatus.APPROVED: 1,
    RefundStatus.PROCESSING: 1,
    RefundStatus.PARTIAL_COMPLETED: 1,
    RefundStatus.MANUAL_REVIEW: 1,
}

_INT_FIELDS = (
    "amount_paid",
    "platform_paid",
    "personal_paid",
    "hours_before_checkin",
    "refund_percentage",
    "refund_amount",
    "deduction_amount",
    "platform_refund",
    "personal_refund",
    "version",
)

_DATETIME_FIELDS = ("created_at", "updated_at", "processed_at")


class RefundService:
    """Service for the refund request lifecycle."""

    REFUNDS_TABLE = "refunds"
    LOCKS_TABLE = "refund-booking-locks"
    CLIENT_INDEX = "client-index"
    REFUND_INTENT_INDEX = "refund-intent-index"

    MIN_REASON_LENGTH = 10
    MIN_PERSONAL_NOTES_LENGTH = 10
    ESTIMATED_PROCESSING_TIME = "2-5 business days"
    DEFAULT_PAGE_LIMIT = 50
    MAX_PAGE_LIMIT = 100

    def __init__(
        self,
        db: DynamoDBService,
        bookings: BookingStore,
        policy: RefundPolicyService,
        processor: StripeService,
        notifications: NotificationService,
    ) -> None:
        """Initialize refund service.

        Args:
            db: DynamoDB service instance
            bookings: Booking and payment reads
            policy: Cancellation policy evaluation
            processor: Stripe refund operations
            notifications: Notification storage
        """
        self.db = db
        self.bookings = bookings
        self.policy = policy
        self.processor = processor
        self.notifications = notifications

    # =========================================================================
    # Customer operations
    # =========================================================================

    def request_refund(
        self,
        *,
        client_id: str,
        booking_id: str,
        reason: str,
        requested_at: dt.datetime | None = None,
    ) -> RefundRequest:
        """Create a pending refund request for a cancelled booking.

        Args:
            client_id: Requesting customer
            booking_id: Cancelled booking to refund
            reason: Customer's reason (at least 10 characters)
            requested_at: Request time used for the policy (defaults to now)

        Returns:
            The new pending RefundRequest

        Raises:
            ValidationError: Short reason, nothing paid, or nothing refundable
            NotFoundError: Booking does not exist
            AuthorizationError: Booking belongs to another customer
            InvalidStateError: Booking not cancelled, already refunded, or
                already has a refund request
        """
        reason = (reason or "").strip()
        if len(reason) < self.MIN_REASON_LENGTH:
            raise ValidationError(
                f"Reason must be at least {self.MIN_REASON_LENGTH} characters",
                details={"field": "reason"},
            )

        booking = self.bookings.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(code=ErrorCode.BOOKING_NOT_FOUND, details={"booking_id": booking_id})
        if booking.client_id != client_id:
            raise AuthorizationError(
                "You can only request refunds for your own bookings",
                code=ErrorCode.NOT_OWNER,
                details={"booking_id": booking_id},
            )
        if booking.status != BookingStatus.CANCELLED:
            raise InvalidStateError(
                "Only cancelled bookings can be refunded",
                details={"booking_id": booking_id, "booking_status": booking.status.value},
            )
        if booking.payment_status == PaymentStatus.REFUNDED:
            raise InvalidStateError(
                "This booking has already been refunded", details={"booking_id": booking_id}
            )

        payments = self.bookings.get_payment_summary(booking_id)
        if payments.amount_paid <= 0:
            raise ValidationError(
                "No completed payment found for this booking", details={"booking_id": booking_id}
            )
        if payments.platform_paid > 0 and not payments.payment_intent_id:
            raise ValidationError(
                "The platform payment has no Stripe payment intent",
                details={"booking_id": booking_id},
            )

        now = requested_at or dt.datetime.now(dt.UTC)
        decision = self.policy.evaluate_booking(booking.check_in, now)
        breakdown = calculate_breakdown(
            payments.amount_paid,
            payments.platform_paid,
            payments.personal_paid,
            refund_percentage=decision.refund_percentage,
        )
        if breakdown.refund_amount == 0:
            raise ValidationError(
                "No refundable amount under the cancellation policy",
                details={"booking_id": booking_id, "policy": decision.description},
            )

        refund = RefundRequest(
            refund_id=self._generate_refund_id(),
            booking_id=booking_id,
            client_id=client_id,
            host_id=booking.host_id,
            listing_title=booking.listing_title,
            currency=payments.currency,
            amount_paid=payments.amount_paid,
            platform_paid=payments.platform_paid,
            personal_paid=payments.personal_paid,
            reason=reason,
            hours_before_checkin=decision.hours_before_checkin,
            policy_description=decision.description,
            payment_intent_id=payments.payment_intent_id,
            status=RefundStatus.PENDING,
            created_at=now,
            updated_at=now,
            **breakdown.model_dump(),
        )

        if not self._create(refund):
            raise InvalidStateError(
                "A refund request already exists for this booking",
                details={"booking_id": booking_id},
            )

        amount = format_currency(refund.refund_amount, refund.currency)
        self.notifications.notify_admins(
            NotificationType.REFUND_REQUEST,
            f"New refund request for {self._listing(refund)}: {amount}",
            refund_id=refund.refund_id,
        )
        self.notifications.notify(
            client_id,
            NotificationType.REFUND_REQUESTED,
            f"Your refund request for {amount} was submitted and is pending review",
            refund_id=refund.refund_id,
        )
        log_refund_operation(
            logger,
            "request_refund",
            refund_id=refund.refund_id,
            booking_id=booking_id,
            status=refund.status.value,
            amount_cents=refund.refund_amount,
            refund_percentage=refund.refund_percentage,
        )
        return refund

    def list_my_refunds(
        self,
        client_id: str,
        status: RefundStatus | None = None,
    ) -> list[RefundRequest]:
        """List a customer's refund requests, newest first."""
        items = self.db.query_by_gsi(
            self.REFUNDS_TABLE,
            self.CLIENT_INDEX,
            "client_id",
            client_id,
        )
        refunds = [self._item_to_refund(item) for item in items]
        if status is not None:
            refunds = [r for r in refunds if r.status == status]
        refunds.sort(key=lambda r: r.created_at, reverse=True)
        return refunds

    def get_refund_for_client(self, refund_id: str, client_id: str) -> RefundRequest:
        """Get a refund request owned by ``client_id``.

        Raises:
            NotFoundError: Refund request does not exist
            AuthorizationError: Request belongs to another customer
        """
        refund = self.get_refund(refund_id)
        if refund.client_id != client_id:
            raise AuthorizationError(code=ErrorCode.NOT_OWNER, details={"refund_id": refund_id})
        return refund

    # =========================================================================
    # Admin operations
    # =========================================================================

    def get_refund(self, refund_id: str) -> RefundRequest:
        """Get a refund request by ID.

        Raises:
            NotFoundError: Refund request does not exist
        """
        item = self.db.get_item(self.REFUNDS_TABLE, {"refund_id": refund_id}, consistent_read=True)
        if not item:
            raise NotFoundError(details={"refund_id": refund_id})
        return self._item_to_refund(item)

    def list_refunds(
        self,
        status: RefundStatus | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> RefundPage:
        """List refund requests for admins.

        Requests needing action come first, newest first within each group.
        Statistics always cover every request regardless of the filter.

        Args:
            status: Optional status filter
            page: 1-based page number
            limit: Page size (1-100)

        Returns:
            RefundPage with the page, statistics and pagination
        """
        if page < 1 or not 1 <= limit <= self.MAX_PAGE_LIMIT:
            raise ValidationError(
                f"page must be >= 1 and limit between 1 and {self.MAX_PAGE_LIMIT}",
                details={"page": page, "limit": limit},
            )

        everything = [self._item_to_refund(item) for item in self.db.scan(self.REFUNDS_TABLE)]
        statistics = calculate_statistics(everything)

        matching = [r for r in everything if status is None or r.status == status]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        matching.sort(key=lambda r: _LIST_PRIORITY.get(r.status, 2))

        start = (page - 1) * limit
        return RefundPage(
            refunds=matching[start : start + limit],
            statistics=statistics,
            pagination=Pagination(page=page, limit=limit, total=len(matching)),
        )

    def process_refund(
        self,
        refund_id: str,
        *,
        admin_id: str,
        action: RefundAction | str,
        notes: str | None = None,
        custom_amount: int | None = None,
    ) -> RefundRequest:
        """Approve or reject a pending refund request."""
        try:
            action = RefundAction(action)
        except ValueError as e:
            raise ValidationError(
                "Action must be 'approve' or 'reject'", details={"action": str(action)}
            ) from e

        if action == RefundAction.APPROVE:
            return self.approve_refund(
                refund_id, admin_id=admin_id, notes=notes, custom_amount=custom_amount
            )
        return self.reject_refund(refund_id, admin_id=admin_id, notes=notes)

    def approve_refund(
        self,
        refund_id: str,
        *,
        admin_id: str,
        notes: str | None = None,
        custom_amount: int | None = None,
    ) -> RefundRequest:
        """Approve a pending request and create its refund intent.

        A request with nothing held by the platform goes straight to manual
        review; otherwise Stripe verifies the original payment and the
        request becomes approved, waiting for confirmation.

        Args:
            refund_id: Pending refund request
            admin_id: Approving admin
            notes: Optional admin notes
            custom_amount: Override of the policy amount, in cents

        Raises:
            InvalidStateError: Request is not pending
            ValidationError: custom_amount outside [0, amount_paid]
            ProcessorError: Stripe could not verify the payment (request stays pending)
        """
        refund = self.get_refund(refund_id)
        self._require_status(refund, RefundStatus.PENDING)

        breakdown = calculate_breakdown(
            refund.amount_paid,
            refund.platform_paid,
            refund.personal_paid,
            refund_percentage=refund.refund_percentage,
            custom_amount=custom_amount,
        )
        now = dt.datetime.now(dt.UTC)
        changes: dict[str, Any] = {
            **breakdown.model_dump(),
            "custom_amount_applied": custom_amount is not None,
            "admin_notes": notes.strip() if notes else refund.admin_notes,
            "processed_by_user_id": admin_id,
            "processed_at": now,
        }

        if breakdown.platform_refund == 0:
            updated = transition(refund, RefundStatus.MANUAL_REVIEW, now=now, **changes)
            self._save(updated, refund)
            self.notifications.notify(
                refund.client_id,
                NotificationType.REFUND_MANUAL_REVIEW,
                f"Your refund of {format_currency(updated.refund_amount, updated.currency)} "
                "was approved and will be returned directly by the host",
                refund_id=refund_id,
            )
            log_refund_operation(
                logger,
                "approve_refund",
                refund_id=refund_id,
                booking_id=refund.booking_id,
                status=updated.status.value,
                amount_cents=updated.refund_amount,
            )
            return updated

        if not refund.payment_intent_id:
            raise ProcessorError(
                "No Stripe payment intent recorded for this refund",
                details={"refund_id": refund_id},
            )

        try:
            intent = self.processor.create_refund_intent(
                payment_intent_id=refund.payment_intent_id,
                amount_cents=breakdown.platform_refund,
                refund_id=refund_id,
            )
        except StripeServiceError as e:
            log_refund_operation(
                logger,
                "approve_refund",
                refund_id=refund_id,
                booking_id=refund.booking_id,
                status=refund.status.value,
                error=str(e),
            )
            raise ProcessorError(
                f"Could not create refund intent: {e}",
                details={"refund_id": refund_id, "stripe_error_code": e.stripe_error_code},
            ) from e

        updated = transition(
            refund,
            RefundStatus.APPROVED,
            now=now,
            refund_intent_id=intent["refund_intent_id"],
            **changes,
        )
        self._save(updated, refund)

        self.notifications.notify(
            refund.client_id,
            NotificationType.REFUND_APPROVED,
            f"Your refund of {format_currency(updated.refund_amount, updated.currency)} was "
            f"approved. Expect it within {self.ESTIMATED_PROCESSING_TIME}",
            refund_id=refund_id,
        )
        log_refund_operation(
            logger,
            "approve_refund",
            refund_id=refund_id,
            booking_id=refund.booking_id,
            status=updated.status.value,
            amount_cents=updated.platform_refund,
            refund_intent_id=updated.refund_intent_id,
        )
        return updated

    def reject_refund(
        self,
        refund_id: str,
        *,
        admin_id: str,
        notes: str | None,
    ) -> RefundRequest:
        """Reject a pending request. The booking may then be requested again.

        Raises:
            ValidationError: Notes missing
            InvalidStateError: Request is not pending
        """
        refund = self.get_refund(refund_id)
        self._require_status(refund, RefundStatus.PENDING)

        notes = (notes or "").strip()
        if not notes:
            raise ValidationError("Rejection notes are required", details={"field": "notes"})

        now = dt.datetime.now(dt.UTC)
        updated = transition(
            refund,
            RefundStatus.REJECTED,
            now=now,
            admin_notes=notes,
            processed_by_user_id=admin_id,
            processed_at=now,
        )
        self._save(updated, refund)
        self.db.delete_item(self.LOCKS_TABLE, {"booking_id": refund.booking_id})

        self.notifications.notify(
            refund.client_id,
            NotificationType.REFUND_REJECTED,
            f"Your refund request for {self._listing(refund)} was rejected: {notes}",
            refund_id=refund_id,
        )
        log_refund_operation(
            logger,
            "reject_refund",
            refund_id=refund_id,
            booking_id=refund.booking_id,
            status=updated.status.value,
        )
        return updated

    def confirm_refund_intent(self, refund_intent_id: str, *, admin_id: str) -> RefundRequest:
        """Execute the Stripe refund for an approved request.

        Stripe is called with the intent ID as idempotency key. A pending
        Stripe refund leaves the request processing until the webhook
        reports the outcome. If the webhook lands before that is saved, the
        resolved request is returned.

        Raises:
            NotFoundError: No request has this intent
            InvalidStateError: Request is not approved
            ProcessorError: Stripe call failed or timed out (request is failed)
        """
        refund = self._get_by_intent(refund_intent_id)
        self._require_status(refund, RefundStatus.APPROVED)

        now = dt.datetime.now(dt.UTC)
        processing = transition(
            refund,
            RefundStatus.PROCESSING,
            now=now,
            processed_by_user_id=admin_id,
            processed_at=now,
        )
        self._save(processing, refund)
        log_refund_operation(
            logger,
            "confirm_refund_intent",
            refund_id=refund.refund_id,
            booking_id=refund.booking_id,
            status=processing.status.value,
            amount_cents=processing.platform_refund,
            refund_intent_id=refund_intent_id,
        )

        try:
            result = self.processor.create_refund(
                payment_intent_id=processing.payment_intent_id or "",
                amount_cents=processing.platform_refund,
                reason=processing.reason,
                idempotency_key=refund_intent_id,
                metadata={
                    "refund_id": processing.refund_id,
                    "refund_intent_id": refund_intent_id,
                    "booking_id": processing.booking_id,
                },
            )
        except StripeServiceError as e:
            failed = self._mark_failed(processing, str(e))
            raise ProcessorError(
                f"Refund could not be executed: {e}",
                details={
                    "refund_id": failed.refund_id,
                    "status": failed.status.value,
                    "stripe_error_code": e.stripe_error_code,
                },
            ) from e

        stripe_status = result.get("status")
        if stripe_status == "succeeded":
            return self._mark_succeeded(processing, result.get("refund_id"))
        if stripe_status in ("failed", "canceled"):
            return self._mark_failed(
                processing,
                f"Stripe reported refund {result.get('refund_id')} as {stripe_status}",
                processor_refund_id=result.get("refund_id"),
            )

        # pending / requires_action: the webhook resolves it later
        waiting = processing.model_copy(
            update={
                "processor_refund_id": result.get("refund_id"),
                "version": processing.version + 1,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        try:
            self._save(waiting, processing)
        except ConcurrentModificationError:
            # The webhook resolved the refund first
            return self.get_refund(processing.refund_id)
        return waiting

    def record_processor_outcome(
        self,
        refund_intent_id: str,
        *,
        succeeded: bool,
        processor_refund_id: str | None = None,
        failure_reason: str | None = None,
    ) -> RefundRequest:
        """Resolve a processing request from an asynchronous Stripe outcome.

        Raises:
            NotFoundError: No request has this intent
            InvalidStateError: Request is not processing (already resolved)
        """
        refund = self._get_by_intent(refund_intent_id)
        self._require_status(refund, RefundStatus.PROCESSING)

        if succeeded:
            return self._mark_succeeded(refund, processor_refund_id)
        return self._mark_failed(
            refund,
            failure_reason or "Stripe reported the refund as failed",
            processor_refund_id=processor_refund_id,
        )

    def complete_personal_refund(
        self,
        refund_id: str,
        *,
        admin_id: str,
        notes: str,
    ) -> RefundRequest:
        """Record that the personal portion was returned outside the platform.

        Raises:
            ValidationError: Notes shorter than 10 characters
            InvalidStateError: Request is not partial_completed or manual_review
        """
        notes = (notes or "").strip()
        if len(notes) < self.MIN_PERSONAL_NOTES_LENGTH:
            raise ValidationError(
                f"Notes must be at least {self.MIN_PERSONAL_NOTES_LENGTH} characters",
                details={"field": "notes"},
            )

        refund = self.get_refund(refund_id)
        self._require_status(refund, RefundStatus.PARTIAL_COMPLETED, RefundStatus.MANUAL_REVIEW)

        now = dt.datetime.now(dt.UTC)
        updated = transition(
            refund,
            RefundStatus.COMPLETED,
            now=now,
            personal_refund_notes=notes,
            processed_by_user_id=admin_id,
            processed_at=now,
        )
        self._save(updated, refund)
        self.bookings.mark_refunded(refund.booking_id, updated.refund_amount)

        self.notifications.notify(
            refund.client_id,
            NotificationType.REFUND_COMPLETED,
            f"Your refund of {format_currency(updated.refund_amount, updated.currency)} "
            "is complete",
            refund_id=refund_id,
        )
        log_refund_operation(
            logger,
            "complete_personal_refund",
            refund_id=refund_id,
            booking_id=refund.booking_id,
            status=updated.status.value,
            amount_cents=updated.personal_refund,
        )
        return updated

    # =========================================================================
    # Outcomes
    # =========================================================================

    def _mark_succeeded(
        self,
        refund: RefundRequest,
        processor_refund_id: str | None,
    ) -> RefundRequest:
        now = dt.datetime.now(dt.UTC)
        updated = transition(
            refund,
            success_status_for(refund),
            now=now,
            processor_refund_id=processor_refund_id or refund.processor_refund_id,
            processed_at=now,
        )
        self._save(updated, refund)

        platform_amount = format_currency(updated.platform_refund, updated.currency)
        if updated.status == RefundStatus.COMPLETED:
            self.bookings.mark_refunded(updated.booking_id, updated.refund_amount)
            self.notifications.notify(
                updated.client_id,
                NotificationType.REFUND_COMPLETED,
                f"Your refund of {platform_amount} has been sent",
                refund_id=updated.refund_id,
            )
        else:
            personal_amount = format_currency(updated.personal_refund, updated.currency)
            self.notifications.notify(
                updated.client_id,
                NotificationType.REFUND_PARTIAL_COMPLETED,
                f"{platform_amount} has been refunded. The remaining {personal_amount} "
                "will be returned directly by the host",
                refund_id=updated.refund_id,
            )
            self.notifications.notify_admins(
                NotificationType.REFUND_PARTIAL_COMPLETED,
                f"Manual refund of {personal_amount} needed for refund {updated.refund_id}",
                refund_id=updated.refund_id,
            )

        log_refund_operation(
            logger,
            "processor_refund_succeeded",
            refund_id=updated.refund_id,
            booking_id=updated.booking_id,
            status=updated.status.value,
            amount_cents=updated.platform_refund,
            processor_refund_id=updated.processor_refund_id,
        )
        return updated

    def _mark_failed(
        self,
        refund: RefundRequest,
        failure_reason: str,
        processor_refund_id: str | None = None,
    ) -> RefundRequest:
        now = dt.datetime.now(dt.UTC)
        updated = transition(
            refund,
            RefundStatus.FAILED,
            now=now,
            failure_reason=failure_reason,
            processor_refund_id=processor_refund_id or refund.processor_refund_id,
            processed_at=now,
        )
        self._save(updated, refund)

        self.notifications.notify(
            updated.client_id,
            NotificationType.REFUND_FAILED,
            "Your refund could not be processed automatically. Our team will resolve it manually",
            refund_id=updated.refund_id,
        )
        self.notifications.notify_admins(
            NotificationType.REFUND_FAILED,
            f"Refund {updated.refund_id} failed: {failure_reason}",
            refund_id=updated.refund_id,
        )
        log_refund_operation(
            logger,
            "processor_refund_failed",
            refund_id=updated.refund_id,
            booking_id=updated.booking_id,
            status=updated.status.value,
            error=failure_reason,
        )
        return updated

    # =========================================================================
    # Persistence
    # =========================================================================

    def _create(self, refund: RefundRequest) -> bool:
        """Store a new request together with its booking lock.

        Returns:
            False if the booking already has a request
        """
        lock = {
            "booking_id": refund.booking_id,
            "refund_id": refund.refund_id,
            "created_at": refund.created_at.isoformat(),
        }
        return self.db.transact_write(
            [
                self.db.put_request(
                    self.LOCKS_TABLE, lock, condition_expression="attribute_not_exists(booking_id)"
                ),
                self.db.put_request(
                    self.REFUNDS_TABLE,
                    self._refund_to_item(refund),
                    condition_expression="attribute_not_exists(refund_id)",
                ),
            ]
        )

    def _save(self, updated: RefundRequest, previous: RefundRequest) -> None:
        """Replace ``previous`` with ``updated`` if nobody changed it meanwhile.

        Raises:
            ConcurrentModificationError: The stored status or version moved on
        """
        saved = self.db.put_item(
            self.REFUNDS_TABLE,
            self._refund_to_item(updated),
            condition_expression="#status = :expected_status AND #version = :expected_version",
            expression_attribute_values={
                ":expected_status": previous.status.value,
                ":expected_version": previous.version,
            },
            expression_attribute_names={"#status": "status", "#version": "version"},
        )
        if not saved:
            log_refund_operation(
                logger,
                "save_refund",
                refund_id=updated.refund_id,
                status=updated.status.value,
                error="concurrent modification",
            )
            raise ConcurrentModificationError(
                details={"refund_id": updated.refund_id, "expected_status": previous.status.value}
            )

    def _get_by_intent(self, refund_intent_id: str) -> RefundRequest:
        items = self.db.query_by_gsi(
            self.REFUNDS_TABLE,
            self.REFUND_INTENT_INDEX,
            "refund_intent_id",
            refund_intent_id,
        )
        if not items:
            raise NotFoundError(
                "No refund request found for this refund intent",
                details={"refund_intent_id": refund_intent_id},
            )
        # GSIs are eventually consistent; re-read the base item
        return self.get_refund(items[0]["refund_id"])

    @staticmethod
    def _require_status(refund: RefundRequest, *allowed: RefundStatus) -> None:
        if refund.status not in allowed:
            raise InvalidStateError(
                f"Refund {refund.refund_id} is '{refund.status.value}', expected "
                + " or ".join(f"'{s.value}'" for s in allowed),
                details={"refund_id": refund.refund_id, "current_status": refund.status.value},
            )

    @staticmethod
    def _listing(refund: RefundRequest) -> str:
        return refund.listing_title or f"booking {refund.booking_id}"

    @staticmethod
    def _generate_refund_id() -> str:
        return f"RFD-{uuid.uuid4().hex[:12].upper()}"

    @staticmethod
    def _refund_to_item(refund: RefundRequest) -> dict[str, Any]:
        """Convert RefundRequest to a DynamoDB item, omitting empty fields."""
        data = refund.model_dump(mode="json")
        return {key: value for key, value in data.items() if value is not None}

    @staticmethod
    def _item_to_refund(item: dict[str, Any]) -> RefundRequest:
        """Convert a DynamoDB item to RefundRequest."""
        data = dict(item)
        for key in _INT_FIELDS:
            if key in data:
                data[key] = int(data[key])
        for key in _DATETIME_FIELDS:
            if data.get(key):
                data[key] = parse_timestamp(data[key])
        return RefundRequest.model_validate(data)
