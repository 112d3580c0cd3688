"""Refund request lifecycle rules.

The only place that knows which status changes are allowed. Functions here
have no side effects; the refund service persists what they return.

    pending -> approved -> processing -> completed | partial_completed | failed
    pending -> manual_review            (approval with nothing held by the platform)
    partial_completed | manual_review -> completed   (personal portion returned)
    pending -> rejected
"""

import datetime as dt
from collections.abc import Callable
from typing import Any

from staybook_shared.models.enums import RefundStatus
from staybook_shared.models.errors import InvalidStateError, ValidationError
from staybook_shared.models.refund import RefundBreakdown, RefundRequest

TERMINAL_STATES: frozenset[RefundStatus] = frozenset(
    {
        RefundStatus.COMPLETED,
        RefundStatus.REJECTED,
        RefundStatus.FAILED,
    }
)

# States that still need an admin (or the processor) to act
ACTION_REQUIRED_STATES: frozenset[RefundStatus] = frozenset(
    {
        RefundStatus.PENDING,
        RefundStatus.APPROVED,
        RefundStatus.PARTIAL_COMPLETED,
        RefundStatus.MANUAL_REVIEW,
    }
)

ALLOWED_TRANSITIONS: dict[RefundStatus, frozenset[RefundStatus]] = {
    RefundStatus.PENDING: frozenset(
        {RefundStatus.APPROVED, RefundStatus.MANUAL_REVIEW, RefundStatus.REJECTED}
    ),
    RefundStatus.APPROVED: frozenset({RefundStatus.PROCESSING}),
    RefundStatus.PROCESSING: frozenset(
        {RefundStatus.COMPLETED, RefundStatus.PARTIAL_COMPLETED, RefundStatus.FAILED}
    ),
    RefundStatus.PARTIAL_COMPLETED: frozenset({RefundStatus.COMPLETED}),
    RefundStatus.MANUAL_REVIEW: frozenset({RefundStatus.COMPLETED}),
}

# Conditions checked against the record as it will be stored
_GUARDS: dict[tuple[RefundStatus, RefundStatus], tuple[Callable[[RefundRequest], bool], str]] = {
    (RefundStatus.PENDING, RefundStatus.APPROVED): (
        lambda r: r.platform_refund > 0 and bool(r.refund_intent_id),
        "approval needs a platform refund amount and a refund intent",
    ),
    (RefundStatus.PENDING, RefundStatus.MANUAL_REVIEW): (
        lambda r: r.platform_refund == 0,
        "manual review is only for refunds with no platform portion",
    ),
    (RefundStatus.PROCESSING, RefundStatus.COMPLETED): (
        lambda r: r.personal_paid == 0,
        "a personal payment portion must be completed manually",
    ),
    (RefundStatus.PROCESSING, RefundStatus.PARTIAL_COMPLETED): (
        lambda r: r.personal_paid > 0,
        "partial completion requires a personal payment portion",
    ),
    (RefundStatus.PENDING, RefundStatus.REJECTED): (
        lambda r: bool(r.admin_notes and r.admin_notes.strip()),
        "rejection requires notes",
    ),
}


def can_transition(from_status: RefundStatus, to_status: RefundStatus) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def transition(
    refund: RefundRequest,
    target: RefundStatus,
    *,
    now: dt.datetime | None = None,
    **changes: Any,
) -> RefundRequest:
    """Return a copy of ``refund`` moved to ``target`` with ``changes`` applied.

    The guard for the transition is evaluated on the updated record. The
    version is bumped so the caller can persist with a conditional write.

    Raises:
        InvalidStateError: If the transition or its guard is not satisfied
    """
    if not can_transition(refund.status, target):
        raise InvalidStateError(
            f"Refund {refund.refund_id} cannot move from '{refund.status.value}' "
            f"to '{target.value}'",
            details={"current_status": refund.status.value, "target_status": target.value},
        )

    now = now or dt.datetime.now(dt.UTC)
    data = refund.model_dump()
    data.update(changes)
    data.update(status=target, version=refund.version + 1, updated_at=now)
    updated = RefundRequest.model_validate(data)

    guard = _GUARDS.get((refund.status, target))
    if guard is not None:
        check, reason = guard
        if not check(updated):
            raise InvalidStateError(
                f"Refund {refund.refund_id} cannot move to '{target.value}': {reason}",
                details={"current_status": refund.status.value, "target_status": target.value},
            )
    return updated


def success_status_for(refund: RefundRequest) -> RefundStatus:
    """Status after the processor returns the platform portion."""
    if refund.personal_paid > 0:
        return RefundStatus.PARTIAL_COMPLETED
    return RefundStatus.COMPLETED


def calculate_breakdown(
    amount_paid: int,
    platform_paid: int,
    personal_paid: int,
    *,
    refund_percentage: int | None = None,
    custom_amount: int | None = None,
) -> RefundBreakdown:
    """Split a refund between platform and personal funds.

    The refund is ``amount_paid * refund_percentage / 100`` rounded half up
    to whole cents unless the admin supplies ``custom_amount``. Each funding source is refunded in
    proportion to what it received. The platform share is rounded down and
    the personal share takes the remainder, so the parts sum exactly.

    Raises:
        ValidationError: If the amounts are inconsistent or the custom
            amount is outside ``[0, amount_paid]``
    """
    if platform_paid < 0 or personal_paid < 0 or platform_paid + personal_paid != amount_paid:
        raise ValidationError(
            "Payment amounts are inconsistent",
            details={
                "amount_paid": amount_paid,
                "platform_paid": platform_paid,
                "personal_paid": personal_paid,
            },
        )

    if custom_amount is not None:
        if isinstance(custom_amount, bool) or not isinstance(custom_amount, int):
            raise ValidationError("Custom amount must be a whole number of cents")
        if custom_amount < 0 or custom_amount > amount_paid:
            raise ValidationError(
                "Custom amount must be between 0 and the amount paid",
                details={"custom_amount": custom_amount, "amount_paid": amount_paid},
            )
        refund_amount = custom_amount
        percentage = round(custom_amount * 100 / amount_paid) if amount_paid else 0
    else:
        if refund_percentage is None or not 0 <= refund_percentage <= 100:
            raise ValidationError("Refund percentage must be between 0 and 100")
        percentage = refund_percentage
        refund_amount = (amount_paid * percentage + 50) // 100

    platform_refund = refund_amount * platform_paid // amount_paid if amount_paid else 0
    return RefundBreakdown(
        refund_percentage=percentage,
        refund_amount=refund_amount,
        deduction_amount=amount_paid - refund_amount,
        platform_refund=platform_refund,
        personal_refund=refund_amount - platform_refund,
    )
