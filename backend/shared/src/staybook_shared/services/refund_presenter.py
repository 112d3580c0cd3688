"""Display formatting for refund requests.

Turns RefundRequest records into RefundView objects for the web app: badge
label and colours, formatted amounts, relative times and the action flags
that decide which buttons an admin sees. Every view reads status styling
from the single STATUS_PRESENTATION table below.
"""

import datetime as dt
from collections.abc import Iterable

from pydantic import BaseModel, Field

from staybook_shared.models.enums import RefundStatus
from staybook_shared.models.refund import RefundRequest, RefundStatistics
from staybook_shared.services.refund_lifecycle import ACTION_REQUIRED_STATES

CURRENCY_SYMBOLS: dict[str, str] = {
    "PHP": "₱",
    "USD": "$",
    "EUR": "€",
}


class StatusBadge(BaseModel):
    """How a status is rendered."""

    label: str
    color: str = Field(..., description="Tailwind classes for the badge")
    icon: str


STATUS_PRESENTATION: dict[RefundStatus, StatusBadge] = {
    RefundStatus.PENDING: StatusBadge(
        label="Pending Review", color="bg-yellow-100 text-yellow-800", icon="clock"
    ),
    RefundStatus.APPROVED: StatusBadge(
        label="Approved - Awaiting Confirmation",
        color="bg-indigo-100 text-indigo-800",
        icon="check",
    ),
    RefundStatus.PROCESSING: StatusBadge(
        label="Processing", color="bg-blue-100 text-blue-800", icon="refresh"
    ),
    RefundStatus.COMPLETED: StatusBadge(
        label="Completed", color="bg-green-100 text-green-800", icon="check-circle"
    ),
    RefundStatus.PARTIAL_COMPLETED: StatusBadge(
        label="Partially Completed", color="bg-teal-100 text-teal-800", icon="alert-circle"
    ),
    RefundStatus.MANUAL_REVIEW: StatusBadge(
        label="Manual Review Required", color="bg-purple-100 text-purple-800", icon="user-check"
    ),
    RefundStatus.REJECTED: StatusBadge(
        label="Rejected", color="bg-red-100 text-red-800", icon="x-circle"
    ),
    RefundStatus.FAILED: StatusBadge(
        label="Failed", color="bg-red-100 text-red-800", icon="alert-triangle"
    ),
}


class RefundView(BaseModel):
    """A refund request ready for display."""

    refund: RefundRequest
    status_label: str
    status_color: str
    status_icon: str

    formatted_amount_paid: str
    formatted_refund_amount: str
    formatted_deduction: str
    formatted_platform_refund: str
    formatted_personal_refund: str
    refund_percentage_text: str

    has_personal_payment: bool
    requires_manual_refund: bool
    can_process: bool
    can_confirm: bool
    can_complete_manual: bool

    formatted_date: str
    time_ago: str


def format_currency(amount_cents: int, currency: str = "PHP") -> str:
    """Format minor units for display, e.g. ``800000`` -> ``"₱8,000.00"``."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{symbol}{whole:,}.{cents:02d}"


def format_time_ago(timestamp: dt.datetime, now: dt.datetime | None = None) -> str:
    """Relative time such as "5 minutes ago", falling back to a date after four weeks."""
    now = now or dt.datetime.now(dt.UTC)
    seconds = int((now - timestamp).total_seconds())

    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = hours // 24
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"
    weeks = days // 7
    if weeks < 4:
        return f"{weeks} week{'s' if weeks != 1 else ''} ago"
    return format_date(timestamp)


def format_date(timestamp: dt.datetime) -> str:
    return f"{timestamp:%b} {timestamp.day}, {timestamp:%Y %I:%M %p}"


def present_refund(refund: RefundRequest, now: dt.datetime | None = None) -> RefundView:
    """Build the display view of a refund request."""
    badge = STATUS_PRESENTATION[refund.status]
    currency = refund.currency

    return RefundView(
        refund=refund,
        status_label=badge.label,
        status_color=badge.color,
        status_icon=badge.icon,
        formatted_amount_paid=format_currency(refund.amount_paid, currency),
        formatted_refund_amount=format_currency(refund.refund_amount, currency),
        formatted_deduction=format_currency(refund.deduction_amount, currency),
        formatted_platform_refund=format_currency(refund.platform_refund, currency),
        formatted_personal_refund=format_currency(refund.personal_refund, currency),
        refund_percentage_text=f"{refund.refund_percentage}% refund",
        has_personal_payment=refund.personal_paid > 0,
        requires_manual_refund=(
            refund.personal_refund > 0
            and refund.status in (RefundStatus.PARTIAL_COMPLETED, RefundStatus.MANUAL_REVIEW)
        ),
        can_process=refund.status == RefundStatus.PENDING,
        can_confirm=refund.status == RefundStatus.APPROVED and bool(refund.refund_intent_id),
        can_complete_manual=refund.status
        in (RefundStatus.PARTIAL_COMPLETED, RefundStatus.MANUAL_REVIEW),
        formatted_date=format_date(refund.created_at),
        time_ago=format_time_ago(refund.created_at, now),
    )


def calculate_statistics(refunds: Iterable[RefundRequest]) -> RefundStatistics:
    """Count requests per status and total what has been refunded."""
    by_status: dict[RefundStatus, int] = {status: 0 for status in RefundStatus}
    total = 0
    total_refunded = 0
    total_deductions = 0

    for refund in refunds:
        total += 1
        by_status[refund.status] += 1
        if refund.status == RefundStatus.COMPLETED:
            total_refunded += refund.refund_amount
            total_deductions += refund.deduction_amount

    return RefundStatistics(
        total=total,
        by_status=by_status,
        pending=by_status[RefundStatus.PENDING],
        approved=by_status[RefundStatus.APPROVED],
        completed=by_status[RefundStatus.COMPLETED],
        rejected=by_status[RefundStatus.REJECTED],
        requires_action=sum(by_status[status] for status in ACTION_REQUIRED_STATES),
        total_refunded=total_refunded,
        total_deductions=total_deductions,
    )
