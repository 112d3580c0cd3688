"""Refund policy service for calculating refund percentages.

Implements the cancellation policy as an ordered table of tiers:
- Full refund (100%): Cancel 24+ hours before check-in
- Partial refund (50%): Cancel less than 24 hours before check-in
- No refund (0%): Cancel after check-in

The first tier whose ``min_hours`` is met wins. Hours are whole hours,
rounded down, so a request 23h59m before check-in falls in the 50% tier.
"""

import datetime as dt
import math

from staybook_shared.config import NO_REFUND_DESCRIPTION, get_settings
from staybook_shared.models.policy import PolicyDecision, PolicyTier


def hours_before_checkin(check_in: dt.datetime, requested_at: dt.datetime) -> int:
    """Whole hours from the request until check-in, rounded down.

    Naive datetimes are treated as UTC. The result is negative once
    check-in has passed.
    """
    if check_in.tzinfo is None:
        check_in = check_in.replace(tzinfo=dt.UTC)
    if requested_at.tzinfo is None:
        requested_at = requested_at.replace(tzinfo=dt.UTC)
    return math.floor((check_in - requested_at).total_seconds() / 3600)


class RefundPolicyService:
    """Evaluates the configured cancellation policy table.

    Policy tiers (default):
    - 24+ hours before check-in: 100%
    - 0-23 hours before check-in: 50%
    - After check-in: 0%
    """

    NO_REFUND_PERCENT = 0

    def __init__(self, tiers: list[PolicyTier] | None = None) -> None:
        """Initialize with a policy table.

        Args:
            tiers: Tiers ordered by descending min_hours. Defaults to the
                configured REFUND_POLICY_TIERS.
        """
        self.tiers = list(tiers) if tiers is not None else list(get_settings().policy_tiers)

    def evaluate(self, hours: int) -> PolicyDecision:
        """Find the refund percentage for a request made ``hours`` before check-in.

        Args:
            hours: Whole hours before check-in (negative after check-in)

        Returns:
            PolicyDecision with the percentage, matched tier and description
        """
        for tier in self.tiers:
            if hours >= tier.min_hours:
                return PolicyDecision(
                    refund_percentage=tier.percentage,
                    hours_before_checkin=hours,
                    description=tier.description,
                    tier=tier,
                )

        return PolicyDecision(
            refund_percentage=self.NO_REFUND_PERCENT,
            hours_before_checkin=hours,
            description=NO_REFUND_DESCRIPTION,
        )

    def evaluate_booking(
        self,
        check_in: dt.datetime,
        requested_at: dt.datetime,
    ) -> PolicyDecision:
        """Evaluate the policy for a booking's check-in time."""
        return self.evaluate(hours_before_checkin(check_in, requested_at))

    def get_policy_description(self) -> str:
        """Get human-readable description of the refund policy."""
        lines = ["Cancellation Policy:"]
        for tier in self.tiers:
            if tier.min_hours > 0:
                lines.append(f"• {tier.min_hours}+ hours before check-in: {tier.percentage}% refund")
            else:
                lines.append(f"• Before check-in: {tier.percentage}% refund")
        lines.append("• Otherwise (including after check-in): No refund")
        return "\n".join(lines)
