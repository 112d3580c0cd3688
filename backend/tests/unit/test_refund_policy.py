"""Unit tests for RefundPolicyService tier evaluation.

Tests verify the ordered policy table maps hours-before-check-in to a
refund percentage:
- Full refund: 24+ hours before check-in
- 50% refund: less than 24 hours before check-in
- No refund: after check-in

Test categories:
- Default tier matching and boundaries
- Hours calculation (flooring, timezones)
- Custom policy tables
- Policy description
"""

import datetime as dt

import pytest

from staybook_shared.config import DEFAULT_POLICY_TIERS, NO_REFUND_DESCRIPTION
from staybook_shared.models.policy import PolicyTier
from staybook_shared.services.refund_policy_service import (
    RefundPolicyService,
    hours_before_checkin,
)

CHECK_IN = dt.datetime(2026, 7, 20, 14, 0, tzinfo=dt.UTC)


@pytest.fixture
def policy() -> RefundPolicyService:
    return RefundPolicyService(DEFAULT_POLICY_TIERS)


# === Default Tiers ===


class TestDefaultTiers:
    """Tests for the default 24h / 0h policy table."""

    def test_two_days_before_gets_full_refund(self, policy: RefundPolicyService) -> None:
        decision = policy.evaluate(48)

        assert decision.refund_percentage == 100
        assert decision.description == "Full refund (cancelled 24+ hours before check-in)"
        assert decision.tier is not None and decision.tier.min_hours == 24

    def test_exactly_24_hours_is_inclusive(self, policy: RefundPolicyService) -> None:
        """The threshold hour belongs to the higher tier."""
        assert policy.evaluate(24).refund_percentage == 100

    def test_23_hours_gets_half_refund(self, policy: RefundPolicyService) -> None:
        decision = policy.evaluate(23)

        assert decision.refund_percentage == 50
        assert "50% refund" in decision.description

    def test_zero_hours_gets_half_refund(self, policy: RefundPolicyService) -> None:
        assert policy.evaluate(0).refund_percentage == 50

    def test_after_check_in_gets_nothing(self, policy: RefundPolicyService) -> None:
        decision = policy.evaluate(-1)

        assert decision.refund_percentage == 0
        assert decision.description == NO_REFUND_DESCRIPTION
        assert decision.tier is None

    def test_decision_keeps_hours(self, policy: RefundPolicyService) -> None:
        assert policy.evaluate(-30).hours_before_checkin == -30


# === Hours Calculation ===


class TestHoursBeforeCheckin:
    """Tests for whole-hour calculation."""

    def test_partial_hour_rounds_down(self) -> None:
        """23h59m before check-in is 23 hours, not 24."""
        requested = CHECK_IN - dt.timedelta(hours=23, minutes=59)

        assert hours_before_checkin(CHECK_IN, requested) == 23

    def test_after_check_in_is_negative(self) -> None:
        requested = CHECK_IN + dt.timedelta(minutes=30)

        assert hours_before_checkin(CHECK_IN, requested) == -1

    def test_naive_values_are_utc(self) -> None:
        naive_check_in = CHECK_IN.replace(tzinfo=None)
        requested = CHECK_IN - dt.timedelta(hours=5)

        assert hours_before_checkin(naive_check_in, requested) == 5

    def test_other_timezones_are_normalised(self) -> None:
        manila = dt.timezone(dt.timedelta(hours=8))
        requested = dt.datetime(2026, 7, 20, 20, 0, tzinfo=manila)  # 12:00 UTC

        assert hours_before_checkin(CHECK_IN, requested) == 2

    def test_evaluate_booking_uses_hours(self, policy: RefundPolicyService) -> None:
        requested = CHECK_IN - dt.timedelta(hours=23, minutes=59)

        decision = policy.evaluate_booking(CHECK_IN, requested)

        assert decision.hours_before_checkin == 23
        assert decision.refund_percentage == 50


# === Custom Tables ===


class TestCustomTiers:
    """Tests for policy tables supplied at construction."""

    def test_first_matching_tier_wins(self) -> None:
        policy = RefundPolicyService(
            [
                PolicyTier(min_hours=168, percentage=100, description="A week ahead"),
                PolicyTier(min_hours=48, percentage=80, description="Two days ahead"),
                PolicyTier(min_hours=0, percentage=20, description="Late"),
            ]
        )

        assert policy.evaluate(200).refund_percentage == 100
        assert policy.evaluate(72).refund_percentage == 80
        assert policy.evaluate(47).refund_percentage == 20
        assert policy.evaluate(-5).refund_percentage == 0

    def test_empty_table_refunds_nothing(self) -> None:
        assert RefundPolicyService([]).evaluate(1000).refund_percentage == 0

    def test_defaults_come_from_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from staybook_shared.config import get_settings

        monkeypatch.setenv("REFUND_POLICY_TIERS", "72:90,12:40")
        get_settings.cache_clear()

        policy = RefundPolicyService()

        assert [tier.percentage for tier in policy.tiers] == [90, 40]
        assert policy.evaluate(12).refund_percentage == 40


# === Description ===


class TestPolicyDescription:
    def test_lists_every_tier(self, policy: RefundPolicyService) -> None:
        text = policy.get_policy_description()

        assert text.startswith("Cancellation Policy:")
        assert "24+ hours before check-in: 100% refund" in text
        assert "Before check-in: 50% refund" in text
        assert text.endswith("No refund")
