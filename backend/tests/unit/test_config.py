"""Unit tests for environment-driven settings."""

import pytest

from staybook_shared.config import (
    DEFAULT_POLICY_TIERS,
    Settings,
    get_settings,
    parse_policy_tiers,
)
from staybook_shared.models.policy import PolicyTier


class TestGetSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "ENVIRONMENT",
            "DYNAMODB_TABLE_PREFIX",
            "REFUND_POLICY_TIERS",
            "PROCESSOR_TIMEOUT_SECONDS",
            "CORS_ALLOWED_ORIGINS",
        ):
            monkeypatch.delenv(name, raising=False)
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.environment == "dev"
        assert settings.table_prefix == "staybook-dev"
        assert settings.currency == "PHP"
        assert settings.policy_tiers == DEFAULT_POLICY_TIERS
        assert settings.processor_timeout_seconds == 30.0
        assert settings.admin_group == "admins"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.delenv("DYNAMODB_TABLE_PREFIX", raising=False)
        monkeypatch.setenv("PROCESSOR_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://staybook.ph, https://admin.staybook.ph")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.table_prefix == "staybook-prod"
        assert settings.processor_timeout_seconds == 12.5
        assert settings.cors_allowed_origins == ["https://staybook.ph", "https://admin.staybook.ph"]
        assert settings.log_level == "DEBUG"

    def test_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestPolicyTiers:
    def test_parse(self) -> None:
        tiers = parse_policy_tiers("48:100, 24:50,0:25")

        assert [(t.min_hours, t.percentage) for t in tiers] == [(48, 100), (24, 50), (0, 25)]
        assert tiers[0].description == "Full refund (cancelled 48+ hours before check-in)"
        assert tiers[2].description == "25% refund (cancelled before check-in)"

    def test_malformed_pair(self) -> None:
        with pytest.raises(ValueError, match="min_hours:percentage"):
            parse_policy_tiers("48-100")

    def test_tiers_must_descend(self) -> None:
        with pytest.raises(ValueError):
            Settings(
                policy_tiers=[
                    PolicyTier(min_hours=0, percentage=50, description="late"),
                    PolicyTier(min_hours=24, percentage=100, description="early"),
                ]
            )
