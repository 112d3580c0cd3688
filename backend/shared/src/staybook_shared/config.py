"""Runtime configuration read from environment variables.

Settings are parsed once per process. Tests call ``get_settings.cache_clear()``
after changing the environment.

Variables:
    ENVIRONMENT: Deployment environment (default: dev)
    DYNAMODB_TABLE_PREFIX: Table name prefix (default: staybook-{ENVIRONMENT})
    REFUND_CURRENCY: ISO currency code for refunds (default: PHP)
    REFUND_POLICY_TIERS: Ordered "min_hours:percentage" pairs (default: 24:100,0:50)
    PROCESSOR_TIMEOUT_SECONDS: Stripe network timeout (default: 30)
    ADMIN_GROUP: Identity group granting admin access (default: admins)
    CORS_ALLOWED_ORIGINS: Comma-separated origins for the REST API
    LOG_LEVEL: Root log level (default: INFO)
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

from .models.policy import PolicyTier

DEFAULT_POLICY_TIERS: list[PolicyTier] = [
    PolicyTier(
        min_hours=24,
        percentage=100,
        description="Full refund (cancelled 24+ hours before check-in)",
    ),
    PolicyTier(
        min_hours=0,
        percentage=50,
        description="50% refund (cancelled less than 24 hours before check-in)",
    ),
]

NO_REFUND_DESCRIPTION = "No refund (cancelled after check-in)"


class Settings(BaseModel):
    """Process-wide settings for the refunds backend."""

    environment: str = "dev"
    table_prefix: str = "staybook-dev"
    currency: str = "PHP"
    policy_tiers: list[PolicyTier] = Field(default_factory=lambda: list(DEFAULT_POLICY_TIERS))
    processor_timeout_seconds: float = Field(default=30.0, gt=0)
    admin_group: str = "admins"
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    log_level: str = "INFO"

    @field_validator("policy_tiers")
    @classmethod
    def _tiers_descending(cls, tiers: list[PolicyTier]) -> list[PolicyTier]:
        thresholds = [tier.min_hours for tier in tiers]
        if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError("policy tiers must be ordered by strictly descending min_hours")
        return tiers


def parse_policy_tiers(raw: str) -> list[PolicyTier]:
    """Parse a REFUND_POLICY_TIERS value such as ``"48:100,24:50,0:25"``.

    Args:
        raw: Comma-separated ``min_hours:percentage`` pairs

    Returns:
        Policy tiers in the given order, with generated descriptions

    Raises:
        ValueError: If a pair is malformed
    """
    tiers: list[PolicyTier] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        hours_text, sep, percent_text = pair.partition(":")
        if not sep:
            raise ValueError(f"Invalid policy tier '{pair}', expected min_hours:percentage")
        min_hours = int(hours_text)
        percentage = int(percent_text)
        tiers.append(
            PolicyTier(
                min_hours=min_hours,
                percentage=percentage,
                description=_describe_tier(min_hours, percentage),
            )
        )
    return tiers


def _describe_tier(min_hours: int, percentage: int) -> str:
    label = "Full refund" if percentage == 100 else f"{percentage}% refund"
    if min_hours <= 0:
        return f"{label} (cancelled before check-in)"
    return f"{label} (cancelled {min_hours}+ hours before check-in)"


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings from the environment (cached)."""
    environment = os.environ.get("ENVIRONMENT", "dev")
    values: dict = {
        "environment": environment,
        "table_prefix": os.environ.get("DYNAMODB_TABLE_PREFIX", f"staybook-{environment}"),
        "currency": os.environ.get("REFUND_CURRENCY", "PHP"),
        "admin_group": os.environ.get("ADMIN_GROUP", "admins"),
        "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
    }

    tiers = os.environ.get("REFUND_POLICY_TIERS")
    if tiers:
        values["policy_tiers"] = parse_policy_tiers(tiers)

    timeout = os.environ.get("PROCESSOR_TIMEOUT_SECONDS")
    if timeout:
        values["processor_timeout_seconds"] = float(timeout)

    origins = os.environ.get("CORS_ALLOWED_ORIGINS")
    if origins:
        values["cors_allowed_origins"] = _split_csv(origins)

    return Settings(**values)
