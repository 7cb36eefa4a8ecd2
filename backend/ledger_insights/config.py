"""Configuration for the ledger analytics core."""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .subscriptions import SubscriptionThresholds


class LedgerSettings(BaseSettings):
    """Tunable thresholds and service options, overridable via ``LEDGER_*`` variables."""

    app_name: str = Field(default="Ledger Insights")
    log_level: str = Field(default="INFO")

    holdings_epsilon: float = Field(
        default=1e-4,
        gt=0,
        description="Share counts at or below this are treated as a closed position.",
    )
    days_per_month: float = Field(default=30.44, gt=0)

    amount_tolerance: float = Field(
        default=2.0,
        ge=0,
        description="Currency units within which recurring charges are considered the same amount.",
    )
    merchant_max_edit_distance: int = Field(default=3, ge=0)
    min_occurrences: int = Field(default=2, ge=2)
    min_time_span_days: float = Field(default=60.0, ge=0)
    min_date_consistency: float = Field(default=0.75, ge=0.0, le=1.0)
    high_confidence_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    medium_confidence_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    amount_variance_high: float = Field(default=0.1, ge=0)
    amount_variance_medium: float = Field(default=1.0, ge=0)

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="ledger-insights")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def subscription_thresholds(self) -> "SubscriptionThresholds":
        """Return the detector threshold table built from these settings."""

        from .subscriptions import SubscriptionThresholds

        return SubscriptionThresholds(
            min_occurrences=self.min_occurrences,
            min_time_span_days=self.min_time_span_days,
            min_date_consistency=self.min_date_consistency,
            high_confidence_threshold=self.high_confidence_threshold,
            medium_confidence_threshold=self.medium_confidence_threshold,
            amount_variance_high=self.amount_variance_high,
            amount_variance_medium=self.amount_variance_medium,
            amount_tolerance=self.amount_tolerance,
            merchant_max_edit_distance=self.merchant_max_edit_distance,
        )

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a dict suitable for logging at startup."""

        return self.model_dump()


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> LedgerSettings:
    """Return cached settings with optional overrides."""

    if overrides:
        return LedgerSettings(**overrides)
    return LedgerSettings()


__all__ = ["LedgerSettings", "get_settings"]
