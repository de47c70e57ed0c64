"""
Configuration Management for Zenith Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger engine itself takes plain arguments; only the service layer and
the collaborator adapters read settings, so the accounting rules stay
testable without an environment.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger behaviour and local persistence."""

    model_config = SettingsConfigDict(
        env_prefix="ZENITH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    state_file: str = Field(
        default="zenith_state.json",
        description="Path of the JSON document holding the ledger snapshot"
    )
    default_currency: str = Field(
        default="BRL",
        pattern="^(BRL|USD)$",
        description="Currency for new accounts and display formatting"
    )
    history_days: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Default window for the net worth history chart"
    )

    future_date_tolerance_days: int = Field(
        default=30,
        ge=0,
        description="Entries dated further ahead than this get a warning"
    )

    # Card limit alerts fire at these usage ratios
    limit_alert_thresholds: list[float] = Field(
        default_factory=lambda: [0.8, 0.9, 1.0],
        description="Credit card usage ratios that raise an alert"
    )

    # Market data collaborator
    price_fetch_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Timeout for a single price fetch"
    )
    price_fetch_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per ticker before giving up"
    )

    default_reset_date: datetime = Field(
        default=datetime(2024, 1, 1, tzinfo=timezone.utc),
        description="Reinvestment counter reset date for brand new ledgers"
    )

    @field_validator("limit_alert_thresholds")
    @classmethod
    def validate_thresholds(cls, v: list[float]) -> list[float]:
        """Thresholds must be positive; keep them sorted ascending."""
        if any(t <= 0 for t in v):
            raise ValueError("Limit alert thresholds must be positive")
        return sorted(v)


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for transaction drafting."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Sub-settings are loaded lazily so the ledger works without an AI key.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus "<name>_error" entries
    for the ones that failed. Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("ledger", "gemini"):
        error: Optional[str] = None
        try:
            getattr(settings, name)
        except Exception as e:
            error = str(e)
        results[name] = error is None
        if error is not None:
            results[f"{name}_error"] = error

    return results
