"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DISPLAY_CURRENCY = "USD"
DEFAULT_COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"


class AppSettings(BaseSettings):
    """Configuration options for the Satsfolio service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Satsfolio Bitcoin Portfolio Engine")
    default_display_currency: Literal["USD", "BRL"] = Field(default=DEFAULT_DISPLAY_CURRENCY)
    quote_gap_policy: Literal["fail", "nearest", "zero"] = Field(
        default="zero",
        description="How a transaction date without a historical quote is priced.",
    )

    coingecko_base_url: str = Field(default=DEFAULT_COINGECKO_BASE_URL)
    coingecko_api_key: str | None = Field(default=None)
    coingecko_requests_per_minute: int = Field(default=30, ge=1)
    coingecko_timeout_seconds: float = Field(default=15.0, gt=0)

    price_cache_ttl_minutes: int = Field(default=60, ge=0)
    price_cache_max_entries: int = Field(default=256, ge=1)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="satsfolio")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"coingecko_api_key"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_DISPLAY_CURRENCY",
    "DEFAULT_COINGECKO_BASE_URL",
    "get_settings",
]
