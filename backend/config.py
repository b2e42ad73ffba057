"""Centralized configuration — all env vars in one place."""

import math
import os


def minutes_to_ms(minutes: float) -> int:
    return int(minutes * 60 * 1000)


def _parse_positive(value: str | None, fallback: int, convert=int) -> int:
    """Return ``convert(value)`` when it is a positive integer, else ``fallback``."""
    try:
        parsed = float(value) if value is not None else math.nan
    except ValueError:
        return fallback
    if not math.isfinite(parsed) or parsed <= 0:
        return fallback
    converted = convert(parsed)
    return converted if converted > 0 else fallback


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.port: int = _parse_positive(os.getenv("PORT"), 4000)

        # Upstream WAQI feed
        self.upstream_base_url: str = os.getenv("AQI_API_BASE", "https://api.waqi.info/feed")
        self.upstream_token: str = os.getenv("AQI_API_TOKEN", "demo")

        # Cache
        self.cache_max_entries: int = _parse_positive(os.getenv("CACHE_MAX_ENTRIES"), 100)
        self.cache_ttl_ms: int = _parse_positive(
            os.getenv("CACHE_TTL_MINUTES"), minutes_to_ms(10), convert=minutes_to_ms
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing required env vars."""
        return [] if self.upstream_token else ["AQI_API_TOKEN"]


settings = Settings()
