"""
Centralized configuration with environment variable overrides.

Endpoints, timeouts, and the visual day window are configurable here.
Nothing is hardcoded in the resolver or orchestrator logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ApiConfig:
    """Booking backend endpoints consumed read-only by the engine."""

    base_url: str = os.getenv("AVAILABILITY_API_BASE_URL", "http://localhost:8000")
    auth_token: str = os.getenv("AVAILABILITY_API_TOKEN", "")
    for_booking_path: str = os.getenv(
        "FOR_BOOKING_PATH", "/api/photographer/availability/for-booking"
    )
    bulk_path: str = os.getenv(
        "BULK_AVAILABILITY_PATH", "/api/photographer/availability/bulk-index"
    )


@dataclass(frozen=True)
class GeocodingConfig:
    """Nominatim-compatible geocoder settings."""

    base_url: str = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
    # Nominatim usage policy requires a User-Agent with contact info
    user_agent: str = os.getenv(
        "NOMINATIM_USER_AGENT", "PhotographerAssignment/1.0 (ops@example.com)"
    )
    country_codes: str = os.getenv("GEOCODING_COUNTRY_CODES", "us")


@dataclass(frozen=True)
class ResolutionConfig:
    """Timeouts and presentation limits for a resolution cycle."""

    lookup_timeout_sec: float = _safe_float("LOOKUP_TIMEOUT_SEC", "10.0")
    geocode_timeout_sec: float = _safe_float("GEOCODE_TIMEOUT_SEC", "8.0")
    day_start_hour: int = _safe_int("DAY_START_HOUR", "8")
    day_end_hour: int = _safe_int("DAY_END_HOUR", "20")
    next_available_limit: int = _safe_int("NEXT_AVAILABLE_LIMIT", "3")
    bulk_cache_ttl_sec: float = _safe_float("BULK_CACHE_TTL_SEC", "60")
    distance_decimals: int = _safe_int("DISTANCE_DECIMALS", "1")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    api: ApiConfig = field(default_factory=ApiConfig)
    geocoding: GeocodingConfig = field(default_factory=GeocodingConfig)
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "photographer-assignment")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    res = config.resolution
    if res.lookup_timeout_sec <= 0:
        raise ValueError(f"LOOKUP_TIMEOUT_SEC must be > 0, got {res.lookup_timeout_sec}")
    if res.geocode_timeout_sec <= 0:
        raise ValueError(f"GEOCODE_TIMEOUT_SEC must be > 0, got {res.geocode_timeout_sec}")
    if not 0 <= res.day_start_hour < res.day_end_hour <= 24:
        raise ValueError(
            "DAY_START_HOUR and DAY_END_HOUR must satisfy 0 <= start < end <= 24, "
            f"got {res.day_start_hour}..{res.day_end_hour}"
        )
    if res.next_available_limit < 1:
        raise ValueError(
            f"NEXT_AVAILABLE_LIMIT must be >= 1, got {res.next_available_limit}"
        )
    if res.bulk_cache_ttl_sec < 0:
        raise ValueError(f"BULK_CACHE_TTL_SEC must be >= 0, got {res.bulk_cache_ttl_sec}")
    if res.distance_decimals < 0:
        raise ValueError(f"DISTANCE_DECIMALS must be >= 0, got {res.distance_decimals}")
    if not config.api.base_url:
        raise ValueError("AVAILABILITY_API_BASE_URL must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
