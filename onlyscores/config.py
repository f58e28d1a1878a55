# onlyscores/config.py
"""
Configuration for the OnlyScores backend and app-side core.

This module centralizes all tunable settings (provider API base URL and key,
cache TTLs, worker counts, refresh interval bounds, display timezone).
Values are read from the environment once, when the config object is built,
and the object is then passed to constructors.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional


class ConfigError(RuntimeError):
    """Raised when a configuration value required for any request is missing."""


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_str(name: str, default: str = "") -> str:
    """Read a string environment variable, treating blank values as missing."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_choice(name: str, choices: tuple, default: str) -> str:
    """Read an enumerated environment variable; unknown values fall back to default."""
    raw = _env_str(name, default).lower()
    return raw if raw in choices else default


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable backend configuration.

    Notes:
      - empty_status_policy decides how a game with scores but no status text
        is classified ("final" or "live").
      - cache TTLs are in seconds.
    """

    port: int = _env_int("PORT", 4000)
    log_level: str = _env_str("LOG_LEVEL", "INFO").upper()

    # Third-party provider
    sportsdb_base_url: str = _env_str("THE_SPORTS_DB_BASE_URL", "https://www.thesportsdb.com/api/v1/json")
    sportsdb_api_key: str = _env_str("THE_SPORTS_DB_API_KEY", "123")
    http_timeout_seconds: int = _env_int("HTTP_TIMEOUT_SECONDS", 10)

    # Cache controls
    leagues_cache_ttl_seconds: int = _env_int("LEAGUES_CACHE_TTL_SECONDS", 6 * 60 * 60)
    teams_cache_ttl_seconds: int = _env_int("TEAMS_CACHE_TTL_SECONDS", 6 * 60 * 60)
    scores_cache_ttl_seconds: int = _env_int("SCORES_CACHE_TTL_SECONDS", 30)

    # Fan-out
    fetch_max_workers: int = _env_int("FETCH_MAX_WORKERS", 8)

    empty_status_policy: str = _env_choice("EMPTY_STATUS_POLICY", ("final", "live"), "final")


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable app-side configuration.

    api_base_url has no default: without it no request can succeed, which is
    reported as a blocking error rather than a transient fetch failure.
    """

    api_base_url: Optional[str] = _env_str("ONLYSCORES_API_BASE_URL") or None
    http_timeout_seconds: int = _env_int("ONLYSCORES_HTTP_TIMEOUT_SECONDS", 10)
    display_tz: str = _env_str("TZ", "UTC")

    default_refresh_interval_seconds: int = 60
    refresh_interval_min_seconds: int = 60
    refresh_interval_max_seconds: int = 120
    refresh_interval_step_seconds: int = 10

    @property
    def api_base_missing(self) -> bool:
        """Return True if no backend base URL is configured."""
        return not (self.api_base_url or "").strip()

    def validate(self) -> "ClientConfig":
        """
        Validate once at startup.

        Raises:
            ConfigError if the backend base URL is missing.
        """
        if self.api_base_missing:
            raise ConfigError(MISSING_API_BASE_WARNING)
        return self


MISSING_API_BASE_WARNING = "Missing API base URL. Set ONLYSCORES_API_BASE_URL."
