"""Centralized application settings.

All runtime configuration is read here, once, from the environment (and a
``.env`` file during development). Components receive the resulting
:class:`MonitorSettings` snapshot instead of calling ``os.getenv`` themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from . import constants
from .errors import ConfigurationError


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _to_date_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class MonitorSettings:
    """Immutable snapshot of the monitor's configuration values."""

    monitored_dates: Tuple[str, ...]
    window_months: int
    weekends_only: bool
    refresh_base_interval_ms: int
    refresh_jitter_max_ms: int
    daily_digest_hour_utc: int
    parking_url: str
    availability_url_marker: str
    timezone: str
    bot_token: str
    chat_id: str
    headless: bool
    send_startup_notice: bool
    send_startup_report: bool
    production_mode: bool

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


def validate_settings(settings: MonitorSettings) -> MonitorSettings:
    """Reject configuration that can only be a mistake. Returns ``settings``."""

    if not 0 <= settings.daily_digest_hour_utc <= 23:
        raise ConfigurationError(
            f"DAILY_DIGEST_HOUR_UTC must be in [0, 23], got {settings.daily_digest_hour_utc}"
        )
    if settings.window_months < 0:
        raise ConfigurationError(
            f"WINDOW_MONTHS must not be negative, got {settings.window_months}"
        )
    if settings.refresh_base_interval_ms <= 0:
        raise ConfigurationError(
            f"REFRESH_BASE_INTERVAL_MS must be positive, got {settings.refresh_base_interval_ms}"
        )
    if settings.refresh_jitter_max_ms < 0:
        raise ConfigurationError(
            f"REFRESH_JITTER_MAX_MS must not be negative, got {settings.refresh_jitter_max_ms}"
        )
    return settings


def load_settings(env: Optional[Mapping[str, str]] = None) -> MonitorSettings:
    """Load configuration from the environment and fall back to defaults."""

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    settings = MonitorSettings(
        monitored_dates=_to_date_list(env.get("MONITORED_DATES")),
        window_months=_to_int(env, "WINDOW_MONTHS", constants.DEFAULT_WINDOW_MONTHS),
        weekends_only=_to_bool(env.get("WEEKENDS_ONLY"), default=True),
        refresh_base_interval_ms=_to_int(
            env, "REFRESH_BASE_INTERVAL_MS", constants.DEFAULT_REFRESH_BASE_INTERVAL_MS
        ),
        refresh_jitter_max_ms=_to_int(
            env, "REFRESH_JITTER_MAX_MS", constants.DEFAULT_REFRESH_JITTER_MAX_MS
        ),
        daily_digest_hour_utc=_to_int(
            env, "DAILY_DIGEST_HOUR_UTC", constants.DEFAULT_DAILY_DIGEST_HOUR_UTC
        ),
        parking_url=env.get("PARKING_URL", constants.PARKING_URL),
        availability_url_marker=env.get(
            "AVAILABILITY_URL_MARKER", constants.AVAILABILITY_URL_MARKER
        ),
        timezone=env.get("MONITOR_TIMEZONE", constants.DEFAULT_TIMEZONE),
        bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        chat_id=env.get("TELEGRAM_CHAT_ID", ""),
        headless=_to_bool(env.get("HEADLESS"), default=True),
        send_startup_notice=_to_bool(env.get("SEND_STARTUP_NOTICE"), default=True),
        send_startup_report=_to_bool(env.get("SEND_STARTUP_REPORT"), default=True),
        production_mode=_to_bool(env.get("PRODUCTION_MODE"), default=False),
    )
    return validate_settings(settings)


@lru_cache(maxsize=1)
def get_settings() -> MonitorSettings:
    """Return a cached :class:`MonitorSettings` instance."""

    return load_settings()
