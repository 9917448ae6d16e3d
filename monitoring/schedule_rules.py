"""Pure time arithmetic behind the monitor's recurring triggers."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Optional

import pytz

from infrastructure.errors import ConfigurationError


def validate_digest_hour(hour: int) -> int:
    """Return ``hour`` or raise ConfigurationError when it is not a UTC hour."""

    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ConfigurationError(f"Daily digest hour must be an integer in [0, 23], got {hour!r}")
    return hour


def next_refresh_delay(
    base_interval_ms: int,
    jitter_max_ms: int,
    rng: Optional[random.Random] = None,
) -> float:
    """Seconds until the next refresh: ``base + uniform(0, jitter_max)``."""

    source = rng or random
    jitter_ms = source.uniform(0, jitter_max_ms) if jitter_max_ms > 0 else 0.0
    return (base_interval_ms + jitter_ms) / 1000.0


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return pytz.utc.localize(moment)
    return moment.astimezone(pytz.utc)


def next_daily_fire(now: datetime, hour_utc: int) -> datetime:
    """Today at ``hour_utc:00`` UTC, or tomorrow if that moment has already passed."""

    validate_digest_hour(hour_utc)
    now_utc = _as_utc(now)
    fire = now_utc.replace(hour=hour_utc, minute=0, second=0, microsecond=0)
    if now_utc > fire:
        fire += timedelta(days=1)
    return fire


def following_daily_fire(previous_fire: datetime) -> datetime:
    """The next fire after ``previous_fire``, anchored on the hour boundary."""

    return _as_utc(previous_fire) + timedelta(days=1)


def seconds_until(target: datetime, now: datetime) -> float:
    return max((_as_utc(target) - _as_utc(now)).total_seconds(), 0.0)
