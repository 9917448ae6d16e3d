"""Resolution of the calendar dates the monitor watches."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional, Sequence, Tuple

import pytz
from dateutil.relativedelta import relativedelta

from infrastructure.constants import DATE_FORMAT, DEFAULT_TIMEZONE, WEEKEND_DAYS
from infrastructure.errors import ConfigurationError


class MonitoredDates:
    """Immutable set of ``YYYY-MM-DD`` strings with a stable iteration order."""

    __slots__ = ("_ordered", "_members")

    def __init__(self, dates: Iterable[str]) -> None:
        ordered = tuple(dict.fromkeys(dates))
        self._ordered: Tuple[str, ...] = ordered
        self._members = frozenset(ordered)

    def __contains__(self, value: object) -> bool:
        return value in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MonitoredDates):
            return self._members == other._members
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._members)

    def __repr__(self) -> str:
        return f"MonitoredDates({list(self._ordered)!r})"

    def as_tuple(self) -> Tuple[str, ...]:
        return self._ordered


def today_in_timezone(timezone_str: str = DEFAULT_TIMEZONE) -> date:
    """Return the current calendar date in ``timezone_str``."""
    return datetime.now(pytz.timezone(timezone_str)).date()


def generate_window(
    today: date,
    window_months: int,
    *,
    weekends_only: bool = False,
) -> Tuple[str, ...]:
    """Every date from tomorrow through ``today + window_months`` inclusive."""

    if window_months < 0:
        raise ConfigurationError(f"window_months must not be negative, got {window_months}")

    last = today + relativedelta(months=window_months)
    current = today + timedelta(days=1)
    dates = []
    while current <= last:
        if not weekends_only or current.weekday() in WEEKEND_DAYS:
            dates.append(current.strftime(DATE_FORMAT))
        current += timedelta(days=1)
    return tuple(dates)


def resolve_monitored_dates(
    explicit_dates: Optional[Sequence[str]],
    window_months: int,
    *,
    today: Optional[date] = None,
    weekends_only: bool = False,
    timezone_str: str = DEFAULT_TIMEZONE,
) -> MonitoredDates:
    """Resolve the monitored date set for this run.

    Explicitly configured dates win and are trusted as-is. Otherwise a rolling
    window starting tomorrow is generated, optionally restricted to weekends.
    """

    if explicit_dates:
        return MonitoredDates(explicit_dates)

    reference = today or today_in_timezone(timezone_str)
    return MonitoredDates(generate_window(reference, window_months, weekends_only=weekends_only))
