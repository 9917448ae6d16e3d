"""Human-readable rendering of availability state and alerts."""

from __future__ import annotations

from typing import Mapping, Tuple

from infrastructure.constants import (
    DIGEST_HEADER,
    RESORT_NAME,
    STARTUP_BODY,
    STARTUP_SUBJECT,
)


def format_availability_line(date: str, available: bool) -> str:
    return f"📅 {date} - Available: {'✅ Yes' if available else '❌ No'}"


def render_report(snapshot: Mapping[str, bool], *, header: str = DIGEST_HEADER) -> str:
    """Header line followed by one line per date in ascending order."""

    lines = [header]
    for date in sorted(snapshot):
        lines.append(format_availability_line(date, snapshot[date]))
    return "\n".join(lines)


def format_transition_alert(date: str, *, resort_name: str = RESORT_NAME) -> Tuple[str, str]:
    subject = f"🚗 Parking Available: {date}"
    body = f"🚗 Parking is now available for {date} at {resort_name}. Book now!"
    return subject, body


def format_startup_notice() -> Tuple[str, str]:
    return STARTUP_SUBJECT, STARTUP_BODY
