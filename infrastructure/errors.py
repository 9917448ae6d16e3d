"""Error taxonomy shared by the monitor and its collaborators."""

from __future__ import annotations

from typing import Any


class MonitorError(RuntimeError):
    """Base class for every error raised by the parking monitor."""


class FetchError(MonitorError):
    """Raised when the availability source is unreachable or navigation failed."""


class MalformedEntryError(MonitorError):
    """A single date's payload does not have the expected shape."""

    def __init__(self, date: Any, details: Any, reason: str) -> None:
        super().__init__(f"Malformed availability entry for {date!r}: {reason}")
        self.date = date
        self.details = details
        self.reason = reason


class DeliveryError(MonitorError):
    """Raised by a notifier when a message could not be delivered."""


class ConfigurationError(MonitorError):
    """Invalid configuration detected at startup."""


__all__ = [
    "MonitorError",
    "FetchError",
    "MalformedEntryError",
    "DeliveryError",
    "ConfigurationError",
]
