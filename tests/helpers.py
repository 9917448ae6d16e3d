"""Shared fakes and utilities for unit tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def critical(self, *args: Any, **kwargs: Any) -> None:
        self._record("critical", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""

        formatted: List[Tuple[str, Any]] = []
        for level, args, kwargs in self.records:
            message: Any = kwargs.get("msg")
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = template
            formatted.append((level, message))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _, _ in self.records]


class StubSource:
    """Returns queued payloads in order; exceptions in the queue are raised."""

    def __init__(self, payloads: List[Any]) -> None:
        self.payloads = list(payloads)
        self.calls = 0

    async def fetch(self) -> Any:
        self.calls += 1
        payload = self.payloads[min(self.calls - 1, len(self.payloads) - 1)]
        await asyncio.sleep(0)
        if isinstance(payload, BaseException):
            raise payload
        return payload


class RecordingNotifier:
    """Collects dispatched notifications; can be told to fail."""

    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.sent: List[Tuple[str, str]] = []
        self.error = error

    async def dispatch(self, subject: str, body: str) -> None:
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        self.sent.append((subject, body))

    @property
    def subjects(self) -> List[str]:
        return [subject for subject, _ in self.sent]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def parking_entry(sold_out: Any) -> Dict[str, Any]:
    """Raw payload entry in the shape the reservation API returns."""
    return {"status": {"sold_out": sold_out, "capacity": 100}}
