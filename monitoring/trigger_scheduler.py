"""Recurring triggers driving the availability monitor.

Two independent actions run on the event loop:

* **PeriodicRefresh** - fetch a raw payload, normalize it, diff it against the
  tracker state, alert once per transition, then re-arm with a jittered delay.
* **DailyDigest** - at a fixed UTC hour, render the current tracker state and
  dispatch it, then re-arm for the same hour tomorrow.

Failures inside either action are logged and never stop the next tick.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Collection, Container, List, Optional, Protocol

import pytz

from infrastructure.constants import (
    DIGEST_SUBJECT,
    STARTUP_REPORT_HEADER,
    STARTUP_REPORT_SUBJECT,
)
from infrastructure.errors import DeliveryError, FetchError
from infrastructure.settings import MonitorSettings
from monitoring.availability_tracker import AvailabilityTracker, PollResult
from monitoring.metrics import MonitorStats
from monitoring.report_formatter import (
    format_availability_line,
    format_startup_notice,
    format_transition_alert,
    render_report,
)
from monitoring.schedule_rules import (
    following_daily_fire,
    next_daily_fire,
    next_refresh_delay,
    seconds_until,
    validate_digest_hour,
)
from monitoring.snapshot_normalizer import normalize_snapshot


class SnapshotSource(Protocol):
    async def fetch(self) -> Any:
        ...


class Notifier(Protocol):
    async def dispatch(self, subject: str, body: str) -> None:
        ...


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


@dataclass(frozen=True)
class SchedulerConfig:
    """Timing and behaviour switches for :class:`TriggerScheduler`."""

    refresh_base_interval_ms: int
    refresh_jitter_max_ms: int
    daily_digest_hour_utc: int
    send_startup_notice: bool = False
    send_startup_report: bool = False
    include_stats_in_digest: bool = True

    @classmethod
    def from_settings(cls, settings: MonitorSettings) -> "SchedulerConfig":
        return cls(
            refresh_base_interval_ms=settings.refresh_base_interval_ms,
            refresh_jitter_max_ms=settings.refresh_jitter_max_ms,
            daily_digest_hour_utc=settings.daily_digest_hour_utc,
            send_startup_notice=settings.send_startup_notice,
            send_startup_report=settings.send_startup_report,
        )


class TriggerScheduler:
    """Owns the tracker state and the refresh / digest timers."""

    def __init__(
        self,
        source: SnapshotSource,
        notifier: Notifier,
        monitored_dates: Container[str],
        config: SchedulerConfig,
        *,
        tracker: Optional[AvailabilityTracker] = None,
        stats: Optional[MonitorStats] = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        date_resolver: Optional[Callable[[], Collection[str]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        validate_digest_hour(config.daily_digest_hour_utc)

        self.source = source
        self.notifier = notifier
        self.monitored_dates = monitored_dates
        self.config = config
        self.logger = logger or logging.getLogger("TriggerScheduler")
        self.tracker = tracker or AvailabilityTracker(logger=self.logger)
        self.stats = stats or MonitorStats()

        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._date_resolver = date_resolver

        self.next_refresh_at: Optional[datetime] = None
        self.next_digest_at: Optional[datetime] = None

        self._tasks: List[asyncio.Task] = []
        self._stopped = asyncio.Event()
        self._stop_task: Optional[asyncio.Task] = None
        self._startup_report_sent = False

    # ------------------------------------------------------------------
    # Trigger bodies
    # ------------------------------------------------------------------
    async def run_refresh_cycle(self) -> Optional[PollResult]:
        """Fetch, normalize, diff and alert. Returns ``None`` when the cycle failed."""

        generation = self.tracker.begin_cycle()
        started = time.monotonic()

        try:
            self._roll_monitored_dates()
            raw_payload = await self.source.fetch()
            snapshot = normalize_snapshot(raw_payload, self.monitored_dates, logger=self.logger)
        except FetchError as exc:
            self.logger.error("❌ Availability fetch failed, skipping cycle: %s", exc)
            self.stats.record_failed_cycle(time.monotonic() - started)
            return None
        except Exception as exc:
            self.logger.error("❌ Unexpected error during refresh cycle: %s", exc, exc_info=True)
            self.stats.record_failed_cycle(time.monotonic() - started)
            return None

        result = self.tracker.apply(snapshot, generation=generation)
        self.stats.record_cycle(time.monotonic() - started)
        if result.stale:
            return result

        for date in sorted(result.current):
            self.logger.debug(format_availability_line(date, result.current[date]))
        self.logger.info(
            "Refresh cycle accepted %s dates (%s available)",
            len(result.current),
            sum(1 for available in result.current.values() if available),
        )

        for date in result.transitions:
            self.logger.info("🚗 🚨 Availability change detected for %s!", date)
            subject, body = format_transition_alert(date)
            if await self._dispatch(subject, body):
                self.stats.record_alert()

        if result.is_initial and self.config.send_startup_report and not self._startup_report_sent:
            self._startup_report_sent = True
            await self._dispatch(
                STARTUP_REPORT_SUBJECT,
                render_report(result.current, header=STARTUP_REPORT_HEADER),
            )

        return result

    def _roll_monitored_dates(self) -> None:
        """Re-resolve the monitored dates so a rolling window follows the calendar."""
        if self._date_resolver is None:
            return
        dates = self._date_resolver()
        if dates != self.monitored_dates:
            self.logger.info("📅 Monitored dates updated (%s dates)", len(dates))
            self.monitored_dates = dates

    async def run_daily_digest(self) -> bool:
        """Render the current tracker state and dispatch it."""

        body = render_report(self.tracker.state)
        if self.config.include_stats_in_digest:
            body = f"{body}\n\n{self.stats.format_report()}"

        sent = await self._dispatch(DIGEST_SUBJECT, body)
        if sent:
            self.stats.record_digest()
        return sent

    async def _dispatch(self, subject: str, body: str) -> bool:
        try:
            await self.notifier.dispatch(subject, body)
        except DeliveryError as exc:
            self.logger.error("❌ Error sending notification %r: %s", subject, exc)
            self.stats.record_delivery_failure()
            return False
        except Exception as exc:
            self.logger.error(
                "❌ Unexpected error sending notification %r: %s", subject, exc, exc_info=True
            )
            self.stats.record_delivery_failure()
            return False

        self.logger.info("📧 Notification sent: %s", subject)
        return True

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    async def _refresh_loop(self) -> None:
        while True:
            await self.run_refresh_cycle()

            delay = next_refresh_delay(
                self.config.refresh_base_interval_ms,
                self.config.refresh_jitter_max_ms,
                self._rng,
            )
            self.next_refresh_at = self._clock() + timedelta(seconds=delay)
            self.logger.info("🔄 Next refresh in %.1f minutes", delay / 60)
            await self._sleep(delay)

    async def _digest_loop(self) -> None:
        hour = self.config.daily_digest_hour_utc
        fire = next_daily_fire(self._clock(), hour)

        while True:
            self.next_digest_at = fire
            delay = seconds_until(fire, self._clock())
            self.logger.info(
                "⏳ Scheduling next daily report in %s minutes", round(delay / 60)
            )
            await self._sleep(delay)
            await self.run_daily_digest()

            fire = following_daily_fire(fire)
            now = self._clock()
            if fire < now:
                self.logger.warning(
                    "Missed daily report slot %s; rescheduling from %s", fire.isoformat(), now.isoformat()
                )
                fire = next_daily_fire(now, hour)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return

        self._stopped.clear()
        self.logger.info("🚀 Starting trigger scheduler")
        if self.config.send_startup_notice:
            await self._dispatch(*format_startup_notice())

        self._tasks = [
            asyncio.create_task(self._refresh_loop(), name="periodic-refresh"),
            asyncio.create_task(self._digest_loop(), name="daily-digest"),
        ]
        for task in self._tasks:
            task.add_done_callback(self._on_task_done)

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()
        pending = [task for task in tasks if task is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._stopped.set()
        self.logger.info("✅ Trigger scheduler stopped")

    def request_stop(self) -> None:
        """Schedule :meth:`stop` from a signal handler."""
        if self._stop_task is None or self._stop_task.done():
            self._stop_task = asyncio.get_running_loop().create_task(self.stop())

    async def run_forever(self) -> None:
        await self.start()
        await self._stopped.wait()

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.critical(
                "Trigger %s stopped unexpectedly: %s", task.get_name(), exc, exc_info=exc
            )
