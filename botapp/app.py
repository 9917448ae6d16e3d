#!/usr/bin/env python3
"""
Parking availability monitor - process entry point.
"""

import asyncio
import functools
import logging
import signal
import sys
from pathlib import Path

if __name__ == "__main__" and __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    __package__ = "botapp"

from logging_config import setup_logging

from automation.snapshot_source import PlaywrightSnapshotSource
from botapp.notifications import build_notifier
from infrastructure.errors import ConfigurationError
from infrastructure.settings import MonitorSettings, load_settings
from monitoring.date_set import resolve_monitored_dates
from monitoring.trigger_scheduler import SchedulerConfig, TriggerScheduler


async def run_monitor(settings: MonitorSettings) -> None:
    """Build the collaborators and run the scheduler until a stop signal arrives."""

    logger = logging.getLogger('Main')

    resolve_dates = functools.partial(
        resolve_monitored_dates,
        settings.monitored_dates,
        settings.window_months,
        weekends_only=settings.weekends_only,
        timezone_str=settings.timezone,
    )
    monitored_dates = resolve_dates()
    dates = monitored_dates.as_tuple()
    if dates:
        logger.info("📅 Monitoring %s dates (%s → %s)", len(dates), dates[0], dates[-1])
    else:
        logger.warning("No dates to monitor - only startup and daily reports will be sent")

    source = PlaywrightSnapshotSource(
        settings.parking_url,
        url_marker=settings.availability_url_marker,
        headless=settings.headless,
    )
    notifier = build_notifier(settings)
    scheduler = TriggerScheduler(
        source,
        notifier,
        monitored_dates,
        SchedulerConfig.from_settings(settings),
        # Explicit dates are fixed; a generated window rolls forward with the calendar
        date_resolver=None if settings.monitored_dates else resolve_dates,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.request_stop)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            pass

    try:
        await scheduler.run_forever()
    finally:
        logger.info("🔄 Final cleanup...")
        await scheduler.stop()
        await source.stop()
        await notifier.close()


def main() -> int:
    """Entry point used by both the console script and module execution."""

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        setup_logging()
        logging.getLogger('Main').critical("❌ Invalid configuration: %s", exc)
        return 2

    setup_logging(production_mode=settings.production_mode)
    logger = logging.getLogger('Main')
    logger.info("=" * 50)
    logger.info("Parking Availability Monitor")
    logger.info("=" * 50)

    try:
        asyncio.run(run_monitor(settings))
    except KeyboardInterrupt:
        logger.info("✅ Stopped by user (Ctrl+C)")
    except ConfigurationError as exc:
        logger.critical("❌ Invalid configuration: %s", exc)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
