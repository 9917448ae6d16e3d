import asyncio
import random
from datetime import datetime

import pytest
import pytz

from infrastructure.constants import DIGEST_HEADER, DIGEST_SUBJECT, STARTUP_REPORT_SUBJECT, STARTUP_SUBJECT
from infrastructure.errors import ConfigurationError, DeliveryError, FetchError
from monitoring.date_set import MonitoredDates
from monitoring.trigger_scheduler import SchedulerConfig, TriggerScheduler
from tests.helpers import DummyLogger, FakeClock, RecordingNotifier, StubSource, parking_entry

MONITORED = MonitoredDates(["2025-02-01", "2025-02-02"])


def _config(**overrides):
    values = dict(
        refresh_base_interval_ms=1_800_000,
        refresh_jitter_max_ms=300_000,
        daily_digest_hour_utc=7,
        send_startup_notice=False,
        send_startup_report=False,
        include_stats_in_digest=False,
    )
    values.update(overrides)
    return SchedulerConfig(**values)


def _scheduler(source, notifier, *, config=None, **kwargs):
    kwargs.setdefault("logger", DummyLogger())
    kwargs.setdefault("rng", random.Random(7))
    return TriggerScheduler(source, notifier, MONITORED, config or _config(), **kwargs)


def _utc(*args):
    return pytz.utc.localize(datetime(*args))


class CancellingSleep:
    """Records requested delays and cancels the loop after ``limit`` sleeps."""

    def __init__(self, limit, clock=None, extra_advance=0.0):
        self.limit = limit
        self.clock = clock
        self.extra_advance = extra_advance
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay + self.extra_advance)
            self.extra_advance = 0.0
        if len(self.delays) >= self.limit:
            raise asyncio.CancelledError()
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_two_cycle_example_alerts_once_for_the_flipped_date():
    source = StubSource([
        {"2025-02-01": parking_entry(True), "2025-02-02": parking_entry(True)},
        {"2025-02-01": parking_entry(False), "2025-02-02": parking_entry(True)},
    ])
    notifier = RecordingNotifier()
    scheduler = _scheduler(source, notifier)

    first = await scheduler.run_refresh_cycle()
    assert first.transitions == []
    assert notifier.sent == []
    assert dict(scheduler.tracker.state) == {"2025-02-01": False, "2025-02-02": False}

    second = await scheduler.run_refresh_cycle()
    assert second.transitions == ["2025-02-01"]
    assert len(notifier.sent) == 1
    subject, body = notifier.sent[0]
    assert "2025-02-01" in subject
    assert "2025-02-01" in body
    assert dict(scheduler.tracker.state) == {"2025-02-01": True, "2025-02-02": False}
    assert scheduler.stats.alerts_sent == 1


@pytest.mark.asyncio
async def test_alerts_are_dispatched_in_date_order():
    monitored = MonitoredDates(["2025-02-08", "2025-02-01", "2025-02-02"])
    source = StubSource([
        {date: parking_entry(True) for date in monitored},
        {date: parking_entry(False) for date in monitored},
    ])
    notifier = RecordingNotifier()
    scheduler = TriggerScheduler(source, notifier, monitored, _config(), logger=DummyLogger())

    await scheduler.run_refresh_cycle()
    await scheduler.run_refresh_cycle()

    assert notifier.subjects == [
        "🚗 Parking Available: 2025-02-01",
        "🚗 Parking Available: 2025-02-02",
        "🚗 Parking Available: 2025-02-08",
    ]


@pytest.mark.asyncio
async def test_fetch_error_skips_cycle_and_keeps_state():
    source = StubSource([
        {"2025-02-01": parking_entry(True)},
        FetchError("navigation failed"),
        {"2025-02-01": parking_entry(False)},
    ])
    notifier = RecordingNotifier()
    logger = DummyLogger()
    scheduler = _scheduler(source, notifier, logger=logger)

    await scheduler.run_refresh_cycle()
    assert await scheduler.run_refresh_cycle() is None
    assert dict(scheduler.tracker.state) == {"2025-02-01": False}
    assert "error" in logger.levels()

    result = await scheduler.run_refresh_cycle()
    assert result.transitions == ["2025-02-01"]
    assert scheduler.stats.refresh_cycles == 3
    assert scheduler.stats.failed_cycles == 1


@pytest.mark.asyncio
async def test_unexpected_source_error_is_not_fatal():
    source = StubSource([RuntimeError("browser crashed")])
    scheduler = _scheduler(source, RecordingNotifier())

    assert await scheduler.run_refresh_cycle() is None
    assert dict(scheduler.tracker.state) == {}


@pytest.mark.asyncio
async def test_delivery_failure_is_logged_and_state_still_advances():
    source = StubSource([
        {"2025-02-01": parking_entry(True)},
        {"2025-02-01": parking_entry(False)},
    ])
    logger = DummyLogger()
    scheduler = _scheduler(source, RecordingNotifier(error=DeliveryError("topic missing")), logger=logger)

    await scheduler.run_refresh_cycle()
    result = await scheduler.run_refresh_cycle()

    assert result.transitions == ["2025-02-01"]
    assert dict(scheduler.tracker.state) == {"2025-02-01": True}
    assert scheduler.stats.delivery_failures == 1
    assert scheduler.stats.alerts_sent == 0
    assert "error" in logger.levels()


@pytest.mark.asyncio
async def test_malformed_entries_do_not_abort_the_cycle():
    source = StubSource([{"2025-02-01": 3, "2025-02-02": parking_entry(False)}])
    scheduler = _scheduler(source, RecordingNotifier())

    result = await scheduler.run_refresh_cycle()

    assert dict(result.current) == {"2025-02-02": True}


@pytest.mark.asyncio
async def test_daily_digest_renders_current_state():
    source = StubSource([{"2025-02-02": parking_entry(True), "2025-02-01": parking_entry(False)}])
    notifier = RecordingNotifier()
    scheduler = _scheduler(source, notifier)
    await scheduler.run_refresh_cycle()

    assert await scheduler.run_daily_digest() is True

    assert notifier.sent == [(
        DIGEST_SUBJECT,
        "\n".join([
            DIGEST_HEADER,
            "📅 2025-02-01 - Available: ✅ Yes",
            "📅 2025-02-02 - Available: ❌ No",
        ]),
    )]
    assert scheduler.stats.digests_sent == 1


@pytest.mark.asyncio
async def test_daily_digest_appends_activity_summary_when_enabled():
    notifier = RecordingNotifier()
    scheduler = _scheduler(StubSource([{}]), notifier, config=_config(include_stats_in_digest=True))

    await scheduler.run_daily_digest()

    body = notifier.sent[0][1]
    assert body.startswith(DIGEST_HEADER)
    assert "Refresh Cycles: 0" in body


@pytest.mark.asyncio
async def test_digest_during_inflight_refresh_sees_previous_full_snapshot():
    gate = asyncio.Event()

    class GatedSource:
        def __init__(self):
            self.calls = 0

        async def fetch(self):
            self.calls += 1
            if self.calls == 1:
                return {"2025-02-01": parking_entry(True), "2025-02-02": parking_entry(True)}
            await gate.wait()
            return {"2025-02-01": parking_entry(False)}

    notifier = RecordingNotifier()
    scheduler = _scheduler(GatedSource(), notifier)
    await scheduler.run_refresh_cycle()

    inflight = asyncio.create_task(scheduler.run_refresh_cycle())
    await asyncio.sleep(0)
    await scheduler.run_daily_digest()
    gate.set()
    await inflight

    digest_body = notifier.sent[0][1]
    assert "2025-02-01 - Available: ❌ No" in digest_body
    assert "2025-02-02 - Available: ❌ No" in digest_body
    assert dict(scheduler.tracker.state) == {"2025-02-01": True}


@pytest.mark.asyncio
async def test_startup_report_is_sent_once_after_first_snapshot():
    source = StubSource([
        {"2025-02-01": parking_entry(True)},
        {"2025-02-01": parking_entry(True)},
    ])
    notifier = RecordingNotifier()
    scheduler = _scheduler(source, notifier, config=_config(send_startup_report=True))

    await scheduler.run_refresh_cycle()
    await scheduler.run_refresh_cycle()

    assert notifier.subjects == [STARTUP_REPORT_SUBJECT]
    assert "2025-02-01 - Available: ❌ No" in notifier.sent[0][1]


def test_invalid_digest_hour_fails_at_construction():
    with pytest.raises(ConfigurationError):
        _scheduler(StubSource([{}]), RecordingNotifier(), config=_config(daily_digest_hour_utc=24))


@pytest.mark.asyncio
async def test_refresh_loop_rearms_with_jittered_delay_after_each_cycle():
    source = StubSource([FetchError("offline"), {"2025-02-01": parking_entry(True)}])
    sleep = CancellingSleep(limit=2)
    scheduler = _scheduler(source, RecordingNotifier(), sleep=sleep)

    with pytest.raises(asyncio.CancelledError):
        await scheduler._refresh_loop()

    assert source.calls == 2
    assert len(sleep.delays) == 2
    assert all(1800.0 <= delay <= 2100.0 for delay in sleep.delays)
    assert scheduler.next_refresh_at is not None
    assert dict(scheduler.tracker.state) == {"2025-02-01": False}


@pytest.mark.asyncio
async def test_digest_loop_waits_for_hour_then_advances_a_day():
    clock = FakeClock(_utc(2025, 2, 1, 8, 0))
    sleep = CancellingSleep(limit=2, clock=clock)
    notifier = RecordingNotifier()
    scheduler = _scheduler(StubSource([{}]), notifier, clock=clock, sleep=sleep)

    with pytest.raises(asyncio.CancelledError):
        await scheduler._digest_loop()

    assert sleep.delays == [23 * 3600.0, 24 * 3600.0]
    assert notifier.subjects == [DIGEST_SUBJECT]
    assert scheduler.next_digest_at == _utc(2025, 2, 3, 7, 0)


@pytest.mark.asyncio
async def test_digest_loop_reschedules_after_missed_slot():
    clock = FakeClock(_utc(2025, 2, 1, 5, 0))
    # The first wait overruns by two days (e.g. the host was suspended).
    sleep = CancellingSleep(limit=2, clock=clock, extra_advance=2 * 86400 + 1800)
    logger = DummyLogger()
    scheduler = _scheduler(StubSource([{}]), RecordingNotifier(), clock=clock, sleep=sleep, logger=logger)

    with pytest.raises(asyncio.CancelledError):
        await scheduler._digest_loop()

    assert sleep.delays[0] == 2 * 3600.0
    assert scheduler.next_digest_at == _utc(2025, 2, 4, 7, 0)
    assert "warning" in logger.levels()


@pytest.mark.asyncio
async def test_start_and_stop_manage_both_triggers():
    source = StubSource([{"2025-02-01": parking_entry(True)}])
    notifier = RecordingNotifier()
    scheduler = _scheduler(source, notifier, config=_config(send_startup_notice=True))

    runner = asyncio.create_task(scheduler.run_forever())

    async def _wait_for_first_cycle():
        while source.calls == 0 or scheduler.next_refresh_at is None:
            await asyncio.sleep(0)

    await asyncio.wait_for(_wait_for_first_cycle(), timeout=1)
    assert scheduler.running
    assert notifier.subjects[0] == STARTUP_SUBJECT

    await scheduler.stop()
    await asyncio.wait_for(runner, timeout=1)

    assert not scheduler.running
    assert source.calls == 1


@pytest.mark.asyncio
async def test_request_stop_keeps_a_reference_to_the_stop_task():
    scheduler = _scheduler(StubSource([{}]), RecordingNotifier())
    await scheduler.start()

    scheduler.request_stop()
    stop_task = scheduler._stop_task
    scheduler.request_stop()

    assert stop_task is not None
    assert scheduler._stop_task is stop_task
    await asyncio.wait_for(stop_task, timeout=1)
    assert not scheduler.running
    assert scheduler._stopped.is_set()


@pytest.mark.asyncio
async def test_rolling_window_is_re_resolved_each_cycle():
    windows = [
        MonitoredDates(["2025-02-01", "2025-02-02"]),
        MonitoredDates(["2025-02-02", "2025-02-08"]),
    ]
    payload = {
        "2025-02-01": parking_entry(False),
        "2025-02-02": parking_entry(True),
        "2025-02-08": parking_entry(False),
    }
    scheduler = _scheduler(
        StubSource([payload, payload]),
        RecordingNotifier(),
        date_resolver=lambda: windows.pop(0),
    )

    await scheduler.run_refresh_cycle()
    assert set(scheduler.tracker.state) == {"2025-02-01", "2025-02-02"}

    await scheduler.run_refresh_cycle()
    assert dict(scheduler.tracker.state) == {"2025-02-02": False, "2025-02-08": True}
    assert scheduler.monitored_dates == MonitoredDates(["2025-02-08", "2025-02-02"])
