from monitoring.metrics import MonitorStats


def test_monitor_stats_records_cycles_and_failures():
    stats = MonitorStats()

    stats.record_cycle(execution_time=2.0)
    stats.record_failed_cycle(execution_time=4.0)

    assert stats.refresh_cycles == 2
    assert stats.failed_cycles == 1
    assert stats.avg_cycle_time == 3.0
    assert round(stats.success_rate, 2) == 50.0


def test_monitor_stats_ignores_invalid_durations():
    stats = MonitorStats()

    stats.record_cycle(execution_time=-1)
    stats.record_cycle(execution_time="slow")

    assert stats.total_cycle_time == 0.0


def test_monitor_stats_report_mentions_delivery_failures_only_when_present():
    stats = MonitorStats()
    stats.record_alert()

    report = stats.format_report()
    assert "Alerts Sent: 1" in report
    assert "Delivery Failures" not in report

    stats.record_delivery_failure()
    assert "Delivery Failures: 1" in stats.format_report()
