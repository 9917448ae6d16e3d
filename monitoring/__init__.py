"""Availability monitoring core: date set, normalizer, tracker, scheduler."""

from .availability_tracker import AvailabilityDiff, AvailabilityTracker, PollResult, diff_availability
from .date_set import MonitoredDates, resolve_monitored_dates
from .report_formatter import format_transition_alert, render_report
from .snapshot_normalizer import extract_availability_payload, normalize_snapshot
from .trigger_scheduler import SchedulerConfig, TriggerScheduler

__all__ = [
    "AvailabilityDiff",
    "AvailabilityTracker",
    "PollResult",
    "diff_availability",
    "MonitoredDates",
    "resolve_monitored_dates",
    "format_transition_alert",
    "render_report",
    "extract_availability_payload",
    "normalize_snapshot",
    "SchedulerConfig",
    "TriggerScheduler",
]
