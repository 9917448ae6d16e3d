"""Statistics helpers for the trigger scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class MonitorStats:
    """Mutable counters tracking monitor activity since process start."""

    refresh_cycles: int = 0
    failed_cycles: int = 0
    alerts_sent: int = 0
    delivery_failures: int = 0
    digests_sent: int = 0
    total_cycle_time: float = 0.0

    def record_cycle(self, execution_time: Optional[float] = None) -> None:
        self.refresh_cycles += 1
        self._record_cycle_time(execution_time)

    def record_failed_cycle(self, execution_time: Optional[float] = None) -> None:
        self.refresh_cycles += 1
        self.failed_cycles += 1
        self._record_cycle_time(execution_time)

    def record_alert(self) -> None:
        self.alerts_sent += 1

    def record_digest(self) -> None:
        self.digests_sent += 1

    def record_delivery_failure(self) -> None:
        self.delivery_failures += 1

    def _record_cycle_time(self, execution_time: Optional[float]) -> None:
        if execution_time is None:
            return
        try:
            value = float(execution_time)
        except (TypeError, ValueError):
            return
        if value < 0:
            return
        self.total_cycle_time += value

    @property
    def avg_cycle_time(self) -> float:
        if self.refresh_cycles == 0:
            return 0.0
        return self.total_cycle_time / self.refresh_cycles

    @property
    def success_rate(self) -> float:
        if self.refresh_cycles == 0:
            return 0.0
        return ((self.refresh_cycles - self.failed_cycles) / self.refresh_cycles) * 100

    def format_report(self) -> str:
        lines = [
            "📈 Monitor Activity",
            f"🔄 Refresh Cycles: {self.refresh_cycles}",
            f"❌ Failed Cycles: {self.failed_cycles}",
            f"🏆 Success Rate: {self.success_rate:.2f}%",
            f"⏱️ Avg Cycle Time: {self.avg_cycle_time:.2f}s",
            f"🚗 Alerts Sent: {self.alerts_sent}",
        ]
        if self.delivery_failures:
            lines.append(f"📭 Delivery Failures: {self.delivery_failures}")
        return "\n".join(lines)
