"""Availability state tracking and transition detection."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional

import pytz


AvailabilityState = Mapping[str, bool]

_EMPTY_STATE: AvailabilityState = MappingProxyType({})


def _freeze(snapshot: Mapping[str, bool]) -> AvailabilityState:
    return MappingProxyType(dict(snapshot))


@dataclass(frozen=True)
class AvailabilityDiff:
    """Result of comparing two availability snapshots."""

    transitions: FrozenSet[str]
    new_state: AvailabilityState

    def sorted_transitions(self) -> List[str]:
        return sorted(self.transitions)

    def has_transitions(self) -> bool:
        return bool(self.transitions)


def diff_availability(
    previous: Mapping[str, bool],
    next_snapshot: Mapping[str, bool],
) -> AvailabilityDiff:
    """Return the dates that flipped from unavailable to available.

    A date counts only when it was previously seen as unavailable; a date that
    is available on its first sighting is not a transition. The new state is
    ``next_snapshot`` verbatim - dates missing from it are forgotten.
    """

    transitions = frozenset(
        date
        for date, available in next_snapshot.items()
        if available is True and previous.get(date) is False
    )
    return AvailabilityDiff(transitions=transitions, new_state=_freeze(next_snapshot))


@dataclass
class PollResult:
    """Container for one accepted (or discarded) snapshot and its transitions."""

    timestamp: datetime
    previous: AvailabilityState
    current: AvailabilityState
    transitions: List[str] = field(default_factory=list)
    is_initial: bool = False
    stale: bool = False

    def has_transitions(self) -> bool:
        return bool(self.transitions)


class AvailabilityTracker:
    """Owns the tracker state and swaps it atomically on every accepted snapshot."""

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("AvailabilityTracker")
        self._state: AvailabilityState = _EMPTY_STATE
        self._has_baseline = False
        self._generations = itertools.count(1)
        self._applied_generation = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> AvailabilityState:
        """The most recently accepted snapshot (read-only)."""
        return self._state

    @property
    def has_baseline(self) -> bool:
        return self._has_baseline

    def begin_cycle(self) -> int:
        """Reserve a generation token before fetching a new snapshot."""
        with self._lock:
            return next(self._generations)

    def apply(
        self,
        snapshot: Mapping[str, bool],
        *,
        generation: Optional[int] = None,
    ) -> PollResult:
        """Diff ``snapshot`` against the current state and replace it.

        When ``generation`` is older than the last applied one the snapshot is
        discarded, so overlapping cycles resolve to the latest fetch.
        """

        timestamp = datetime.now(pytz.utc)
        with self._lock:
            if generation is None:
                generation = next(self._generations)

            previous = self._state
            if generation < self._applied_generation:
                self._logger.warning(
                    "Discarding stale snapshot from cycle %s (already applied cycle %s)",
                    generation,
                    self._applied_generation,
                )
                return PollResult(
                    timestamp=timestamp,
                    previous=previous,
                    current=previous,
                    stale=True,
                )

            diff = diff_availability(previous, snapshot)
            is_initial = not self._has_baseline

            self._state = diff.new_state
            self._applied_generation = generation
            self._has_baseline = True

        return PollResult(
            timestamp=timestamp,
            previous=previous,
            current=diff.new_state,
            transitions=diff.sorted_transitions(),
            is_initial=is_initial,
        )
