"""Repeating daily schedule of phases.

A Schedule is an ordered list of (TimeInterval, Phase) pairs built by
successive add_phase() calls. The first interval starts at 0 and each
following one starts where the previous ended. Any absolute time maps to
a phase via ``t mod period`` and a linear scan over half-open
intervals [start, end), so an instant exactly on a boundary belongs to
the interval beginning there.

Time flow:

    |     Phase 1     |         Phase 2          |  <- phase sequence
    |  1 |  2 |  3 |  4 |  5 |  6 |  7 |  8 |  9 |  <- time steps
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from episim.errors import EmptyScheduleError, InvalidDurationError
from episim.temporal import Time, TimeInterval
from episim.types import Phase, TimeUnit


class Schedule:
    """Ordered, repeating sequence of phases."""

    def __init__(self):
        self._intervals: List[Tuple[TimeInterval, Phase]] = []
        self._unit: Optional[TimeUnit] = None

    def add_phase(self, phase: Phase, duration: Time) -> None:
        """Append a phase lasting *duration*.

        Raises:
            InvalidDurationError: If duration <= 0.
        """
        if duration.amount <= 0.0:
            raise InvalidDurationError(
                f"Phase {phase.name} duration must be > 0, got {duration!r}"
            )
        if self._unit is None:
            self._unit = duration.unit
            start = Time(0.0, self._unit)
        else:
            start = self._intervals[-1][0].end
        end = start + duration
        self._intervals.append((TimeInterval(start, end), phase))

    def __len__(self) -> int:
        return len(self._intervals)

    @property
    def intervals(self) -> List[Tuple[TimeInterval, Phase]]:
        return list(self._intervals)

    @property
    def phases(self) -> List[Phase]:
        return [phase for _, phase in self._intervals]

    @property
    def period(self) -> Time:
        """Sum of all phase durations."""
        self._require_phases()
        return self._intervals[-1][0].end.copy()

    def _require_phases(self) -> None:
        if not self._intervals:
            raise EmptyScheduleError("Schedule has no phases")

    def get_interval(self, t: Time) -> Tuple[TimeInterval, Phase]:
        """Return the (interval, phase) pair containing *t*.

        Raises:
            EmptyScheduleError: If no phases were added.
        """
        self._require_phases()
        period = self._intervals[-1][0].end
        offset = t.convert(self._unit) % period
        for interval, phase in self._intervals:
            if offset.amount < interval.end.amount:
                return interval, phase
        # Floating-point residue equal to the period wraps to the start
        return self._intervals[0]

    def get_phase(self, t: Time) -> Phase:
        return self.get_interval(t)[1]

    def get_phase_duration(self, t: Time) -> Time:
        """Full duration of the phase occurrence containing *t*."""
        return self.get_interval(t)[0].duration

    def get_phase_remaining(self, t: Time) -> Time:
        """Time left in the phase occurrence containing *t*."""
        interval, _ = self.get_interval(t)
        offset = t.convert(self._unit) % self._intervals[-1][0].end
        return interval.end - offset


def default_schedule() -> Schedule:
    """A 24-hour weekday-style day."""
    schedule = Schedule()
    for phase, hours in (
        (Phase.SLEEP, 6),
        (Phase.HOME, 1),
        (Phase.GO_WORK, 1),
        (Phase.WORK, 4),
        (Phase.WORK_LUNCH, 1),
        (Phase.WORK, 4),
        (Phase.GO_HOME, 1),
        (Phase.LEISURE, 2),
        (Phase.HOME, 2),
        (Phase.SLEEP, 2),
    ):
        schedule.add_phase(phase, Time(hours, TimeUnit.HOUR))
    return schedule
