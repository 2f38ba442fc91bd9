"""SubGroup: a beat-aligned slice of a voice's intervals and its beaming."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Final

import numpy as np

from rhythmgroup.rhythm_models import (
    BasicRhythmicLength,
    LengthModifier,
    RhythmicInterval,
    RhythmicLength,
    StemDirection,
)

_EIGHTH: Final[int] = RhythmicLength(BasicRhythmicLength.EIGHTH).length_in_units
_DOTTED_EIGHTH: Final[int] = RhythmicLength(BasicRhythmicLength.EIGHTH, LengthModifier.DOTTED).length_in_units
_SIXTEENTH: Final[int] = RhythmicLength(BasicRhythmicLength.SIXTEENTH).length_in_units

#: Basic lengths that may open a beamed run.
BEAMABLE_LENGTHS: Final[frozenset[BasicRhythmicLength]] = frozenset(
    {BasicRhythmicLength.EIGHTH, BasicRhythmicLength.SIXTEENTH}
)

#: Length (units) of the last run member -> lengths (units) that may follow it.
BEAM_TRANSITIONS: Final[dict[int, frozenset[int]]] = {
    _EIGHTH: frozenset({_EIGHTH, _SIXTEENTH}),
    _DOTTED_EIGHTH: frozenset({_SIXTEENTH}),
    _SIXTEENTH: frozenset({_EIGHTH, _SIXTEENTH, _DOTTED_EIGHTH}),
}


def average_note_height(intervals: Iterable[RhythmicInterval]) -> float | None:
    """Mean height of all note heads of the given intervals, or None without heads."""
    heights = [height for interval in intervals for height in interval.note_heads]
    if not heights:
        return None
    return float(np.mean(heights))


def find_connected_intervals(intervals: Iterable[RhythmicInterval]) -> list[list[RhythmicInterval]]:
    """
    Group intervals into runs that should be beamed together.

    Intervals are visited ordered by end unit:

    - a rest closes the current run;
    - an empty run is only opened by an eighth or a sixteenth;
    - a note extends the run when ``BEAM_TRANSITIONS`` allows it after the
      run's last member, otherwise it closes the run without opening a new one.

    Runs with a single member are dropped.

    Returns:
        Disjoint runs, each with at least two non-rest intervals.
    """
    connected: list[list[RhythmicInterval]] = []
    run: list[RhythmicInterval] = []

    def close_run() -> None:
        nonlocal run
        if len(run) > 1:
            connected.append(run)
        run = []

    for interval in sorted(intervals, key=lambda i: i.end_unit):
        if interval.is_rest:
            close_run()
            continue

        if not run:
            if interval.length.basic_length in BEAMABLE_LENGTHS:
                run.append(interval)
            continue

        allowed = BEAM_TRANSITIONS.get(run[-1].length.length_in_units, frozenset())
        if interval.length.length_in_units in allowed:
            run.append(interval)
        else:
            close_run()

    close_run()
    return connected


class SubGroup:
    """
    Intervals of a voice starting inside one beat-aligned span of a measure.

    ``padding_factor`` and ``last_interval`` are written by the owning
    :class:`~rhythmgroup.voice.Voice` through :meth:`update_padding` after each
    membership change; ``connected_intervals`` is refreshed by
    :meth:`calculate_connected_intervals`.

    Raises:
        ValueError: When a given interval does not start inside
                    [start_unit, end_unit], or is given twice.
    """

    #: Average note height up to which stems point upwards.
    STEM_THRESHOLD: Final[float] = 6.5

    def __init__(self, intervals: Iterable[RhythmicInterval], start_unit: int, end_unit: int) -> None:
        if start_unit > end_unit:
            raise ValueError(f"Sub group start unit {start_unit} lies after its end unit {end_unit}.")
        self._start_unit = start_unit
        self._end_unit = end_unit
        self._intervals: list[RhythmicInterval] = []
        self._padding_factor = 0
        self._last_interval: RhythmicInterval | None = None
        self._connected_intervals: list[list[RhythmicInterval]] = []
        for interval in intervals:
            self.add(interval)

    def __repr__(self) -> str:
        return (
            f"SubGroup(units={self._start_unit}..{self._end_unit}, "
            f"intervals={len(self._intervals)}, padding_factor={self._padding_factor})"
        )

    def __len__(self) -> int:
        return len(self._intervals)

    def __contains__(self, interval: object) -> bool:
        return any(member is interval for member in self._intervals)

    def __iter__(self) -> Iterator[RhythmicInterval]:
        return iter(self.intervals)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def start_unit(self) -> int:
        return self._start_unit

    @property
    def end_unit(self) -> int:
        return self._end_unit

    @property
    def intervals(self) -> list[RhythmicInterval]:
        """Copy of the members in time order."""
        return sorted(self._intervals, key=lambda i: i.start_unit)

    @property
    def padding_factor(self) -> int:
        """How many inter-group paddings follow the last interval when drawn."""
        return self._padding_factor

    @property
    def last_interval(self) -> RhythmicInterval | None:
        """The member with the greatest end unit, None when empty."""
        return self._last_interval

    @property
    def connected_intervals(self) -> list[list[RhythmicInterval]]:
        return [list(run) for run in self._connected_intervals]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, interval: RhythmicInterval) -> None:
        """
        Add an interval that starts inside this sub group.

        Raises:
            ValueError: When the interval starts outside [start_unit, end_unit]
                        or is already a member.
        """
        if not self._start_unit <= interval.start_unit <= self._end_unit:
            raise ValueError(
                f"Interval starting at unit {interval.start_unit} doesn't start in "
                f"units {self._start_unit}..{self._end_unit}."
            )
        if interval in self:
            raise ValueError("The given interval is already part of the sub group!")
        self._intervals.append(interval)

    def remove(self, interval: RhythmicInterval) -> None:
        """
        Raises:
            ValueError: When the interval is not a member.
        """
        for idx, member in enumerate(self._intervals):
            if member is interval:
                del self._intervals[idx]
                return
        raise ValueError("The given interval is not in the sub group!")

    def is_last(self, interval: RhythmicInterval) -> bool:
        """
        Whether the interval is the recorded ``last_interval``.

        Raises:
            ValueError: When the interval is not a member.
        """
        if interval not in self:
            raise ValueError("The given interval is not part of the sub group!")
        return interval is self._last_interval

    def update_padding(self, padding_factor: int, last_interval: RhythmicInterval | None) -> None:
        """Record padding values calculated by the owning voice."""
        if padding_factor < 0:
            raise ValueError("Padding factors cannot be negative.")
        if last_interval is not None and last_interval not in self:
            raise ValueError("The last interval must be part of the sub group!")
        self._padding_factor = padding_factor
        self._last_interval = last_interval

    def average_note_height(self) -> float | None:
        return average_note_height(self._intervals)

    def stem_direction(self) -> StemDirection:
        """
        Common stem direction of all members, decided by their average note height.

        Rest-only and empty sub groups default to UP.
        """
        average = self.average_note_height()
        if average is None or average <= self.STEM_THRESHOLD:
            return StemDirection.UP
        return StemDirection.DOWN

    def calculate_connected_intervals(self) -> None:
        """Recompute ``connected_intervals`` from the current members."""
        self._connected_intervals = find_connected_intervals(self._intervals)
