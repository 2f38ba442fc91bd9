"""Voice: partitions one musical line of a measure into sub groups."""

from __future__ import annotations

import logging

from rhythmgroup.rhythm_models import RhythmicInterval, StemDirection
from rhythmgroup.sub_group import SubGroup, average_note_height
from rhythmgroup.time_signature import TimeSignature

logger = logging.getLogger(__name__)


def calculate_padding_factor(
    sub_group: SubGroup,
    sub_group_idx: int,
    time_signature: TimeSignature,
) -> tuple[int, RhythmicInterval | None]:
    """
    Work out how many inter-group paddings belong after a sub group.

    At least one padding follows every sub group except the last one of a
    measure, which gets none. An interval stretching over several sub groups
    reserves one padding per crossed boundary.

    Args:
        sub_group:      The sub group to measure.
        sub_group_idx:  Position of the sub group in its voice.
        time_signature: Time signature the sub group was built from.

    Returns:
        (padding_factor, last_interval), where last_interval is the member
        with the greatest end unit or None for an empty sub group.

    Raises:
        ValueError: When the index is negative or beyond the time signature's
                    sub groups.
    """
    if not 0 <= sub_group_idx < time_signature.number_of_sub_groups:
        raise ValueError(
            "The given sub group index exceeds the sub groups in a bar of the time signature, or is negative!"
        )

    minimum = 1 if sub_group_idx < time_signature.number_of_sub_groups - 1 else 0

    last_interval: RhythmicInterval | None = None
    for interval in sub_group.intervals:
        if last_interval is None or interval.end_unit > last_interval.end_unit:
            last_interval = interval

    if last_interval is None:
        return minimum, None

    spread = time_signature.calculate_last_covered_sub_group(
        last_interval.end_unit
    ) - time_signature.calculate_sub_group(last_interval)
    return max(spread, minimum), last_interval


class Voice:
    """
    One musical line of a measure, grouped into beat-aligned sub groups.

    The voice owns its interval list. Owners edit ``intervals`` in place
    (insert, delete, resize and re-flow start units) and then call
    :meth:`recalculate_sub_groups_from` with the first changed position.

    Attributes:
        intervals:      Time-ordered notes and rests of the voice.
        stem_direction: Optional override set by the owning measure when
                        several voices share it; sub groups decide on their
                        own while it is None.

    Raises:
        ValueError: When ``intervals`` is empty, or an interval exceeds the
                    length of the time signature.
    """

    def __init__(self, intervals: list[RhythmicInterval], time_signature: TimeSignature) -> None:
        if not intervals:
            raise ValueError("Voices without intervals should not be created!")
        self.intervals = intervals
        self.stem_direction: StemDirection | None = None
        self._time_signature = time_signature
        self._sub_groups: list[SubGroup] = []
        self._interval_sub_group_idxs: dict[RhythmicInterval, int] = {}
        self.initialize_sub_groups()

    def __repr__(self) -> str:
        return f"Voice(time_signature={self._time_signature}, intervals={len(self.intervals)})"

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def time_signature(self) -> TimeSignature:
        return self._time_signature

    @time_signature.setter
    def time_signature(self, time_signature: TimeSignature) -> None:
        previous = self._time_signature
        self._time_signature = time_signature
        try:
            self.initialize_sub_groups()
        except ValueError:
            self._time_signature = previous
            raise

    @property
    def sub_groups(self) -> list[SubGroup]:
        """Copy of the sub group list, one entry per time signature slot."""
        return list(self._sub_groups)

    @property
    def interval_sub_group_idxs(self) -> dict[RhythmicInterval, int]:
        """Copy of the interval -> sub group index mapping."""
        return dict(self._interval_sub_group_idxs)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_fits_measure(self) -> None:
        for idx, interval in enumerate(self.intervals):
            if interval.start_unit < 1:
                raise ValueError(f"Interval {idx} starts before the measure.")
            if interval.end_unit > self._time_signature.units:
                raise ValueError(f"Interval {idx} exceeds the time signature's length.")

    def _refresh_sub_group(self, sub_group_idx: int) -> None:
        sub_group = self._sub_groups[sub_group_idx]
        padding_factor, last_interval = calculate_padding_factor(sub_group, sub_group_idx, self._time_signature)
        sub_group.update_padding(padding_factor, last_interval)
        sub_group.calculate_connected_intervals()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def initialize_sub_groups(self) -> None:
        """
        Sort all intervals into freshly built sub groups in one linear pass.

        Relies on ``intervals`` being in time order. The inverse mapping is
        rebuilt alongside.

        Raises:
            ValueError: When an interval exceeds the measure, or intervals
                        are out of time order and could not all be placed.
        """
        self._check_fits_measure()
        time_signature = self._time_signature

        sub_groups: list[SubGroup] = []
        sub_group_idxs: dict[RhythmicInterval, int] = {}
        cursor = 0
        for i in range(time_signature.number_of_sub_groups):
            start_unit, end_unit = time_signature.sub_group_bounds(i)
            sub_group = SubGroup([], start_unit, end_unit)
            # Stop at the first interval belonging to another sub group.
            while cursor < len(self.intervals) and time_signature.calculate_sub_group(self.intervals[cursor]) == i:
                sub_group.add(self.intervals[cursor])
                sub_group_idxs[self.intervals[cursor]] = i
                cursor += 1
            padding_factor, last_interval = calculate_padding_factor(sub_group, i, time_signature)
            sub_group.update_padding(padding_factor, last_interval)
            sub_group.calculate_connected_intervals()
            sub_groups.append(sub_group)

        if cursor < len(self.intervals):
            raise ValueError(f"Interval {cursor} is out of time order and could not be placed in a sub group.")

        self._sub_groups = sub_groups
        self._interval_sub_group_idxs = sub_group_idxs
        logger.debug("Initialized %d sub groups for %d intervals in %s", len(sub_groups), cursor, time_signature)

    def recalculate_sub_groups_from(self, interval_idx: int) -> None:
        """
        Reassign intervals to sub groups from ``interval_idx`` onwards.

        Newly inserted intervals are added, moved intervals change sub group,
        and intervals deleted from ``intervals`` are dropped from every sub
        group from the first touched one on. Padding and beaming of those sub
        groups are recomputed once their membership is settled.

        Raises:
            IndexError:   When the index is not a position in ``intervals``.
            ValueError:   When an interval exceeds the measure.
            RuntimeError: When the interval at the index ends up in no sub group.
        """
        if not 0 <= interval_idx < len(self.intervals):
            raise IndexError(f"Given index {interval_idx} exceeds interval list!")
        self._check_fits_measure()

        time_signature = self._time_signature
        # Classify every visited interval before touching any membership.
        visited = [(interval, time_signature.calculate_sub_group(interval)) for interval in self.intervals[interval_idx:]]

        first_sub_group_idx = time_signature.number_of_sub_groups
        for interval, new_idx in visited:
            previous_idx = self._interval_sub_group_idxs.get(interval)

            if previous_idx is None:
                self._sub_groups[new_idx].add(interval)
                logger.debug("Added interval at unit %d to sub group %d", interval.start_unit, new_idx)
            elif previous_idx != new_idx:
                self._sub_groups[previous_idx].remove(interval)
                self._sub_groups[new_idx].add(interval)
                logger.debug("Moved interval at unit %d from sub group %d to %d", interval.start_unit, previous_idx, new_idx)
            self._interval_sub_group_idxs[interval] = new_idx

            first_sub_group_idx = min(first_sub_group_idx, new_idx)
            if previous_idx is not None:
                first_sub_group_idx = min(first_sub_group_idx, previous_idx)

        present = set(self.intervals)
        for i in range(first_sub_group_idx, time_signature.number_of_sub_groups):
            sub_group = self._sub_groups[i]
            for interval in sub_group.intervals:
                if interval not in present:
                    sub_group.remove(interval)
                    self._interval_sub_group_idxs.pop(interval, None)
                    logger.debug("Dropped deleted interval from sub group %d", i)
            self._refresh_sub_group(i)

        if self.intervals[interval_idx] not in self._interval_sub_group_idxs:
            raise RuntimeError("The interval at the given idx is not part of a subgroup!")

    def stem_direction_for(self, sub_group_idx: int) -> StemDirection:
        """Stem direction to draw a sub group with: the override if set, else its own."""
        if self.stem_direction is not None:
            return self.stem_direction
        return self._sub_groups[sub_group_idx].stem_direction()

    def average_note_height(self) -> float | None:
        """
        Average height of all notes of the voice.

        Returns:
            None when the voice only consists of rests, the average otherwise.
        """
        return average_note_height(self.intervals)

    def is_voice_of_rests(self) -> bool:
        return self.average_note_height() is None
