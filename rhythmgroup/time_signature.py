"""TimeSignature: unit arithmetic and sub group classification for one measure."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Final

from rhythmgroup.rhythm_models import RhythmicInterval

UNITS_PER_WHOLE: Final[int] = 16
SUPPORTED_DENOMINATORS: Final[frozenset[int]] = frozenset({1, 2, 4, 8, 16})


@dataclass(frozen=True)
class TimeSignature:
    """
    A measure's meter, expressed in sixteenth units.

    The measure is divided into beat-aligned sub groups:

    - compound eighth meters (6/8, 9/8, 12/8, ...) group by dotted quarters;
    - other eighth meters pair eighths into quarters, a leftover eighth
      joining the last group (5/8 -> 2 + 3 eighths);
    - every other meter gets one sub group per beat.

    Raises:
        ValueError: For a non-positive numerator or an unsupported denominator.
    """

    numerator: int
    denominator: int
    sub_group_end_units: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.numerator < 1:
            raise ValueError(f"Invalid numerator {self.numerator}.")
        if self.denominator not in SUPPORTED_DENOMINATORS:
            supported = ", ".join(str(d) for d in sorted(SUPPORTED_DENOMINATORS))
            raise ValueError(f"Unsupported denominator {self.denominator}. Use one of: {supported}.")
        object.__setattr__(self, "sub_group_end_units", tuple(self._build_end_units()))

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_end_units(self) -> list[int]:
        beat_units = UNITS_PER_WHOLE // self.denominator
        if self.denominator == 8:
            if self.numerator % 3 == 0 and self.numerator > 3:
                group_sizes = [3 * beat_units] * (self.numerator // 3)
            elif self.numerator == 1:
                group_sizes = [beat_units]
            else:
                group_sizes = [2 * beat_units] * (self.numerator // 2)
                if self.numerator % 2:
                    group_sizes[-1] += beat_units
        else:
            group_sizes = [beat_units] * self.numerator

        end_units: list[int] = []
        unit = 0
        for size in group_sizes:
            unit += size
            end_units.append(unit)
        return end_units

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def units(self) -> int:
        """Total length of a measure in sixteenth units."""
        return self.numerator * UNITS_PER_WHOLE // self.denominator

    @property
    def number_of_sub_groups(self) -> int:
        return len(self.sub_group_end_units)

    def sub_group_bounds(self, sub_group_idx: int) -> tuple[int, int]:
        """
        Return the inclusive (start_unit, end_unit) of a sub group slot.

        Raises:
            ValueError: If the index is not a slot of this time signature.
        """
        if not 0 <= sub_group_idx < self.number_of_sub_groups:
            raise ValueError(f"Sub group index {sub_group_idx} is outside of {self}.")
        start_unit = 1 if sub_group_idx == 0 else self.sub_group_end_units[sub_group_idx - 1] + 1
        return start_unit, self.sub_group_end_units[sub_group_idx]

    def calculate_last_covered_sub_group(self, end_unit: int) -> int:
        """
        Return the index of the sub group containing ``end_unit``.

        Raises:
            ValueError: If the unit lies outside the measure.
        """
        if end_unit < 1 or end_unit > self.units:
            raise ValueError(f"Unit {end_unit} lies outside a {self} measure of {self.units} units.")
        return bisect_left(self.sub_group_end_units, end_unit)

    def calculate_sub_group(self, interval: RhythmicInterval) -> int:
        """
        Return the index of the sub group the interval starts in.

        Raises:
            ValueError: If the interval exceeds the measure.
        """
        if interval.end_unit > self.units:
            raise ValueError(f"Interval ending at unit {interval.end_unit} exceeds a {self} measure.")
        return self.calculate_last_covered_sub_group(interval.start_unit)
