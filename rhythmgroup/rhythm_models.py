"""Data models for rhythmic intervals (notes and rests) inside a measure."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum


class BasicRhythmicLength(Enum):
    """Undotted note values, valued by their length in sixteenth units."""

    WHOLE = 16
    HALF = 8
    QUARTER = 4
    EIGHTH = 2
    SIXTEENTH = 1


class LengthModifier(Enum):
    NONE = "none"
    DOTTED = "dotted"


class NoteHeadType(Enum):
    ELLIPTIC = "elliptic"
    CROSS = "cross"


class StemDirection(Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class RhythmicLength:
    """
    A basic note value with an optional modifier.

    Raises:
        ValueError: For a dotted sixteenth, which does not fit into whole
                    sixteenth units.
    """

    basic_length: BasicRhythmicLength
    modifier: LengthModifier = LengthModifier.NONE

    def __post_init__(self) -> None:
        if self.modifier is LengthModifier.DOTTED and self.basic_length is BasicRhythmicLength.SIXTEENTH:
            raise ValueError("Dotted sixteenths cannot be expressed in sixteenth units.")

    @property
    def dotted(self) -> bool:
        return self.modifier is LengthModifier.DOTTED

    @property
    def length_in_units(self) -> int:
        units = self.basic_length.value
        if self.dotted:
            return units + units // 2
        return units


@dataclass(eq=False)
class RhythmicInterval:
    """
    A single note or rest positioned inside a measure.

    Intervals are compared and hashed by identity: two quarter notes on the
    same pitch are still two distinct members of a sub group.

    Attributes:
        length:     Rhythmic length of the interval.
        start_unit: First sixteenth unit covered, counted from 1.
        is_rest:    True for rests, which carry no note heads.
    """

    length: RhythmicLength
    start_unit: int = 1
    is_rest: bool = False
    _note_heads: dict[int, NoteHeadType] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.start_unit < 1:
            raise ValueError("Intervals start at unit 1 or later.")
        if self.is_rest and self._note_heads:
            raise ValueError("Rests cannot have note heads.")

    @classmethod
    def note(
        cls,
        length: RhythmicLength,
        heights: Iterable[int],
        start_unit: int = 1,
        head_type: NoteHeadType = NoteHeadType.ELLIPTIC,
    ) -> RhythmicInterval:
        """Create a note (or chord) with one head of ``head_type`` per height."""
        return cls(length, start_unit, False, {height: head_type for height in heights})

    @classmethod
    def rest(cls, length: RhythmicLength, start_unit: int = 1) -> RhythmicInterval:
        return cls(length, start_unit, True)

    @property
    def end_unit(self) -> int:
        """Last sixteenth unit covered by the interval (inclusive)."""
        return self.start_unit + self.length.length_in_units - 1

    @property
    def note_heads(self) -> dict[int, NoteHeadType]:
        """Copy of the height -> head type mapping. Empty for rests."""
        return dict(self._note_heads)

    def set_note_heads(self, note_heads: Mapping[int, NoteHeadType]) -> None:
        if self.is_rest and note_heads:
            raise ValueError("Rests cannot have note heads.")
        self._note_heads = dict(note_heads)


def place_sequentially(intervals: Iterable[RhythmicInterval], start_unit: int = 1) -> int:
    """
    Re-flow start units so the intervals follow each other without gaps.

    Returns:
        The first unit after the last interval.
    """
    unit = start_unit
    for interval in intervals:
        interval.start_unit = unit
        unit = interval.end_unit + 1
    return unit
