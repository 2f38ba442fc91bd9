"""Build voices from music21 measures, e.g. parsed from MIDI or MusicXML files."""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Final

from rhythmgroup.notation import DEFAULT_HEIGHT, REFERENCE_OCTAVE, STEP_NAMES
from rhythmgroup.rhythm_models import (
    BasicRhythmicLength,
    LengthModifier,
    RhythmicInterval,
    RhythmicLength,
)
from rhythmgroup.time_signature import TimeSignature
from rhythmgroup.voice import Voice

logger = logging.getLogger(__name__)

UNITS_PER_QUARTER: Final[int] = 4
DEFAULT_TIME_SIGNATURE: Final[TimeSignature] = TimeSignature(4, 4)


def _build_length_table() -> dict[int, RhythmicLength]:
    table: dict[int, RhythmicLength] = {}
    for basic_length in BasicRhythmicLength:
        for modifier in LengthModifier:
            if modifier is LengthModifier.DOTTED and basic_length is BasicRhythmicLength.SIXTEENTH:
                continue
            length = RhythmicLength(basic_length, modifier)
            table[length.length_in_units] = length
    return table


_LENGTHS_BY_UNITS: Final[dict[int, RhythmicLength]] = _build_length_table()


def _to_units(quarter_length: Any) -> Fraction:
    return Fraction(quarter_length) * UNITS_PER_QUARTER


def quarter_length_to_rhythmic_length(quarter_length: Any) -> RhythmicLength:
    """
    Map a music21 quarter length onto an exactly matching rhythmic length.

    Raises:
        ValueError: For durations without an exact match (tuplets, double
                    dots, thirty-seconds, ...).
    """
    units = _to_units(quarter_length)
    if units.denominator != 1 or int(units) not in _LENGTHS_BY_UNITS:
        raise ValueError(f"Quarter length {quarter_length} has no matching rhythmic length.")
    return _LENGTHS_BY_UNITS[int(units)]


def pitch_to_height(pitch: Any) -> int:
    """Diatonic staff height of a music21 pitch, C4 being 0."""
    octave = pitch.implicitOctave
    return (octave - REFERENCE_OCTAVE) * len(STEP_NAMES) + STEP_NAMES.index(pitch.step.lower())


def time_signature_of(measure: Any) -> TimeSignature | None:
    """The time signature a music21 measure declares, or None."""
    meter = getattr(measure, "timeSignature", None)
    if meter is None:
        return None
    return TimeSignature(int(meter.numerator), int(meter.denominator))


def element_to_interval(element: Any) -> RhythmicInterval:
    """
    Convert one music21 note, chord or rest into an interval positioned by its offset.

    Unpitched (percussion) notes get a single head on the middle staff line.

    Raises:
        ValueError: For unsupported durations or offsets between sixteenths.
    """
    length = quarter_length_to_rhythmic_length(element.duration.quarterLength)
    offset_units = _to_units(element.offset)
    if offset_units.denominator != 1:
        raise ValueError(f"Offset {element.offset} does not fall on a sixteenth.")
    start_unit = int(offset_units) + 1

    if element.isRest:
        return RhythmicInterval.rest(length, start_unit)
    pitches = getattr(element, "pitches", ())
    heights = [pitch_to_height(p) for p in pitches] or [DEFAULT_HEIGHT]
    return RhythmicInterval.note(length, heights, start_unit)


def voice_from_measure(measure: Any, time_signature: TimeSignature | None = None) -> Voice:
    """
    Build a voice from the first voice (or the notes and rests) of a music21 measure.

    Args:
        measure:        A ``music21.stream.Measure``.
        time_signature: Used when the measure declares none. Defaults to 4/4.

    Raises:
        ValueError: When the measure holds no notes or rests, or a duration
                    cannot be represented.
    """
    resolved = time_signature_of(measure) or time_signature or DEFAULT_TIME_SIGNATURE
    voices = list(measure.getElementsByClass("Voice"))
    source = voices[0] if voices else measure

    intervals = [element_to_interval(element) for element in source.notesAndRests]
    intervals.sort(key=lambda interval: interval.start_unit)
    return Voice(intervals, resolved)


def voices_from_file(path: str) -> list[Voice]:
    """
    Parse a MIDI or MusicXML file and build one voice per measure of its first part.

    Measures that cannot be represented are skipped with a warning.

    Raises:
        ValueError: If the file contains no parts.
    """
    from music21 import converter

    score = converter.parse(path)
    parts = list(score.parts)
    if not parts:
        raise ValueError(f"'{path}' contains no parts.")

    part = parts[0]
    measures = list(part.getElementsByClass("Measure"))
    if not measures:
        measures = list(part.makeMeasures().getElementsByClass("Measure"))

    voices: list[Voice] = []
    current = DEFAULT_TIME_SIGNATURE
    for idx, measure in enumerate(measures, start=1):
        try:
            current = time_signature_of(measure) or current
            voices.append(voice_from_measure(measure, current))
        except ValueError as exc:
            logger.warning("Skipping measure %d: %s", idx, exc)
    return voices
