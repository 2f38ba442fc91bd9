"""Text shorthand for time signatures and rhythms, used by the CLI and tests."""

from __future__ import annotations

import re
from typing import Final

from rhythmgroup.rhythm_models import (
    BasicRhythmicLength,
    LengthModifier,
    RhythmicInterval,
    RhythmicLength,
    place_sequentially,
)
from rhythmgroup.time_signature import TimeSignature

#: VexFlow-style duration codes.
DURATION_CODES: Final[dict[str, RhythmicLength]] = {
    "w": RhythmicLength(BasicRhythmicLength.WHOLE),
    "hd": RhythmicLength(BasicRhythmicLength.HALF, LengthModifier.DOTTED),
    "h": RhythmicLength(BasicRhythmicLength.HALF),
    "qd": RhythmicLength(BasicRhythmicLength.QUARTER, LengthModifier.DOTTED),
    "q": RhythmicLength(BasicRhythmicLength.QUARTER),
    "8d": RhythmicLength(BasicRhythmicLength.EIGHTH, LengthModifier.DOTTED),
    "8": RhythmicLength(BasicRhythmicLength.EIGHTH),
    "16": RhythmicLength(BasicRhythmicLength.SIXTEENTH),
}

STEP_NAMES: Final[str] = "cdefgab"
REFERENCE_OCTAVE: Final[int] = 4  # C4 sits at height 0
DEFAULT_HEIGHT: Final[int] = 6  # B4, middle staff line

_TOKEN_RE = re.compile(r"^(?P<duration>w|hd|h|qd|q|8d|8|16)(?P<rest>r?)(?::(?P<keys>.+))?$")
_KEY_RE = re.compile(r"^(?P<step>[a-g])(?P<accidental>#{1,2}|b{1,2}|n)?/(?P<octave>-?\d+)$")


def parse_time_signature(text: str) -> TimeSignature:
    """
    Parse ``"3/4"``-style text.

    Raises:
        ValueError: If the text is malformed or the meter is unsupported.
    """
    match = re.match(r"^(\d+)/(\d+)$", text.strip())
    if not match:
        raise ValueError(f"Malformed time signature '{text}'. Use e.g. 4/4 or 6/8.")
    return TimeSignature(int(match.group(1)), int(match.group(2)))


def key_to_height(key: str) -> int:
    """
    Convert a ``"e/4"`` style key into a staff height in diatonic steps above C4.

    Accidentals do not change the height.

    Raises:
        ValueError: If the key is malformed.
    """
    match = _KEY_RE.match(key.strip().lower())
    if not match:
        raise ValueError(f"Malformed key '{key}'. Use e.g. c/4, f#/5 or bb/3.")
    step = STEP_NAMES.index(match.group("step"))
    octave = int(match.group("octave"))
    return (octave - REFERENCE_OCTAVE) * len(STEP_NAMES) + step


def parse_token(token: str) -> RhythmicInterval:
    """
    Parse one ``DURATION[r][:KEY[+KEY...]]`` token, e.g. ``8:c/4``, ``qr``
    or ``h:c/4+e/4+g/4``.

    Raises:
        ValueError: If the token is malformed, or a rest carries keys.
    """
    match = _TOKEN_RE.match(token.strip())
    if not match:
        codes = ", ".join(DURATION_CODES)
        raise ValueError(f"Malformed rhythm token '{token}'. Durations are one of: {codes}.")

    length = DURATION_CODES[match.group("duration")]
    keys = match.group("keys")
    if match.group("rest"):
        if keys:
            raise ValueError(f"Rest token '{token}' cannot have keys.")
        return RhythmicInterval.rest(length)

    heights = [key_to_height(key) for key in keys.split("+")] if keys else [DEFAULT_HEIGHT]
    return RhythmicInterval.note(length, heights)


def parse_rhythm(text: str) -> list[RhythmicInterval]:
    """
    Parse whitespace separated tokens into intervals placed one after another
    from the start of a measure.

    Raises:
        ValueError: If the text holds no tokens or a malformed token.
    """
    tokens = text.split()
    if not tokens:
        raise ValueError("A rhythm needs at least one token.")
    intervals = [parse_token(token) for token in tokens]
    place_sequentially(intervals)
    return intervals
