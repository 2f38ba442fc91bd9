"""rhythmgroup: beat grouping, stem direction and beaming for notation editors."""

from rhythmgroup.rhythm_models import (
    BasicRhythmicLength,
    LengthModifier,
    NoteHeadType,
    RhythmicInterval,
    RhythmicLength,
    StemDirection,
    place_sequentially,
)
from rhythmgroup.sub_group import SubGroup
from rhythmgroup.time_signature import TimeSignature
from rhythmgroup.voice import Voice

__version__ = "0.1.0"

__all__ = [
    "BasicRhythmicLength",
    "LengthModifier",
    "NoteHeadType",
    "RhythmicInterval",
    "RhythmicLength",
    "StemDirection",
    "SubGroup",
    "TimeSignature",
    "Voice",
    "place_sequentially",
    "__version__",
]
