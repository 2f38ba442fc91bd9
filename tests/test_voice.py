"""Unit tests for Voice partitioning, padding and incremental recalculation."""

import pytest

from rhythmgroup.rhythm_models import (
    BasicRhythmicLength,
    LengthModifier,
    RhythmicInterval,
    RhythmicLength,
    StemDirection,
    place_sequentially,
)
from rhythmgroup.sub_group import SubGroup
from rhythmgroup.time_signature import TimeSignature
from rhythmgroup.voice import Voice, calculate_padding_factor

FOUR_FOUR = TimeSignature(4, 4)

WHOLE = RhythmicLength(BasicRhythmicLength.WHOLE)
HALF = RhythmicLength(BasicRhythmicLength.HALF)
DOTTED_HALF = RhythmicLength(BasicRhythmicLength.HALF, LengthModifier.DOTTED)
QUARTER = RhythmicLength(BasicRhythmicLength.QUARTER)
EIGHTH = RhythmicLength(BasicRhythmicLength.EIGHTH)
SIXTEENTH = RhythmicLength(BasicRhythmicLength.SIXTEENTH)


def _notes(*lengths: RhythmicLength, height: int = 6) -> list[RhythmicInterval]:
    intervals = [RhythmicInterval.note(length, [height]) for length in lengths]
    place_sequentially(intervals)
    return intervals


def _snapshot(voice: Voice) -> list[tuple[list[int], int, object, list[list[int]]]]:
    """Membership, padding, last interval and beams of every sub group, by object id."""
    return [
        (
            [id(i) for i in sub_group.intervals],
            sub_group.padding_factor,
            id(sub_group.last_interval),
            [[id(i) for i in run] for run in sub_group.connected_intervals],
        )
        for sub_group in voice.sub_groups
    ]


def _assert_consistent(voice: Voice) -> None:
    sub_groups = voice.sub_groups
    assert sum(len(sub_group) for sub_group in sub_groups) == len(voice.intervals)
    idxs = voice.interval_sub_group_idxs
    assert len(idxs) == len(voice.intervals)
    for interval in voice.intervals:
        assert interval in sub_groups[idxs[interval]]
    assert sub_groups[-1].padding_factor == 0
    assert all(sub_group.padding_factor >= 1 for sub_group in sub_groups[:-1])


# ── construction ───────────────────────────────────────────────────────────────

def test_empty_voice_is_rejected() -> None:
    with pytest.raises(ValueError):
        Voice([], FOUR_FOUR)


def test_interval_exceeding_measure_is_rejected() -> None:
    with pytest.raises(ValueError):
        Voice(_notes(QUARTER, QUARTER, QUARTER, QUARTER, QUARTER), FOUR_FOUR)


def test_out_of_order_intervals_are_rejected() -> None:
    late = RhythmicInterval.note(QUARTER, [6], start_unit=5)
    early = RhythmicInterval.note(QUARTER, [6], start_unit=1)
    with pytest.raises(ValueError):
        Voice([late, early], FOUR_FOUR)


def test_sixteenths_then_quarters() -> None:
    intervals = _notes(*[SIXTEENTH] * 8, QUARTER, QUARTER)
    voice = Voice(intervals, FOUR_FOUR)
    sub_groups = voice.sub_groups

    assert len(sub_groups) == FOUR_FOUR.number_of_sub_groups
    assert [len(sub_group) for sub_group in sub_groups] == [4, 4, 1, 1]
    assert sub_groups[0].connected_intervals == [intervals[0:4]]
    assert sub_groups[1].connected_intervals == [intervals[4:8]]
    assert sub_groups[2].connected_intervals == []
    assert sub_groups[3].connected_intervals == []
    assert [sub_group.padding_factor for sub_group in sub_groups] == [1, 1, 1, 0]
    _assert_consistent(voice)


def test_eighths_then_quarters() -> None:
    intervals = _notes(EIGHTH, EIGHTH, EIGHTH, EIGHTH, QUARTER, QUARTER)
    voice = Voice(intervals, FOUR_FOUR)
    sub_groups = voice.sub_groups
    assert sub_groups[0].connected_intervals == [intervals[0:2]]
    assert sub_groups[1].connected_intervals == [intervals[2:4]]
    assert [sub_group.padding_factor for sub_group in sub_groups] == [1, 1, 1, 0]
    assert sub_groups[1].last_interval is intervals[3]


def test_whole_note_spreads_padding() -> None:
    (whole,) = intervals = _notes(WHOLE)
    voice = Voice(intervals, FOUR_FOUR)
    sub_groups = voice.sub_groups
    assert sub_groups[0].last_interval is whole
    assert sub_groups[0].padding_factor == FOUR_FOUR.number_of_sub_groups - 1
    assert [sub_group.padding_factor for sub_group in sub_groups[1:]] == [1, 1, 0]
    assert all(sub_group.last_interval is None for sub_group in sub_groups[1:])


def test_dotted_half_after_quarter_reserves_two_paddings() -> None:
    voice = Voice(_notes(QUARTER, DOTTED_HALF), FOUR_FOUR)
    assert [sub_group.padding_factor for sub_group in voice.sub_groups] == [1, 2, 1, 0]


def test_six_eight_groups_by_dotted_quarter() -> None:
    intervals = _notes(*[EIGHTH] * 6)
    voice = Voice(intervals, TimeSignature(6, 8))
    assert [sub_group.connected_intervals for sub_group in voice.sub_groups] == [
        [intervals[0:3]],
        [intervals[3:6]],
    ]
    assert [sub_group.padding_factor for sub_group in voice.sub_groups] == [1, 0]


def test_calculate_padding_factor_rejects_unknown_slot() -> None:
    with pytest.raises(ValueError):
        calculate_padding_factor(SubGroup([], 1, 4), 4, FOUR_FOUR)


def test_accessors_return_copies() -> None:
    voice = Voice(_notes(HALF, HALF), FOUR_FOUR)
    voice.sub_groups.clear()
    voice.interval_sub_group_idxs.clear()
    assert len(voice.sub_groups) == 4
    assert len(voice.interval_sub_group_idxs) == 2


# ── note heights and stems ─────────────────────────────────────────────────────

def test_average_note_height() -> None:
    intervals = [RhythmicInterval.note(HALF, [2, 4]), RhythmicInterval.note(HALF, [6])]
    place_sequentially(intervals)
    voice = Voice(intervals, FOUR_FOUR)
    assert voice.average_note_height() == pytest.approx(4.0)
    assert not voice.is_voice_of_rests()


def test_voice_of_middle_c_notes_is_not_a_voice_of_rests() -> None:
    voice = Voice(_notes(HALF, HALF, height=0), FOUR_FOUR)
    assert voice.average_note_height() == 0.0
    assert not voice.is_voice_of_rests()


def test_voice_of_rests() -> None:
    intervals = [RhythmicInterval.rest(HALF), RhythmicInterval.rest(HALF)]
    place_sequentially(intervals)
    voice = Voice(intervals, FOUR_FOUR)
    assert voice.average_note_height() is None
    assert voice.is_voice_of_rests()


def test_stem_direction_override() -> None:
    voice = Voice(_notes(HALF, HALF, height=2), FOUR_FOUR)
    assert voice.stem_direction_for(0) is StemDirection.UP
    voice.stem_direction = StemDirection.DOWN
    assert voice.stem_direction_for(0) is StemDirection.DOWN
    voice.stem_direction = None
    assert voice.stem_direction_for(0) is StemDirection.UP


# ── time signature changes ─────────────────────────────────────────────────────

def test_larger_time_signature_rebuilds_sub_groups() -> None:
    voice = Voice(_notes(QUARTER, QUARTER, QUARTER), TimeSignature(3, 4))
    voice.time_signature = FOUR_FOUR
    assert [len(sub_group) for sub_group in voice.sub_groups] == [1, 1, 1, 0]
    assert [sub_group.padding_factor for sub_group in voice.sub_groups] == [1, 1, 1, 0]
    _assert_consistent(voice)


def test_too_small_time_signature_keeps_previous_state() -> None:
    voice = Voice(_notes(QUARTER, QUARTER, QUARTER, QUARTER), FOUR_FOUR)
    before = _snapshot(voice)
    with pytest.raises(ValueError):
        voice.time_signature = TimeSignature(3, 4)
    assert voice.time_signature == FOUR_FOUR
    assert _snapshot(voice) == before


# ── recalculation ──────────────────────────────────────────────────────────────

def test_recalculation_without_changes_is_a_no_op() -> None:
    voice = Voice(_notes(*[SIXTEENTH] * 8, QUARTER, QUARTER), FOUR_FOUR)
    before = _snapshot(voice)
    voice.recalculate_sub_groups_from(0)
    assert _snapshot(voice) == before
    voice.recalculate_sub_groups_from(5)
    assert _snapshot(voice) == before


@pytest.mark.parametrize("idx", [-1, 2])
def test_recalculation_rejects_invalid_index(idx: int) -> None:
    voice = Voice(_notes(HALF, HALF), FOUR_FOUR)
    with pytest.raises(IndexError):
        voice.recalculate_sub_groups_from(idx)


def test_recalculation_rejects_interval_before_measure_without_changes() -> None:
    first, second, third = _notes(QUARTER, QUARTER, QUARTER)
    voice = Voice([first, second, third], FOUR_FOUR)
    before = _snapshot(voice)
    before_idxs = voice.interval_sub_group_idxs

    voice.intervals.insert(0, RhythmicInterval.note(QUARTER, [6]))
    place_sequentially(voice.intervals)
    third.start_unit = 0
    with pytest.raises(ValueError):
        voice.recalculate_sub_groups_from(0)

    assert _snapshot(voice) == before
    assert voice.interval_sub_group_idxs == before_idxs
    assert voice.sub_groups[1].is_last(second)


def test_recalculation_rejects_overfull_measure_without_changes() -> None:
    voice = Voice(_notes(QUARTER, QUARTER, QUARTER, QUARTER), FOUR_FOUR)
    before = _snapshot(voice)
    voice.intervals.append(RhythmicInterval.note(QUARTER, [6]))
    place_sequentially(voice.intervals)
    with pytest.raises(ValueError):
        voice.recalculate_sub_groups_from(4)
    assert _snapshot(voice) == before


def test_recalculation_drops_deleted_intervals() -> None:
    intervals = _notes(*[SIXTEENTH] * 8, QUARTER, QUARTER)
    voice = Voice(intervals, FOUR_FOUR)
    removed = intervals[4:]

    del voice.intervals[4:]
    voice.intervals.extend(_notes(QUARTER, HALF))
    place_sequentially(voice.intervals)
    voice.recalculate_sub_groups_from(4)

    idxs = voice.interval_sub_group_idxs
    assert not any(interval in idxs for interval in removed)
    sub_groups = voice.sub_groups
    assert sub_groups[1].intervals == [voice.intervals[4]]
    assert sub_groups[2].intervals == [voice.intervals[5]]
    assert sub_groups[3].intervals == []
    assert [sub_group.padding_factor for sub_group in sub_groups] == [1, 1, 1, 0]
    assert sub_groups[1].connected_intervals == []
    _assert_consistent(voice)


def test_recalculation_moves_shifted_intervals() -> None:
    first, second, half = _notes(QUARTER, QUARTER, HALF)
    voice = Voice([first, second, half], FOUR_FOUR)
    appended = RhythmicInterval.note(QUARTER, [6])

    voice.intervals.remove(first)
    voice.intervals.append(appended)
    place_sequentially(voice.intervals)
    voice.recalculate_sub_groups_from(0)

    assert voice.interval_sub_group_idxs == {second: 0, half: 1, appended: 3}
    sub_groups = voice.sub_groups
    assert sub_groups[0].intervals == [second]
    assert sub_groups[1].intervals == [half]
    assert sub_groups[2].intervals == []
    assert sub_groups[3].intervals == [appended]
    assert sub_groups[1].last_interval is half
    assert [sub_group.padding_factor for sub_group in sub_groups] == [1, 1, 1, 0]
    _assert_consistent(voice)


def test_recalculation_after_split_beams_new_eighths() -> None:
    intervals = _notes(QUARTER, QUARTER, QUARTER, QUARTER)
    voice = Voice(intervals, FOUR_FOUR)
    first_eighth, second_eighth = _notes(EIGHTH, EIGHTH)
    replaced = intervals[1]

    voice.intervals[1:2] = [first_eighth, second_eighth]
    place_sequentially(voice.intervals)
    voice.recalculate_sub_groups_from(1)

    sub_groups = voice.sub_groups
    assert sub_groups[1].intervals == [first_eighth, second_eighth]
    assert sub_groups[1].connected_intervals == [[first_eighth, second_eighth]]
    assert sub_groups[1].is_last(second_eighth)
    assert replaced not in voice.interval_sub_group_idxs
    _assert_consistent(voice)
