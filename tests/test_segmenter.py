from __future__ import annotations

from datetime import date, datetime, time, timedelta
from itertools import count

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from bladder_diary.block_store import InMemoryBlockStore
from bladder_diary.models import BlockStatus, DiaryEvent, EventKind
from bladder_diary.pattern_metadata import PATTERN_METADATA
from bladder_diary.segmenter import RecordingBlockSegmenter, segment_events

_ids = count()
_DAY0 = date(2025, 6, 2)
_NOW = datetime(2025, 6, 20, 12, 0)


def _void(day: int, hour: int, minute: int = 0, volume: float | None = 250) -> DiaryEvent:
    return DiaryEvent(
        id=f"v-{next(_ids)}",
        occurred_on=_DAY0 + timedelta(days=day),
        occurred_at=time(hour, minute),
        kind=EventKind.VOID,
        volume_ml=volume,
    )


def _midnight(day: int) -> datetime:
    return datetime.combine(_DAY0 + timedelta(days=day), time.min)


def test_single_block_anchors_at_local_midnight():
    events = [_void(0, 9, 30), _void(1, 10), _void(2, 23, 59)]
    blocks = segment_events(events, now=_NOW)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.start == _midnight(0)
    assert block.end == _midnight(3)
    assert block.void_count == 3
    assert block.status is BlockStatus.COMPLETE


def test_block_is_incomplete_until_its_end_passes():
    events = [_void(0, 9)]
    assert segment_events(events, now=datetime(2025, 6, 4, 23, 59))[0].status is BlockStatus.INCOMPLETE
    assert segment_events(events, now=_midnight(3))[0].status is BlockStatus.COMPLETE


def test_gap_starts_a_new_block_at_next_event_midnight():
    events = [_void(0, 8), _void(1, 8), _void(5, 14), _void(6, 9)]
    blocks = segment_events(events, now=_NOW)

    assert [(block.start, block.end) for block in blocks] == [
        (_midnight(0), _midnight(3)),
        (_midnight(5), _midnight(8)),
    ]
    assert [block.void_count for block in blocks] == [2, 2]


def test_event_at_block_end_opens_the_next_block():
    blocks = segment_events([_void(0, 8), _void(3, 0)], now=_NOW)
    assert [block.start for block in blocks] == [_midnight(0), _midnight(3)]


def test_blocks_do_not_overlap_for_short_durations():
    events = [_void(0, 8), _void(1, 15)]
    blocks = segment_events(events, block_duration_hours=36, now=_NOW)

    assert [(block.start, block.end) for block in blocks] == [
        (_midnight(0), _midnight(1) + timedelta(hours=12)),
        (_midnight(1) + timedelta(hours=12), _midnight(3)),
    ]


def test_resegmenting_keeps_boundaries_and_unchanged_blocks():
    store = InMemoryBlockStore()
    segmenter = RecordingBlockSegmenter(store)
    events = [_void(0, 8), _void(1, 8), _void(5, 14)]
    first = segmenter.segment(events, now=_NOW)

    extended = events + [_void(6, 10), _void(7, 20)]
    second = segmenter.segment(extended, now=_NOW)

    assert [(b.start, b.end) for b in first] == [(b.start, b.end) for b in second]
    assert second[0] is first[0]
    assert store.get(_midnight(0)) is first[0]
    assert second[1].id == first[1].id
    assert second[1].created_at == first[1].created_at
    assert first[1].void_count == 1
    assert second[1].void_count == 3


def test_resegmenting_identical_events_is_a_no_op():
    store = InMemoryBlockStore()
    segmenter = RecordingBlockSegmenter(store)
    events = [_void(0, 8), _void(4, 8)]
    first = segmenter.segment(events, now=_NOW)
    second = segmenter.segment(list(reversed(events)), now=_NOW)
    assert all(a is b for a, b in zip(first, second))
    assert len(store.list_blocks()) == 2


def test_backfilled_block_is_clipped_at_next_block():
    store = InMemoryBlockStore()
    segmenter = RecordingBlockSegmenter(store)
    segmenter.segment([_void(5, 9)], now=_NOW)

    blocks = segmenter.segment([_void(3, 9), _void(4, 23), _void(5, 9)], now=_NOW)
    assert [(block.start, block.end) for block in blocks] == [
        (_midnight(3), _midnight(5)),
        (_midnight(5), _midnight(8)),
    ]
    assert blocks[0].void_count == 2


def test_treatment_plan_survives_recomputation():
    store = InMemoryBlockStore()
    segmenter = RecordingBlockSegmenter(store)
    block = segmenter.segment([_void(0, 9)], now=_NOW)[0]
    store.update_treatment_plan(block.id, "Pelvic floor training", now=_NOW)

    updated = segmenter.segment([_void(0, 9), _void(1, 9)], now=_NOW)[0]
    assert updated.void_count == 2
    assert updated.treatment_plan == "Pelvic floor training"
    assert updated.treatment_plan_updated_at == _NOW


def test_blocks_count_day_voids_from_six_to_twenty_two():
    events = [_void(0, 6, 30), _void(0, 21, 59), _void(0, 22, 30), _void(1, 5, 59)]
    block = segment_events(events, now=_NOW)[0]
    assert block.day_void_count == 2
    assert block.night_void_count == 2
    assert block.stats.day_voided_ml == 500
    assert block.stats.night_voided_ml == 500


def test_block_findings_use_clinician_audience():
    events = [_void(0, 7 + idx, volume=100) for idx in range(11)]
    block = segment_events(events, now=_NOW)[0]

    assert [pattern.name for pattern in block.clinical_patterns] == ["Overactive Bladder (OAB)"]
    assert block.overall_assessment == "Overactive Bladder (OAB)"
    assert (
        block.clinical_patterns[0].recommendation
        == PATTERN_METADATA["overactive_bladder"]["recommendations"]["clinician"]
    )


def test_block_with_unrecorded_volumes_reports_no_volume_stats():
    block = segment_events([_void(0, 9, volume=None), _void(0, 12, volume=0)], now=_NOW)[0]
    assert block.void_count == 2
    assert block.median_void_volume is None
    assert block.max_void_volume is None
    assert block.as_dict()["min_void_volume"] is None


def test_empty_input_yields_no_blocks():
    assert segment_events([], now=_NOW) == []
    assert RecordingBlockSegmenter(InMemoryBlockStore()).segment([], now=_NOW) == []


def test_block_duration_must_cover_a_day():
    with pytest.raises(ValueError):
        RecordingBlockSegmenter(block_duration_hours=12)


def test_block_without_remaining_events_is_cleared():
    store = InMemoryBlockStore()
    segmenter = RecordingBlockSegmenter(store)
    moved = _void(1, 9)
    first = segmenter.segment([_void(0, 8), moved, _void(5, 9)], now=_NOW)
    assert [block.void_count for block in first] == [2, 1]

    second = segmenter.segment([_void(5, 9), _void(6, 9)], now=_NOW)
    emptied = store.get(_midnight(0))
    assert emptied.id == first[0].id
    assert emptied.end == first[0].end
    assert emptied.void_count == 0
    assert emptied.clinical_patterns == ()
    assert emptied.overall_assessment is None
    assert [block.start for block in second] == [_midnight(0), _midnight(5)]

    third = segmenter.segment([_void(5, 9), _void(6, 9)], now=_NOW)
    assert [block.start for block in third] == [_midnight(5)]
