from __future__ import annotations

from datetime import date, time, timedelta

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from bladder_diary.models import DiaryEvent, EventKind
from bladder_diary.sufficiency import assess_sufficiency, validation_summary


def _void(day: int, hour: int, minute: int = 0, idx: int = 0) -> DiaryEvent:
    return DiaryEvent(
        id=f"v-{day}-{hour}-{minute}-{idx}",
        occurred_on=date(2025, 4, 1) + timedelta(days=day),
        occurred_at=time(hour, minute),
        kind=EventKind.VOID,
        volume_ml=200,
    )


def test_empty_diary_is_insufficient():
    result = assess_sufficiency([])
    assert result.logged_hours == 0
    assert result.unique_days == 0
    assert result.sufficient is False
    assert result.completion_percent == 0.0

    summary = validation_summary([])
    assert summary.status_variant == "destructive"
    assert summary.status_text == "Insufficient data: only 0h recorded"


def test_two_calendar_days_are_sufficient_with_few_hours():
    events = [_void(0, 23, 30), _void(1, 0, 15)]
    result = assess_sufficiency(events)
    assert result.logged_hours == 2
    assert result.unique_days == 2
    assert result.sufficient is True
    assert result.completion_percent == 100.0
    assert validation_summary(events).status_variant == "success"


def test_single_day_is_insufficient_regardless_of_hours():
    events = [_void(0, hour) for hour in range(23)]
    result = assess_sufficiency(events)
    assert result.logged_hours == 23
    assert result.unique_days == 1
    assert result.sufficient is False
    assert result.completion_percent == 50.0

    summary = validation_summary(events)
    assert summary.status_variant == "warning"
    assert summary.status_text == "Partial data: 23h logged (50%)"


def test_repeated_events_in_one_hour_count_once():
    events = [_void(0, 8, minute, idx) for idx, minute in enumerate((0, 10, 20, 50))]
    result = assess_sufficiency(events)
    assert result.logged_hours == 1
