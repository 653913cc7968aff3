"""Minimum-observation gate applied before findings are shown."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .features import events_frame, unique_day_count
from .models import DiaryEvent

REQUIRED_LOGGED_HOURS = 48
REQUIRED_CALENDAR_DAYS = 2


@dataclass(frozen=True)
class SufficiencyResult:
    logged_hours: int
    unique_days: int
    sufficient: bool
    completion_percent: float


@dataclass(frozen=True)
class ValidationSummary:
    """Sufficiency result with a user-facing status line."""

    result: SufficiencyResult
    status_text: str
    status_variant: str


def assess_sufficiency(events: Sequence[DiaryEvent]) -> SufficiencyResult:
    """Decide whether the events cover enough observation time.

    An hour is logged when at least one event falls in it on a given date.
    The data is sufficient with 48 logged hours or entries on two calendar days.
    """

    frame = events_frame(events)
    if frame.empty:
        return SufficiencyResult(logged_hours=0, unique_days=0, sufficient=False, completion_percent=0.0)

    logged_hours = int(len(frame[["occurred_on", "hour"]].drop_duplicates()))
    unique_days = unique_day_count(frame)
    sufficient = logged_hours >= REQUIRED_LOGGED_HOURS or unique_days >= REQUIRED_CALENDAR_DAYS
    completion = min(
        100.0,
        max(
            logged_hours / REQUIRED_LOGGED_HOURS * 100,
            unique_days / REQUIRED_CALENDAR_DAYS * 100,
        ),
    )
    return SufficiencyResult(
        logged_hours=logged_hours,
        unique_days=unique_days,
        sufficient=sufficient,
        completion_percent=completion,
    )


def validation_summary(events: Sequence[DiaryEvent]) -> ValidationSummary:
    result = assess_sufficiency(events)
    if result.sufficient:
        text = f"Sufficient data: at least {REQUIRED_LOGGED_HOURS} hours recorded"
        variant = "success"
    elif result.completion_percent >= 50:
        text = f"Partial data: {result.logged_hours}h logged ({round(result.completion_percent)}%)"
        variant = "warning"
    else:
        text = f"Insufficient data: only {result.logged_hours}h recorded"
        variant = "destructive"
    return ValidationSummary(result=result, status_text=text, status_variant=variant)
