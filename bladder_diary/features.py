"""Feature engineering helpers for bladder diary events."""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Final, Iterable, Sequence

import numpy as np
import pandas as pd

from .models import DASHBOARD_DAY_WINDOW, ComputedStats, DayWindow, DiaryEvent, EventKind

FRAME_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "occurred_on",
    "hour",
    "timestamp",
    "kind",
    "volume_ml",
    "urgency",
    "trigger",
    "leakage_weight_g",
)
_NUMERIC_COLUMNS: Final[tuple[str, ...]] = ("volume_ml", "urgency", "leakage_weight_g")


def events_frame(events: Iterable[DiaryEvent]) -> pd.DataFrame:
    """Return a normalized dataframe with one row per event."""

    records = [
        {
            "id": event.id,
            "occurred_on": event.occurred_on,
            "hour": event.hour,
            "timestamp": event.timestamp,
            "kind": event.kind.value,
            "volume_ml": event.volume_ml,
            "urgency": event.urgency,
            "trigger": event.trigger,
            "leakage_weight_g": event.leakage_weight_g,
        }
        for event in events
    ]
    frame = pd.DataFrame.from_records(records, columns=list(FRAME_COLUMNS))
    for column in _NUMERIC_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce").astype(float)
    return frame


def of_kind(frame: pd.DataFrame, kind: EventKind) -> pd.DataFrame:
    return frame.loc[frame["kind"] == kind.value]


def positive_volumes(voids: pd.DataFrame) -> np.ndarray:
    """Void volumes that are present and strictly positive, sorted ascending."""

    volumes = voids["volume_ml"].dropna()
    return np.sort(volumes[volumes > 0].to_numpy(dtype=float))


def upper_median(sorted_values: np.ndarray) -> float:
    """Element at ``n // 2`` of an ascending array; 0 when empty."""

    if sorted_values.size == 0:
        return 0.0
    return float(sorted_values[sorted_values.size // 2])


def round_one_decimal(value: float) -> float:
    """Round half-up to one decimal place."""

    return math.floor(value * 10 + 0.5) / 10


def unique_day_count(frame: pd.DataFrame) -> int:
    if frame.empty:
        return 0
    return int(frame["occurred_on"].nunique())


def day_mask(voids: pd.DataFrame, day_window: DayWindow) -> pd.Series:
    return (voids["hour"] >= day_window.start_hour) & (voids["hour"] < day_window.end_hour)


def compute_stats(events: Sequence[DiaryEvent], day_window: DayWindow = DASHBOARD_DAY_WINDOW) -> ComputedStats:
    """Aggregate an event subset into reusable metrics.

    Only the supplied events are considered. Averages are per unique calendar
    day present in the subset, with the denominator floored at one.
    """

    frame = events_frame(events)
    if frame.empty:
        return ComputedStats()

    voids = of_kind(frame, EventKind.VOID)
    leakages = of_kind(frame, EventKind.LEAKAGE)
    intakes = of_kind(frame, EventKind.INTAKE)

    volumes = positive_volumes(voids)
    is_day = day_mask(voids, day_window)
    day_voids = voids.loc[is_day]
    night_voids = voids.loc[~is_day]

    unique_days = unique_day_count(frame)
    day_count = max(1, unique_days)

    return ComputedStats(
        total_voids=len(voids),
        total_leakages=len(leakages),
        total_intake=float(intakes["volume_ml"].fillna(0.0).sum()),
        intake_count=len(intakes),
        median_volume=upper_median(volumes),
        max_volume=float(volumes.max()) if volumes.size else 0.0,
        min_volume=float(volumes.min()) if volumes.size else 0.0,
        avg_voids_per_day=round_one_decimal(len(voids) / day_count),
        avg_leakages_per_day=round_one_decimal(len(leakages) / day_count),
        day_voids=len(day_voids),
        night_voids=len(night_voids),
        total_leakage_weight=float(leakages["leakage_weight_g"].fillna(0.0).sum()),
        total_voided_ml=float(volumes.sum()),
        day_voided_ml=float(day_voids["volume_ml"].fillna(0.0).sum()),
        night_voided_ml=float(night_voids["volume_ml"].fillna(0.0).sum()),
        unique_days=unique_days,
        has_volumes=bool(volumes.size),
    )


def filter_recent(events: Iterable[DiaryEvent], now: datetime, hours: float) -> list[DiaryEvent]:
    """Events whose local timestamp is at or after ``now - hours``."""

    cutoff = now - timedelta(hours=hours)
    return [event for event in events if event.timestamp >= cutoff]


def voids_in_last_24_hours(events: Iterable[DiaryEvent], now: datetime) -> int:
    return sum(1 for event in filter_recent(events, now, 24) if event.kind is EventKind.VOID)


def leakage_weight_last_24_hours(events: Iterable[DiaryEvent], now: datetime) -> float:
    return float(
        sum(
            event.leakage_weight_g or 0.0
            for event in filter_recent(events, now, 24)
            if event.kind is EventKind.LEAKAGE
        )
    )
