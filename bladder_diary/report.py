"""JSON-ready export of statistics, daily summaries and findings."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Sequence

import numpy as np

from .features import compute_stats, events_frame, of_kind, positive_volumes
from .models import BLOCK_DAY_WINDOW, ClinicalPattern, ComputedStats, DayWindow, DiaryEvent, EventKind
from .pattern_metadata import guideline_url


def event_to_dict(event: DiaryEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "date": event.occurred_on.isoformat(),
        "time": event.occurred_at.strftime("%H:%M:%S"),
        "event_type": event.kind.value,
        "volume_ml": event.volume_ml,
        "urgency": event.urgency,
        "leakage_severity": event.leakage_severity.value if event.leakage_severity else None,
        "leakage_weight_g": event.leakage_weight_g,
        "trigger": event.trigger,
        "intake_type": event.intake_type,
        "notes": event.notes,
        "source": event.source.value,
        "confidence": event.confidence.value if event.confidence else None,
    }


def export_median(volumes: np.ndarray) -> float:
    """Median for printed summaries: even counts average the middle pair, rounded half-up."""

    if volumes.size == 0:
        return 0.0
    middle = float(np.median(volumes))
    if volumes.size % 2 == 0:
        return float(math.floor(middle + 0.5))
    return middle


def daily_summaries(events: Sequence[DiaryEvent], day_window: DayWindow = BLOCK_DAY_WINDOW) -> list[dict[str, Any]]:
    """One summary row per calendar date, oldest first."""

    by_date: dict[Any, list[DiaryEvent]] = {}
    for event in events:
        by_date.setdefault(event.occurred_on, []).append(event)

    summaries: list[dict[str, Any]] = []
    for service_date in sorted(by_date):
        stats = compute_stats(by_date[service_date], day_window)
        volumes = positive_volumes(of_kind(events_frame(by_date[service_date]), EventKind.VOID))
        summaries.append(
            {
                "date": service_date.isoformat(),
                "total_intake_ml": stats.total_intake,
                "total_voided_ml": stats.total_voided_ml,
                "median_voided_ml": export_median(volumes) if stats.has_volumes else None,
                "min_voided_ml": stats.min_volume if stats.has_volumes else None,
                "max_voided_ml": stats.max_volume if stats.has_volumes else None,
                "day_void_count": stats.day_voids,
                "night_void_count": stats.night_voids,
                "day_voided_ml": stats.day_voided_ml,
                "night_voided_ml": stats.night_voided_ml,
                "leakage_count": stats.total_leakages,
                "leakage_weight_g": stats.total_leakage_weight,
            }
        )
    return summaries


def build_report(
    stats: ComputedStats,
    events: Sequence[DiaryEvent],
    patterns: Sequence[ClinicalPattern],
    *,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    ordered = sorted(events, key=lambda event: event.sort_key)
    return {
        "generated_at": (generated_at or datetime.now()).isoformat(timespec="seconds"),
        "period": {
            "start": ordered[0].occurred_on.isoformat() if ordered else None,
            "end": ordered[-1].occurred_on.isoformat() if ordered else None,
        },
        "stats": stats.as_dict(),
        "daily_summaries": daily_summaries(ordered),
        "patterns": [
            {**pattern.as_dict(), "guideline_url": guideline_url(pattern.name)} for pattern in patterns
        ],
        "events": [event_to_dict(event) for event in ordered],
    }
