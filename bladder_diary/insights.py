"""Assemble gated clinical insights for a viewer session."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from .engine import PatternEngine
from .features import compute_stats, filter_recent
from .guidance import NocturiaGuidance, nocturia_guidance
from .models import (
    DASHBOARD_DAY_WINDOW,
    ClinicalPattern,
    ComputedStats,
    DayWindow,
    DiaryEvent,
    PatternContext,
    Session,
)
from .sufficiency import SufficiencyResult, assess_sufficiency

RECENT_WINDOW_HOURS = 48


class InsightStatus(str, Enum):
    NO_DATA = "no_data"
    INSUFFICIENT_DATA = "insufficient_data"
    READY = "ready"


@dataclass(frozen=True)
class InsightReport:
    status: InsightStatus
    sufficiency: SufficiencyResult
    stats: ComputedStats
    patterns: Sequence[ClinicalPattern] = field(default_factory=tuple)
    guidance: Optional[NocturiaGuidance] = None

    def as_dict(self) -> dict:
        return {
            "status": self.status.value,
            "sufficiency": {
                "logged_hours": self.sufficiency.logged_hours,
                "unique_days": self.sufficiency.unique_days,
                "sufficient": self.sufficiency.sufficient,
                "completion_percent": self.sufficiency.completion_percent,
            },
            "stats": self.stats.as_dict(),
            "patterns": [pattern.as_dict() for pattern in self.patterns],
            "guidance": (
                {"title": self.guidance.title, "description": self.guidance.description, "url": self.guidance.url}
                if self.guidance
                else None
            ),
        }


def build_insights(
    events: Sequence[DiaryEvent],
    session: Session,
    *,
    now: datetime | None = None,
    recent_hours: float | None = RECENT_WINDOW_HOURS,
    engine: PatternEngine | None = None,
    day_window: DayWindow = DASHBOARD_DAY_WINDOW,
    thresholds: dict | None = None,
) -> InsightReport:
    """Compute stats and findings for the session's audience.

    Findings are only attached once the sufficiency gate passes; otherwise the
    report carries ``INSUFFICIENT_DATA`` and an empty pattern list. Pass
    ``recent_hours=None`` to analyse every supplied event.
    """

    if recent_hours is not None:
        events = filter_recent(events, now or datetime.now(), recent_hours)
    stats = compute_stats(events, day_window)
    sufficiency = assess_sufficiency(events)

    if not events:
        return InsightReport(status=InsightStatus.NO_DATA, sufficiency=sufficiency, stats=stats)
    if not sufficiency.sufficient:
        return InsightReport(status=InsightStatus.INSUFFICIENT_DATA, sufficiency=sufficiency, stats=stats)

    context = PatternContext(audience=session.audience, thresholds=thresholds or {})
    patterns = (engine or PatternEngine()).evaluate(events, stats, context)
    return InsightReport(
        status=InsightStatus.READY,
        sufficiency=sufficiency,
        stats=stats,
        patterns=tuple(patterns),
        guidance=nocturia_guidance(patterns, session),
    )
