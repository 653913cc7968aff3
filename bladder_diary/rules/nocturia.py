"""Detect frequent night-time voiding."""
from __future__ import annotations

from ..models import DiaryWindow, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import one_decimal


@register_rule
class NocturiaRule(PatternRule):
    id = "nocturia"
    name = "Nocturia"
    description = "Night voids >= 2 per observed day; high at >= 3 per day"
    version = "1.0.0"
    metadata = PATTERN_METADATA["nocturia"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        moderate_per_night = float(self.resolved_threshold(context, "nocturia_voids_per_night", 2.0))
        high_per_night = float(self.resolved_threshold(context, "nocturia_high_voids_per_night", 3.0))

        night_voids = window.stats.night_voids
        days = window.observation_days()
        metrics = {
            "night_voids": night_voids,
            "observation_days": days,
            "night_voids_per_day": night_voids / days,
        }
        if night_voids < moderate_per_night * days:
            return self.not_detected(metrics)

        probability = Probability.HIGH if night_voids >= high_per_night * days else Probability.MODERATE
        reasoning = (
            f"Averaging {one_decimal(night_voids / days)} nighttime voids per night may indicate nocturia. "
            "This can impact sleep quality."
        )
        return self.detected(context, probability, reasoning, metrics)
