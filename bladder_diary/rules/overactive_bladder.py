"""Detect an overactive bladder voiding pattern."""
from __future__ import annotations

from ..models import DiaryWindow, EventKind, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import one_decimal, whole


@register_rule
class OveractiveBladderRule(PatternRule):
    id = "overactive_bladder"
    name = "Overactive Bladder (OAB)"
    description = ">8 voids/day with frequent urgency (>30% of voids) or median volume <200 ml"
    version = "1.0.0"
    metadata = PATTERN_METADATA["overactive_bladder"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        frequency_threshold = float(self.resolved_threshold(context, "oab_voids_per_day", 8.0))
        urgency_level = int(self.resolved_threshold(context, "oab_urgency_level", 4))
        urgency_rate_threshold = float(self.resolved_threshold(context, "oab_urgency_rate", 0.3))
        high_rate_threshold = float(self.resolved_threshold(context, "oab_high_urgency_rate", 0.5))
        low_volume_threshold = float(self.resolved_threshold(context, "oab_median_volume_ml", 200.0))

        stats = window.stats
        voids = window.of_kind(EventKind.VOID)
        total_voids = len(voids)
        urgent_voids = int((voids["urgency"] >= urgency_level).sum())
        urgency_rate = urgent_voids / total_voids if total_voids else 0.0

        metrics = {
            "avg_voids_per_day": stats.avg_voids_per_day,
            "urgent_voids": urgent_voids,
            "urgency_rate": urgency_rate,
            "median_volume": stats.median_volume,
        }
        if stats.avg_voids_per_day <= frequency_threshold:
            return self.not_detected(metrics)

        frequent_urgency = urgency_rate > urgency_rate_threshold
        if not frequent_urgency and stats.median_volume >= low_volume_threshold:
            return self.not_detected(metrics)

        probability = Probability.HIGH if urgency_rate > high_rate_threshold else Probability.MODERATE
        driver = (
            f"frequent urgency episodes ({one_decimal(urgency_rate * 100)}% of voids)"
            if frequent_urgency
            else f"lower-than-average volumes (median {whole(stats.median_volume)} ml)"
        )
        reasoning = (
            f"Frequent voids ({one_decimal(stats.avg_voids_per_day)}/day) with {driver} "
            "suggest an overactive bladder pattern."
        )
        return self.detected(context, probability, reasoning, metrics)
