"""Detect small frequent voids suggesting incomplete emptying."""
from __future__ import annotations

from ..models import DiaryWindow, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import one_decimal, whole


@register_rule
class IncompleteEmptyingRule(PatternRule):
    id = "incomplete_emptying"
    name = "Possible Incomplete Emptying"
    description = "Median voided volume <150 ml with >10 voids/day"
    version = "1.0.0"
    metadata = PATTERN_METADATA["incomplete_emptying"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        volume_threshold = float(self.resolved_threshold(context, "emptying_median_volume_ml", 150.0))
        frequency_threshold = float(self.resolved_threshold(context, "emptying_voids_per_day", 10.0))

        stats = window.stats
        metrics = {"median_volume": stats.median_volume, "avg_voids_per_day": stats.avg_voids_per_day}
        if not (stats.median_volume < volume_threshold and stats.avg_voids_per_day > frequency_threshold):
            return self.not_detected(metrics)

        reasoning = (
            f"Very frequent voids ({one_decimal(stats.avg_voids_per_day)}/day) with low median volume "
            f"({whole(stats.median_volume)}ml) may suggest incomplete emptying."
        )
        return self.detected(context, Probability.MODERATE, reasoning, metrics)
