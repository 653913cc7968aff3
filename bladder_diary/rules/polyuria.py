"""Detect high average daily urine output."""
from __future__ import annotations

from ..models import DiaryWindow, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import whole


@register_rule
class PolyuriaRule(PatternRule):
    id = "polyuria"
    name = "Polyuria"
    description = "Average voided volume per observed day >2500 ml; high above 3000 ml"
    version = "1.0.0"
    metadata = PATTERN_METADATA["polyuria"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        moderate_output = float(self.resolved_threshold(context, "polyuria_daily_ml", 2500.0))
        high_output = float(self.resolved_threshold(context, "polyuria_high_daily_ml", 3000.0))

        days = window.observation_days()
        daily_output = window.stats.total_voided_ml / days
        metrics = {
            "total_voided_ml": window.stats.total_voided_ml,
            "observation_days": days,
            "avg_daily_output_ml": daily_output,
        }
        if daily_output <= moderate_output:
            return self.not_detected(metrics)

        probability = Probability.HIGH if daily_output > high_output else Probability.MODERATE
        reasoning = (
            f"Average daily urine output of {whole(daily_output)}ml is higher than typical (>2.5L). "
            "This could relate to fluid intake, diabetes, or other conditions."
        )
        return self.detected(context, probability, reasoning, metrics)
