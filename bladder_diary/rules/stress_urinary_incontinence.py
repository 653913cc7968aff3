"""Detect leakages provoked by physical stress."""
from __future__ import annotations

from ..models import DiaryWindow, EventKind, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import STRESS_TRIGGERS, one_decimal, trigger_mask


@register_rule
class StressUrinaryIncontinenceRule(PatternRule):
    id = "stress_urinary_incontinence"
    name = "Stress Urinary Incontinence"
    description = "At least one leakage triggered by cough, sneeze, laugh, exercise or lifting"
    version = "1.0.0"
    metadata = PATTERN_METADATA["stress_urinary_incontinence"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        high_rate = float(self.resolved_threshold(context, "stress_high_rate", 0.7))
        moderate_rate = float(self.resolved_threshold(context, "stress_moderate_rate", 0.4))
        triggers = self.resolved_threshold(context, "stress_triggers", STRESS_TRIGGERS)

        leakages = window.of_kind(EventKind.LEAKAGE)
        stress_leakages = int(trigger_mask(leakages, triggers).sum())
        rate = stress_leakages / (len(leakages) or 1)
        metrics = {
            "stress_leakages": stress_leakages,
            "total_leakages": len(leakages),
            "stress_rate": rate,
        }
        if stress_leakages == 0:
            return self.not_detected(metrics)

        if rate > high_rate:
            probability = Probability.HIGH
        elif rate > moderate_rate:
            probability = Probability.MODERATE
        else:
            probability = Probability.LOW
        reasoning = (
            f"{stress_leakages} leakage event(s) triggered by physical stress "
            f"({one_decimal(rate * 100)}% of leakages) suggest stress incontinence."
        )
        return self.detected(context, probability, reasoning, metrics)
