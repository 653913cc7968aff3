"""Detect leakages preceded by urgency."""
from __future__ import annotations

from ..models import DiaryWindow, EventKind, PatternContext, PatternDetection, Probability
from ..pattern_metadata import PATTERN_METADATA
from ..registry import register_rule
from ..rule_base import PatternRule
from .utils import URGENCY_TRIGGER, trigger_mask


@register_rule
class UrgeIncontinenceRule(PatternRule):
    id = "urge_incontinence"
    name = "Urge Incontinence"
    description = "At least one leakage with urgency as trigger; high when more than 3"
    version = "1.0.0"
    metadata = PATTERN_METADATA["urge_incontinence"]

    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        high_count = int(self.resolved_threshold(context, "urge_high_count", 3))

        leakages = window.of_kind(EventKind.LEAKAGE)
        urge_leakages = int(trigger_mask(leakages, {URGENCY_TRIGGER}).sum())
        metrics = {"urge_leakages": urge_leakages, "total_leakages": len(leakages)}
        if urge_leakages == 0:
            return self.not_detected(metrics)

        probability = Probability.HIGH if urge_leakages > high_count else Probability.MODERATE
        reasoning = (
            f"{urge_leakages} leakage event(s) associated with strong urgency before reaching the bathroom."
        )
        return self.detected(context, probability, reasoning, metrics)
