"""Pattern engine running the ordered rule battery over diary events."""
from __future__ import annotations

from typing import Callable, Sequence

from .features import compute_stats
from .models import (
    ClinicalPattern,
    ComputedStats,
    DiaryEvent,
    DiaryWindow,
    PatternContext,
    PatternDetection,
    Probability,
)
from .pattern_metadata import PATTERN_METADATA
from .registry import RuleRegistry, registry as default_registry
from .rule_base import PatternRule

NO_CONCERNING_PATTERNS = "No Concerning Patterns"


class PatternEngine:
    """Evaluates registered rules and converts detections into findings.

    Findings are emitted in registration order. When nothing fires and at
    least one event exists, a single low-probability "No Concerning Patterns"
    finding is returned instead.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        *,
        default_context: PatternContext | None = None,
    ) -> None:
        if registry is None:
            from . import rules  # noqa: F401 - ensure rule registration side-effects

            registry = default_registry
        self._registry = registry
        self._default_context = default_context or PatternContext()

    def detect(
        self,
        events: Sequence[DiaryEvent],
        stats: ComputedStats,
        context: PatternContext | None = None,
        *,
        rule_filter: Callable[[PatternRule], bool] | None = None,
    ) -> list[PatternDetection]:
        """Run every applicable rule, returning detected and undetected outcomes."""

        window = DiaryWindow(events=tuple(events), stats=stats)
        return self._registry.detect_all(window, context or self._default_context, predicate=rule_filter)

    def evaluate(
        self,
        events: Sequence[DiaryEvent],
        stats: ComputedStats,
        context: PatternContext | None = None,
        *,
        rule_filter: Callable[[PatternRule], bool] | None = None,
    ) -> list[ClinicalPattern]:
        context = context or self._default_context
        detections = self.detect(events, stats, context, rule_filter=rule_filter)
        patterns = [detection.to_clinical_pattern() for detection in detections if detection.detected]
        if not patterns and len(events) > 0:
            patterns.append(_no_concerning_patterns(context))
        return patterns


def _no_concerning_patterns(context: PatternContext) -> ClinicalPattern:
    metadata = PATTERN_METADATA["no_concerning_patterns"]
    audience = context.audience.value
    return ClinicalPattern(
        name=NO_CONCERNING_PATTERNS,
        probability=Probability.LOW,
        reasoning=metadata["reasoning"][audience],
        recommendation=metadata["recommendations"][audience],
    )


_DEFAULT_ENGINE: PatternEngine | None = None


def evaluate_patterns(
    events: Sequence[DiaryEvent],
    stats: ComputedStats | None = None,
    context: PatternContext | None = None,
) -> list[ClinicalPattern]:
    """Evaluate the default rule battery, computing stats when not supplied."""

    global _DEFAULT_ENGINE
    if _DEFAULT_ENGINE is None:
        _DEFAULT_ENGINE = PatternEngine()
    if stats is None:
        stats = compute_stats(events)
    return _DEFAULT_ENGINE.evaluate(events, stats, context)
