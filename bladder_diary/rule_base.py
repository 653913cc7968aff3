"""Base class and utilities for pattern rules."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from .models import (
    Audience,
    DiaryWindow,
    PatternContext,
    PatternDescriptor,
    PatternDetection,
    PatternStatus,
    Probability,
)


class PatternRule(ABC):
    """Abstract pattern rule with metadata.

    A rule is a pure predicate plus scorer over a ``DiaryWindow``. Subclasses
    implement ``detect`` and report through ``detected``/``not_detected`` so
    every outcome carries the metrics that drove it.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    version: str = "1.0.0"
    metadata: Mapping[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.id:
            raise ValueError(f"Rule {cls.__name__} must define a non-empty id")

    @property
    def descriptor(self) -> PatternDescriptor:
        """Return static metadata describing this pattern."""

        audiences = tuple(Audience(value) for value in self.metadata.get("audiences", ()))
        return PatternDescriptor(
            pattern_id=self.id,
            name=self.name or self.id,
            description=self.description or self.name or self.id,
            version=self.version,
            audiences=audiences or (Audience.PATIENT, Audience.CLINICIAN),
        )

    @abstractmethod
    def detect(self, window: DiaryWindow, context: PatternContext) -> PatternDetection:
        """Run the rule on the precomputed window."""

    def resolved_threshold(self, context: PatternContext, key: str, default: Any) -> Any:
        """Helper to fetch pattern-specific threshold overrides."""

        return context.pattern_threshold(self.id, key, default)

    def recommendation(self, context: PatternContext) -> str:
        recommendations = self.metadata.get("recommendations", {})
        return recommendations.get(context.audience.value) or recommendations.get(Audience.PATIENT.value, "")

    def detected(
        self,
        context: PatternContext,
        probability: Probability,
        reasoning: str,
        metrics: Mapping[str, float],
    ) -> PatternDetection:
        return PatternDetection(
            pattern_id=self.id,
            name=self.name,
            status=PatternStatus.DETECTED,
            probability=probability,
            reasoning=reasoning,
            recommendation=self.recommendation(context),
            metrics=dict(metrics),
            version=self.version,
        )

    def not_detected(self, metrics: Mapping[str, float]) -> PatternDetection:
        return PatternDetection(
            pattern_id=self.id,
            name=self.name,
            status=PatternStatus.NOT_DETECTED,
            metrics=dict(metrics),
            version=self.version,
        )

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"<{self.__class__.__name__} id={self.id!r} version={self.version!r}>"
