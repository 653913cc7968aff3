"""Core data models for bladder diary analysis."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

if TYPE_CHECKING:
    import pandas as pd


class EventKind(str, Enum):
    VOID = "void"
    INTAKE = "intake"
    LEAKAGE = "leakage"


class LeakageSeverity(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class EntrySource(str, Enum):
    MANUAL = "manual"
    SCAN = "scan"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Probability(str, Enum):
    """Likelihood label attached to a clinical finding."""

    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class PatternStatus(str, Enum):
    """Detection status"""

    DETECTED = "detected"
    NOT_DETECTED = "not_detected"


class Audience(str, Enum):
    """Who a set of findings is rendered for."""

    PATIENT = "patient"
    CLINICIAN = "clinician"


class BlockStatus(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


def derive_leakage_weight(dry_pad_weight_g: Optional[float], wet_pad_weight_g: Optional[float]) -> Optional[float]:
    """Net leaked weight from pad weights, ``None`` unless both are supplied."""

    if dry_pad_weight_g is None or wet_pad_weight_g is None:
        return None
    return max(0.0, float(wet_pad_weight_g) - float(dry_pad_weight_g))


@dataclass(frozen=True)
class DiaryEvent:
    """A single logged void, intake or leakage in patient-local wall-clock time."""

    id: str
    occurred_on: date
    occurred_at: time
    kind: EventKind
    volume_ml: Optional[float] = None
    urgency: Optional[int] = None
    leakage_severity: Optional[LeakageSeverity] = None
    dry_pad_weight_g: Optional[float] = None
    wet_pad_weight_g: Optional[float] = None
    leakage_weight_g: Optional[float] = None
    trigger: Optional[str] = None
    intake_type: Optional[str] = None
    notes: Optional[str] = None
    source: EntrySource = EntrySource.MANUAL
    confidence: Optional[Confidence] = None

    def __post_init__(self) -> None:
        measured = derive_leakage_weight(self.dry_pad_weight_g, self.wet_pad_weight_g)
        if measured is not None:
            object.__setattr__(self, "leakage_weight_g", measured)

    @property
    def timestamp(self) -> datetime:
        return datetime.combine(self.occurred_on, self.occurred_at)

    @property
    def hour(self) -> int:
        return self.occurred_at.hour

    @property
    def sort_key(self) -> tuple[date, time]:
        return (self.occurred_on, self.occurred_at)


@dataclass(frozen=True)
class DayWindow:
    """Local hours counted as daytime; ``end_hour`` is exclusive."""

    start_hour: int
    end_hour: int

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(f"Invalid day window {self.start_hour}-{self.end_hour}")

    def is_day(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


# Dashboard statistics count 07:00-23:00 as day; recording blocks use 06:00-22:00.
DASHBOARD_DAY_WINDOW = DayWindow(7, 23)
BLOCK_DAY_WINDOW = DayWindow(6, 22)


@dataclass(frozen=True)
class ComputedStats:
    """Aggregates derived from an arbitrary subset of diary events."""

    total_voids: int = 0
    total_leakages: int = 0
    total_intake: float = 0.0
    intake_count: int = 0
    median_volume: float = 0.0
    max_volume: float = 0.0
    min_volume: float = 0.0
    avg_voids_per_day: float = 0.0
    avg_leakages_per_day: float = 0.0
    day_voids: int = 0
    night_voids: int = 0
    total_leakage_weight: float = 0.0
    total_voided_ml: float = 0.0
    day_voided_ml: float = 0.0
    night_voided_ml: float = 0.0
    unique_days: int = 0
    has_volumes: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_voids": self.total_voids,
            "total_leakages": self.total_leakages,
            "total_intake": self.total_intake,
            "intake_count": self.intake_count,
            "median_volume": self.median_volume,
            "max_volume": self.max_volume,
            "min_volume": self.min_volume,
            "avg_voids_per_day": self.avg_voids_per_day,
            "avg_leakages_per_day": self.avg_leakages_per_day,
            "day_voids": self.day_voids,
            "night_voids": self.night_voids,
            "total_leakage_weight": self.total_leakage_weight,
            "total_voided_ml": self.total_voided_ml,
            "day_voided_ml": self.day_voided_ml,
            "night_voided_ml": self.night_voided_ml,
            "unique_days": self.unique_days,
        }


@dataclass(frozen=True)
class ClinicalPattern:
    """A finding surfaced to patients or clinicians."""

    name: str
    probability: Probability
    reasoning: str
    recommendation: str

    def as_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "probability": self.probability.value,
            "reasoning": self.reasoning,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class PatternDescriptor:
    """Static metadata describing a pattern signature."""

    pattern_id: str
    name: str
    description: str
    version: str = "1.0.0"
    audiences: tuple[Audience, ...] = (Audience.PATIENT, Audience.CLINICIAN)
    tags: Sequence[str] = field(default_factory=tuple)


@dataclass(frozen=True)
class PatternDetection:
    """Standardized output for a single rule evaluation."""

    pattern_id: str
    name: str
    status: PatternStatus
    probability: Optional[Probability] = None
    reasoning: str = ""
    recommendation: str = ""
    metrics: Mapping[str, float] = field(default_factory=dict)
    version: Optional[str] = None

    @property
    def detected(self) -> bool:
        return self.status is PatternStatus.DETECTED

    def to_clinical_pattern(self) -> ClinicalPattern:
        if not self.detected or self.probability is None:
            raise ValueError(f"Pattern '{self.pattern_id}' was not detected")
        return ClinicalPattern(
            name=self.name,
            probability=self.probability,
            reasoning=self.reasoning,
            recommendation=self.recommendation,
        )


@dataclass(frozen=True)
class PatternContext:
    """Auxiliary context passed to each rule."""

    audience: Audience = Audience.PATIENT
    thresholds: Mapping[str, Any] = field(default_factory=dict)
    pattern_settings: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)

    def pattern_threshold(self, pattern_id: str, key: str, default: Any) -> Any:
        """Return pattern-specific override, falling back to global thresholds"""

        pattern_specific = self.pattern_settings.get(pattern_id, {})
        if key in pattern_specific:
            return pattern_specific[key]
        return self.thresholds.get(key, default)


@dataclass(frozen=True)
class DiaryWindow:
    """Events and their precomputed statistics handed to every rule."""

    events: Sequence[DiaryEvent]
    stats: ComputedStats
    frame_cache: dict[str, "pd.DataFrame"] = field(default_factory=dict, repr=False)

    def frame(self) -> "pd.DataFrame":
        """Return a cached dataframe of the window's events, computing lazily."""

        cached = self.frame_cache.get("all")
        if cached is not None:
            return cached

        from .features import events_frame  # Local import to avoid circular dependency

        frame = events_frame(self.events)
        self.frame_cache["all"] = frame
        return frame

    def of_kind(self, kind: EventKind) -> "pd.DataFrame":
        cached = self.frame_cache.get(kind.value)
        if cached is not None:
            return cached
        frame = self.frame()
        subset = frame.loc[frame["kind"] == kind.value]
        self.frame_cache[kind.value] = subset
        return subset

    def observation_days(self) -> int:
        """Distinct calendar dates among the events, floored at one."""

        frame = self.frame()
        if frame.empty:
            return 1
        return max(1, int(frame["occurred_on"].nunique()))


@dataclass(frozen=True)
class RecordingBlock:
    """A fixed-duration observation window and the aggregates over its events."""

    start: datetime
    end: datetime
    status: BlockStatus
    stats: ComputedStats
    clinical_patterns: Sequence[ClinicalPattern] = field(default_factory=tuple)
    overall_assessment: Optional[str] = None
    treatment_plan: Optional[str] = None
    treatment_plan_updated_at: Optional[datetime] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @property
    def void_count(self) -> int:
        return self.stats.total_voids

    @property
    def leakage_count(self) -> int:
        return self.stats.total_leakages

    @property
    def intake_count(self) -> int:
        return self.stats.intake_count

    @property
    def total_voided_ml(self) -> float:
        return self.stats.total_voided_ml

    @property
    def total_intake_ml(self) -> float:
        return self.stats.total_intake

    @property
    def total_leakage_weight_g(self) -> float:
        return self.stats.total_leakage_weight

    @property
    def day_void_count(self) -> int:
        return self.stats.day_voids

    @property
    def night_void_count(self) -> int:
        return self.stats.night_voids

    @property
    def median_void_volume(self) -> Optional[float]:
        return self.stats.median_volume if self.stats.has_volumes else None

    @property
    def max_void_volume(self) -> Optional[float]:
        return self.stats.max_volume if self.stats.has_volumes else None

    @property
    def min_void_volume(self) -> Optional[float]:
        return self.stats.min_volume if self.stats.has_volumes else None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start_datetime": self.start.isoformat(),
            "end_datetime": self.end.isoformat(),
            "status": self.status.value,
            "void_count": self.void_count,
            "leakage_count": self.leakage_count,
            "intake_count": self.intake_count,
            "total_voided_ml": self.total_voided_ml,
            "total_intake_ml": self.total_intake_ml,
            "total_leakage_weight_g": self.total_leakage_weight_g,
            "day_voided_ml": self.stats.day_voided_ml,
            "night_voided_ml": self.stats.night_voided_ml,
            "day_void_count": self.day_void_count,
            "night_void_count": self.night_void_count,
            "median_void_volume": self.median_void_volume,
            "max_void_volume": self.max_void_volume,
            "min_void_volume": self.min_void_volume,
            "clinical_patterns": [pattern.as_dict() for pattern in self.clinical_patterns],
            "overall_assessment": self.overall_assessment,
            "treatment_plan": self.treatment_plan,
            "treatment_plan_updated_at": (
                self.treatment_plan_updated_at.isoformat() if self.treatment_plan_updated_at else None
            ),
        }


class SessionRole(str, Enum):
    PATIENT = "patient"
    CLINICIAN = "clinician"


@dataclass(frozen=True)
class PatientProfile:
    """Patient attributes relevant to interpreting findings."""

    patient_id: str
    display_name: Optional[str] = None
    personal_number: Optional[str] = None
    sex: Optional[str] = None
    age: Optional[int] = None


@dataclass(frozen=True)
class Session:
    """Explicit viewer context: who is looking and at which patient."""

    role: SessionRole
    patient: Optional[PatientProfile] = None

    @property
    def audience(self) -> Audience:
        return Audience.CLINICIAN if self.role is SessionRole.CLINICIAN else Audience.PATIENT
