"""Bladder diary pattern detection library."""

from .models import (
    Audience,
    BlockStatus,
    ClinicalPattern,
    ComputedStats,
    DayWindow,
    DiaryEvent,
    DiaryWindow,
    EventKind,
    PatientProfile,
    PatternContext,
    PatternDetection,
    PatternStatus,
    Probability,
    RecordingBlock,
    Session,
    SessionRole,
)
from .registry import register_rule, registry
from .rule_base import PatternRule

__all__ = [
    "Audience",
    "BlockStatus",
    "ClinicalPattern",
    "ComputedStats",
    "DayWindow",
    "DiaryEvent",
    "DiaryWindow",
    "EventKind",
    "PatientProfile",
    "PatternContext",
    "PatternDetection",
    "PatternStatus",
    "Probability",
    "RecordingBlock",
    "Session",
    "SessionRole",
    "PatternRule",
    "register_rule",
    "registry",
]
