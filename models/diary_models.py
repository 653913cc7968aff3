"""
Bladder diary wire models: entry payloads and scan-extraction results.
"""
import uuid
from datetime import date as date_type
from datetime import time as time_type
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bladder_diary.models import (
    Confidence,
    DiaryEvent,
    EntrySource,
    EventKind,
    LeakageSeverity,
)


class DiaryEntryPayload(BaseModel):
    """
    Model for a diary entry at the write boundary.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(default=None, description="Entry ID")
    date: date_type = Field(description="Local calendar date")
    time: time_type = Field(description="Local time of day")
    event_type: EventKind = Field(description="void, intake or leakage")
    volume_ml: Optional[float] = Field(default=None, ge=0, description="Voided or consumed volume in ml")
    urgency: Optional[int] = Field(default=None, ge=1, le=5, description="Urgency 1-5")
    leakage_severity: Optional[LeakageSeverity] = Field(default=None, description="Leakage amount")
    intake_type: Optional[str] = Field(default=None, description="Drink type")
    trigger: Optional[str] = Field(default=None, description="Leakage trigger")
    notes: Optional[str] = Field(default=None, description="Notes")
    source: EntrySource = Field(default=EntrySource.MANUAL, description="manual or scan")
    confidence: Optional[Confidence] = Field(default=None, description="Scan confidence")
    dry_pad_weight_g: Optional[float] = Field(default=None, ge=0, description="Dry pad weight in grams")
    wet_pad_weight_g: Optional[float] = Field(default=None, ge=0, description="Wet pad weight in grams")
    leakage_weight_g: Optional[float] = Field(default=None, ge=0, description="Leaked weight in grams")

    def to_event(self) -> DiaryEvent:
        """Convert to a core event, dropping fields that do not apply to the kind."""
        is_void = self.event_type is EventKind.VOID
        is_intake = self.event_type is EventKind.INTAKE
        is_leakage = self.event_type is EventKind.LEAKAGE
        return DiaryEvent(
            id=self.id or str(uuid.uuid4()),
            occurred_on=self.date,
            occurred_at=self.time,
            kind=self.event_type,
            volume_ml=self.volume_ml if (is_void or is_intake) else None,
            urgency=self.urgency if is_void else None,
            leakage_severity=self.leakage_severity if is_leakage else None,
            dry_pad_weight_g=self.dry_pad_weight_g if is_leakage else None,
            wet_pad_weight_g=self.wet_pad_weight_g if is_leakage else None,
            leakage_weight_g=self.leakage_weight_g if is_leakage else None,
            trigger=self.trigger if is_leakage else None,
            intake_type=self.intake_type if is_intake else None,
            notes=self.notes,
            source=self.source,
            confidence=self.confidence if self.source is EntrySource.SCAN else None,
        )


_SEVERITY_ALIASES = {
    "small": LeakageSeverity.SMALL,
    "liten": LeakageSeverity.SMALL,
    "yes": LeakageSeverity.SMALL,
    "ja": LeakageSeverity.SMALL,
    "x": LeakageSeverity.SMALL,
    "true": LeakageSeverity.SMALL,
    "medium": LeakageSeverity.MEDIUM,
    "medel": LeakageSeverity.MEDIUM,
    "large": LeakageSeverity.LARGE,
    "stor": LeakageSeverity.LARGE,
}


class ScanVoid(BaseModel):
    """
    Model for a void row extracted from a diary image.
    """
    date: Optional[date_type] = Field(default=None, description="Date")
    time: Optional[time_type] = Field(default=None, description="Time")
    volume: Optional[float] = Field(default=None, ge=0, description="Voided volume in ml")
    urgency: Optional[int] = Field(default=None, ge=1, le=5, description="Urgency 1-5")
    notes: Optional[str] = Field(default=None, description="Notes")
    confidence: Confidence = Field(default=Confidence.LOW, description="Extraction confidence")


class ScanIntake(BaseModel):
    """
    Model for an intake row extracted from a diary image.
    """
    date: Optional[date_type] = Field(default=None, description="Date")
    time: Optional[time_type] = Field(default=None, description="Time")
    volume: Optional[float] = Field(default=None, ge=0, description="Consumed volume in ml")
    type: Optional[str] = Field(default=None, description="Drink type")
    notes: Optional[str] = Field(default=None, description="Notes")
    confidence: Confidence = Field(default=Confidence.LOW, description="Extraction confidence")


class ScanLeakage(BaseModel):
    """
    Model for a leakage row extracted from a diary image.
    """
    date: Optional[date_type] = Field(default=None, description="Date")
    time: Optional[time_type] = Field(default=None, description="Time")
    amount: Optional[LeakageSeverity] = Field(default=None, description="Leakage amount")
    dry_pad_weight_g: Optional[float] = Field(default=None, ge=0, description="Dry pad weight in grams")
    wet_pad_weight_g: Optional[float] = Field(default=None, ge=0, description="Wet pad weight in grams")
    trigger: Optional[str] = Field(default=None, description="Trigger")
    notes: Optional[str] = Field(default=None, description="Notes")
    confidence: Confidence = Field(default=Confidence.LOW, description="Extraction confidence")

    @field_validator("amount", mode="before")
    @classmethod
    def _normalize_amount(cls, value):
        if value is None or isinstance(value, LeakageSeverity):
            return value
        return _SEVERITY_ALIASES.get(str(value).strip().lower())


class ScanExtraction(BaseModel):
    """
    Model for the structured result of a diary image scan.
    """
    model_config = ConfigDict(populate_by_name=True)

    voids: List[ScanVoid] = Field(default_factory=list, description="Extracted voids")
    intakes: List[ScanIntake] = Field(default_factory=list, description="Extracted intakes")
    leakages: List[ScanLeakage] = Field(default_factory=list, description="Extracted leakages")
    overallConfidence: Optional[Confidence] = Field(default=None, description="Overall confidence")
    detectedLanguage: Optional[str] = Field(default=None, description="en or sv")


# Request models
class ScanRequest(BaseModel):
    """
    Request model for the diary image extraction API.
    """
    images: List[str] = Field(min_length=1, description="Base64 images or data URLs")
