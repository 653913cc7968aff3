from __future__ import annotations

from datetime import date, time

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from pydantic import ValidationError

from bladder_diary.models import Confidence, EntrySource, EventKind, LeakageSeverity
from models.diary_models import DiaryEntryPayload, ScanExtraction, ScanLeakage, ScanRequest


def test_payload_parses_strings_and_builds_event():
    payload = DiaryEntryPayload.model_validate(
        {"id": "e1", "date": "2025-01-01", "time": "07:15", "event_type": "void", "volume_ml": 320, "urgency": 2}
    )
    event = payload.to_event()
    assert event.id == "e1"
    assert event.occurred_on == date(2025, 1, 1)
    assert event.occurred_at == time(7, 15)
    assert event.kind is EventKind.VOID
    assert event.volume_ml == 320
    assert event.urgency == 2
    assert event.source is EntrySource.MANUAL


@pytest.mark.parametrize(
    "field, value",
    [("volume_ml", -5), ("urgency", 6), ("urgency", 0), ("dry_pad_weight_g", -1)],
)
def test_payload_rejects_out_of_range_values(field, value):
    record = {"date": "2025-01-01", "time": "07:15", "event_type": "void", field: value}
    with pytest.raises(ValidationError):
        DiaryEntryPayload.model_validate(record)


def test_payload_rejects_unknown_event_type():
    with pytest.raises(ValidationError):
        DiaryEntryPayload.model_validate({"date": "2025-01-01", "time": "07:15", "event_type": "snack"})


def test_to_event_drops_fields_that_do_not_apply():
    leak = DiaryEntryPayload(
        date=date(2025, 1, 1),
        time=time(10, 40),
        event_type=EventKind.LEAKAGE,
        volume_ml=100,
        urgency=4,
        trigger="cough",
        dry_pad_weight_g=15,
        wet_pad_weight_g=45,
        confidence=Confidence.HIGH,
    ).to_event()
    assert leak.volume_ml is None
    assert leak.urgency is None
    assert leak.trigger == "cough"
    assert leak.leakage_weight_g == 30
    assert leak.confidence is None
    assert leak.id

    intake = DiaryEntryPayload(
        date=date(2025, 1, 1),
        time=time(8, 0),
        event_type=EventKind.INTAKE,
        volume_ml=250,
        intake_type="coffee",
        trigger="cough",
        source=EntrySource.SCAN,
        confidence=Confidence.MEDIUM,
    ).to_event()
    assert intake.trigger is None
    assert intake.intake_type == "coffee"
    assert intake.confidence is Confidence.MEDIUM


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("X", LeakageSeverity.SMALL),
        ("ja", LeakageSeverity.SMALL),
        ("Medel", LeakageSeverity.MEDIUM),
        ("stor", LeakageSeverity.LARGE),
        ("large", LeakageSeverity.LARGE),
        ("lots", None),
        (None, None),
    ],
)
def test_scan_leakage_amount_aliases(raw, expected):
    assert ScanLeakage(amount=raw).amount is expected


def test_scan_extraction_defaults():
    extraction = ScanExtraction.model_validate({"voids": [{"date": "2025-01-01", "time": "06:00", "volume": 300}]})
    assert extraction.voids[0].confidence is Confidence.LOW
    assert extraction.intakes == []
    assert extraction.leakages == []


def test_scan_request_requires_an_image():
    with pytest.raises(ValidationError):
        ScanRequest(images=[])
