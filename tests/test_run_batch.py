from datetime import datetime
import json
from pathlib import Path

import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from pydantic import ValidationError

from bladder_diary.models import DiaryEvent, EventKind, SessionRole
from bladder_diary.run_batch import (
    JsonDirectorySource,
    _load_patient_ids,
    _record_to_event,
    analyse_patient,
    main,
    parse_args,
)

RECORDS = [
    {"date": "2025-01-01", "time": "01:10", "event_type": "void", "volume_ml": 300},
    {"date": "2025-01-01", "time": "04:20", "event_type": "void", "volume_ml": 280},
    {"date": "2025-01-01", "time": "08:00", "event_type": "intake", "volume_ml": 250},
    {"date": "2025-01-02", "time": "02:00", "event_type": "void", "volume_ml": 310},
    {"date": "2025-01-02", "time": "05:30", "event_type": "void", "volume_ml": 260},
    {
        "date": "2025-01-02",
        "time": "10:40",
        "event_type": "leakage",
        "trigger": "cough",
        "dry_pad_weight_g": 15,
        "wet_pad_weight_g": 45,
    },
]


def test_json_directory_source_iter_events(tmp_path: Path):
    (tmp_path / "patient-1.json").write_text(json.dumps(RECORDS))

    events = list(JsonDirectorySource(tmp_path).iter_events("patient-1"))

    assert len(events) == 6
    assert all(isinstance(event, DiaryEvent) for event in events)
    assert events[-1].kind is EventKind.LEAKAGE
    assert events[-1].leakage_weight_g == 30


def test_json_directory_source_missing_inputs(tmp_path: Path):
    with pytest.raises(ValueError):
        JsonDirectorySource(tmp_path / "absent")
    with pytest.raises(FileNotFoundError):
        list(JsonDirectorySource(tmp_path).iter_events("nobody"))


def test_record_to_event_validates_records():
    with pytest.raises(TypeError):
        _record_to_event(["2025-01-01", "void"])
    with pytest.raises(ValidationError):
        _record_to_event({"date": "2025-01-01", "time": "08:00", "event_type": "void", "urgency": 9})


def test_load_patient_ids_from_csv_and_text(tmp_path: Path):
    csv_file = tmp_path / "ids.csv"
    csv_file.write_text("patient_id\np-1\n\np-2\n")
    text_file = tmp_path / "ids.txt"
    text_file.write_text("p-3\n  \np-4\n")

    args = parse_args(["--data-dir", str(tmp_path), "--patient", "p-0", "--patient-file", str(csv_file),
                       "--patient-file", str(text_file)])
    assert _load_patient_ids(args) == ["p-0", "p-1", "p-2", "p-3", "p-4"]

    with pytest.raises(SystemExit):
        _load_patient_ids(parse_args(["--data-dir", str(tmp_path)]))


def test_analyse_patient_returns_blocks_and_insights():
    events = [_record_to_event(record) for record in RECORDS]
    result = analyse_patient(
        "patient-1",
        events,
        role=SessionRole.CLINICIAN,
        personal_number="811228-9874",
        now=datetime(2025, 1, 10),
    )

    assert len(result["blocks"]) == 1
    block = result["blocks"][0]
    assert block["start_datetime"] == "2025-01-01T00:00:00"
    assert block["end_datetime"] == "2025-01-04T00:00:00"
    assert block["status"] == "complete"
    assert block["void_count"] == 4
    assert block["night_void_count"] == 4

    insights = result["insights"]
    assert insights["status"] == "ready"
    names = [pattern["name"] for pattern in insights["patterns"]]
    assert names == ["Stress Urinary Incontinence", "Nocturia"]
    assert insights["guidance"] is not None


def test_main_writes_output_file(tmp_path: Path):
    (tmp_path / "patient-1.json").write_text(json.dumps(RECORDS))
    output = tmp_path / "out.json"

    exit_code = main(["--data-dir", str(tmp_path), "--patient", "patient-1", "--output", str(output),
                      "--audience", "patient"])

    assert exit_code == 0
    payload = json.loads(output.read_text())
    assert set(payload) == {"patient-1"}
    assert payload["patient-1"]["insights"]["status"] == "ready"
