"""Command-line utility for analysing bladder diaries across patients.

The tool expects per-patient JSON files containing diary entries. Each file
should be named ``<patient_id>.json`` inside a data directory and hold a list
of entry records::

    [
        {"date": "2025-01-01", "time": "07:15", "event_type": "void", "volume_ml": 320, "urgency": 2},
        {"date": "2025-01-01", "time": "08:00", "event_type": "intake", "volume_ml": 250},
        {"date": "2025-01-01", "time": "10:40", "event_type": "leakage", "trigger": "cough",
         "dry_pad_weight_g": 15, "wet_pad_weight_g": 45},
        ...
    ]

Use ``--patient`` repeatedly or provide a newline-delimited ``--patient-file``
listing the patient IDs to process. Results (recording blocks and gated
insights) are written as JSON to stdout or to ``--output`` if provided.
"""
from __future__ import annotations

import argparse
import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from models.diary_models import DiaryEntryPayload

from .block_store import InMemoryBlockStore
from .engine import PatternEngine
from .insights import build_insights
from .models import DiaryEvent, PatientProfile, Session, SessionRole
from .segmenter import BLOCK_DURATION_HOURS, RecordingBlockSegmenter


def _load_patient_ids(args: argparse.Namespace) -> list[str]:
    patient_ids: list[str] = []
    if args.patient:
        patient_ids.extend(args.patient)
    if args.patient_file:
        for path in args.patient_file:
            file_path = Path(path)
            if file_path.suffix.lower() == ".csv":
                with file_path.open(newline="") as handle:
                    reader = csv.reader(handle)
                    for idx, row in enumerate(reader):
                        if not row:
                            continue
                        value = row[0].strip()
                        if not value:
                            continue
                        if idx == 0 and value.lower() in {"patient_id", "id"}:
                            continue
                        patient_ids.append(value)
            else:
                with file_path.open() as handle:
                    for line in handle:
                        line = line.strip()
                        if line:
                            patient_ids.append(line)
    if not patient_ids:
        raise SystemExit("No patient IDs provided. Use --patient or --patient-file.")
    return patient_ids


class JsonDirectorySource:
    """Simple event source that reads per-patient JSON entry files."""

    def __init__(self, root: Path) -> None:
        if not root.is_dir():
            raise ValueError(f"Diary data directory not found: {root}")
        self._root = root

    def iter_events(self, patient_id: str) -> Iterable[DiaryEvent]:
        file_path = self._root / f"{patient_id}.json"
        if not file_path.exists():
            raise FileNotFoundError(f"Missing diary file for patient {patient_id}: {file_path}")

        with file_path.open() as handle:
            records = json.load(handle)

        for record in records:
            yield _record_to_event(record)


def _record_to_event(record: Any) -> DiaryEvent:
    """Validate a raw record at the write boundary and convert it."""

    if isinstance(record, DiaryEvent):
        return record
    if not isinstance(record, Mapping):
        raise TypeError("Diary records must be JSON objects")
    return DiaryEntryPayload.model_validate(record).to_event()


def analyse_patient(
    patient_id: str,
    events: list[DiaryEvent],
    *,
    role: SessionRole,
    personal_number: str | None = None,
    block_duration_hours: float = BLOCK_DURATION_HOURS,
    now: datetime | None = None,
) -> dict[str, Any]:
    engine = PatternEngine()
    segmenter = RecordingBlockSegmenter(
        InMemoryBlockStore(),
        pattern_engine=engine,
        block_duration_hours=block_duration_hours,
    )
    blocks = segmenter.segment(events, now=now)
    session = Session(role=role, patient=PatientProfile(patient_id=patient_id, personal_number=personal_number))
    insights = build_insights(events, session, now=now, recent_hours=None, engine=engine)
    return {
        "blocks": [block.as_dict() for block in sorted(blocks, key=lambda block: block.start, reverse=True)],
        "insights": insights.as_dict(),
    }


def run(  # pragma: no cover - exercised via CLI
    patient_ids: list[str],
    source: JsonDirectorySource,
    *,
    role: SessionRole,
    block_duration_hours: float,
) -> dict[str, dict]:
    results: dict[str, dict] = {}
    for patient_id in patient_ids:
        events = list(source.iter_events(patient_id))
        logging.info(f"Analysing {len(events)} events for patient {patient_id}")
        results[patient_id] = analyse_patient(
            patient_id,
            events,
            role=role,
            block_duration_hours=block_duration_hours,
        )
    return results


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run bladder diary analysis in batch")
    parser.add_argument("--data-dir", type=Path, required=True, help="Directory containing <patient_id>.json files")
    parser.add_argument("--patient", action="append", help="Patient ID to process (may be repeated)")
    parser.add_argument(
        "--patient-file",
        action="append",
        help="Path to file with newline-delimited patient IDs"
    )
    parser.add_argument(
        "--audience",
        choices=[role.value for role in SessionRole],
        default=SessionRole.CLINICIAN.value,
        help="Render findings for patients or clinicians",
    )
    parser.add_argument(
        "--block-hours",
        type=float,
        default=BLOCK_DURATION_HOURS,
        help="Recording block duration in hours",
    )
    parser.add_argument("--output", type=Path, help="Optional output JSON file")
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with the given indent")
    parser.add_argument("--verbose", action="store_true", help="Enable info logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - CLI entry point
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    patient_ids = _load_patient_ids(args)
    source = JsonDirectorySource(args.data_dir)
    results = run(
        patient_ids,
        source,
        role=SessionRole(args.audience),
        block_duration_hours=args.block_hours,
    )

    output_text = json.dumps(results, indent=args.indent)
    if args.output:
        args.output.write_text(output_text)
    else:
        print(output_text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
