from pathlib import Path
import json
import sys

import httpx
import pytest
import respx

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from api_clients.scan_client import ScanClient, accept_scan_entries, scan_candidates
from bladder_diary.models import Confidence, EntrySource, EventKind, LeakageSeverity
from models.diary_models import ScanExtraction

SCAN_URL = "https://scan.example.test/parse-diary-image"

_EXTRACTION = {
    "voids": [
        {"date": "2025-01-01", "time": "06:30", "volume": 350, "urgency": 3, "confidence": "high"},
        {"date": None, "time": "09:00", "volume": 200},
    ],
    "intakes": [{"date": "2025-01-01", "time": "07:00", "volume": 250, "type": "coffee", "confidence": "medium"}],
    "leakages": [
        {
            "date": "2025-01-01",
            "time": "11:00",
            "amount": "liten",
            "dry_pad_weight_g": 15,
            "wet_pad_weight_g": 27,
            "trigger": "cough",
        }
    ],
    "overallConfidence": "medium",
    "detectedLanguage": "sv",
}


@pytest.mark.asyncio
@respx.mock
async def test_parse_images_returns_extraction():
    route = respx.post(SCAN_URL).mock(return_value=httpx.Response(200, json={"data": _EXTRACTION}))

    result = await ScanClient(SCAN_URL, token="secret").parse_images(["data:image/png;base64,AAAA"])

    assert route.called
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"images": ["data:image/png;base64,AAAA"]}
    assert len(result.voids) == 2
    assert result.leakages[0].amount is LeakageSeverity.SMALL
    assert result.detectedLanguage == "sv"


@pytest.mark.asyncio
@respx.mock
async def test_parse_images_raises_for_http_error():
    route = respx.post(SCAN_URL).mock(return_value=httpx.Response(500, text="boom"))

    with pytest.raises(httpx.HTTPStatusError):
        await ScanClient(SCAN_URL).parse_images(["AAAA"])

    assert route.called


@respx.mock
def test_parse_images_sync_accepts_flat_payload():
    route = respx.post(SCAN_URL).mock(return_value=httpx.Response(200, json=_EXTRACTION))

    result = ScanClient(SCAN_URL, token="").parse_images_sync(["AAAA"])

    assert route.called
    assert "Authorization" not in route.calls.last.request.headers
    assert result.intakes[0].type == "coffee"


@respx.mock
def test_parse_images_sync_raises_for_service_error():
    respx.post(SCAN_URL).mock(return_value=httpx.Response(200, json={"error": "unreadable image"}))

    with pytest.raises(RuntimeError):
        ScanClient(SCAN_URL).parse_images_sync(["AAAA"])


def test_scan_candidates_are_keyed_by_group_and_index():
    extraction = ScanExtraction(**_EXTRACTION)
    keys = [key for key, _ in scan_candidates(extraction)]
    assert keys == ["voids:0", "voids:1", "intakes:0", "leakages:0"]


def test_accept_scan_entries_skips_rows_without_date():
    payloads = accept_scan_entries(ScanExtraction(**_EXTRACTION))

    assert [payload.event_type for payload in payloads] == [EventKind.VOID, EventKind.INTAKE, EventKind.LEAKAGE]
    assert all(payload.source is EntrySource.SCAN for payload in payloads)

    void, intake, leak = (payload.to_event() for payload in payloads)
    assert void.volume_ml == 350
    assert void.confidence is Confidence.HIGH
    assert intake.intake_type == "coffee"
    assert leak.leakage_severity is LeakageSeverity.SMALL
    assert leak.leakage_weight_g == 12


def test_accept_scan_entries_keeps_only_reviewed_rows():
    payloads = accept_scan_entries(ScanExtraction(**_EXTRACTION), accepted=["leakages:0"])
    assert len(payloads) == 1
    assert payloads[0].trigger == "cough"
