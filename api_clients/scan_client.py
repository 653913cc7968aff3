"""
Diary scan client: sends diary photos to the extraction service and turns
reviewed rows into entry payloads.
"""
import logging
import os
from typing import Any, Iterable, Optional

import httpx

from bladder_diary.models import EntrySource, EventKind
from models.diary_models import (
    DiaryEntryPayload,
    ScanExtraction,
    ScanIntake,
    ScanLeakage,
    ScanRequest,
    ScanVoid,
)

# get scan service environment variables
SCAN_SERVICE_URL = os.getenv("BLADDER_DIARY_SCAN_URL", "http://localhost:54321/functions/v1/parse-diary-image")
SCAN_SERVICE_TOKEN = os.getenv("BLADDER_DIARY_SCAN_TOKEN")


def _headers(token: Optional[str]) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _parse_response(response: httpx.Response) -> ScanExtraction:
    data = response.json() if response.text else {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Unexpected non-JSON response from scan service: {data!r}")
    if data.get("error"):
        logging.error(f"Diary scan failed: {data['error']}")
        raise RuntimeError(f"Diary scan error: {data['error']}")
    # Accept either wrapped payload or flat
    payload = data.get("data", data)
    return ScanExtraction(**payload)


class ScanClient:
    """
    Client for the diary image extraction service.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        timeout: float | httpx.Timeout = httpx.Timeout(120.0, connect=10.0),
    ):
        self.url = url or SCAN_SERVICE_URL
        self.token = token if token is not None else SCAN_SERVICE_TOKEN
        self.timeout = timeout

    async def parse_images(
        self,
        images: list[str],
        *,
        client: httpx.AsyncClient | None = None,
    ) -> ScanExtraction:
        """Extract candidate diary rows from one or more base64 images."""
        request_data = ScanRequest(images=images)
        logging.info(f"Submitting {len(images)} diary image(s) for extraction")

        close_client = False
        if client is None:
            client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            close_client = True

        try:
            response = await client.post(self.url, json=request_data.model_dump(), headers=_headers(self.token))
            logging.info(f"Request {self.url} completed with status: {response.status_code}")
            response.raise_for_status()
            return _parse_response(response)
        except httpx.TimeoutException as e:
            logging.error(f"Timeout error calling scan service {self.url}: {e}")
            raise
        except httpx.HTTPStatusError as e:
            logging.error(f"HTTP error calling scan service {self.url}: {e}")
            logging.error(f"Response text: {e.response.text}")
            raise
        finally:
            if close_client:
                await client.aclose()

    def parse_images_sync(
        self,
        images: list[str],
        *,
        client: httpx.Client | None = None,
    ) -> ScanExtraction:
        """Synchronous variant of :meth:`parse_images`."""
        request_data = ScanRequest(images=images)

        close_client = False
        if client is None:
            client = httpx.Client(timeout=self.timeout, follow_redirects=True)
            close_client = True

        try:
            response = client.post(self.url, json=request_data.model_dump(), headers=_headers(self.token))
            logging.info(f"Request {self.url} completed with status: {response.status_code}")
            response.raise_for_status()
            return _parse_response(response)
        except httpx.HTTPStatusError as e:
            logging.error(f"HTTP error calling scan service {self.url}: {e}")
            raise
        finally:
            if close_client:
                client.close()


def _void_payload(row: ScanVoid) -> dict[str, Any]:
    return {
        "event_type": EventKind.VOID,
        "volume_ml": row.volume,
        "urgency": row.urgency,
    }


def _intake_payload(row: ScanIntake) -> dict[str, Any]:
    return {
        "event_type": EventKind.INTAKE,
        "volume_ml": row.volume,
        "intake_type": row.type,
    }


def _leakage_payload(row: ScanLeakage) -> dict[str, Any]:
    return {
        "event_type": EventKind.LEAKAGE,
        "leakage_severity": row.amount,
        "dry_pad_weight_g": row.dry_pad_weight_g,
        "wet_pad_weight_g": row.wet_pad_weight_g,
        "trigger": row.trigger,
    }


def scan_candidates(extraction: ScanExtraction) -> list[tuple[str, Any]]:
    """Flatten an extraction into ``(key, row)`` pairs for review, e.g. ``("voids:0", row)``."""
    candidates: list[tuple[str, Any]] = []
    for group in ("voids", "intakes", "leakages"):
        for index, row in enumerate(getattr(extraction, group)):
            candidates.append((f"{group}:{index}", row))
    return candidates


def accept_scan_entries(
    extraction: ScanExtraction,
    accepted: Optional[Iterable[str]] = None,
) -> list[DiaryEntryPayload]:
    """Convert reviewed scan rows into entry payloads tagged as scanned.

    ``accepted`` holds the candidate keys the reviewer kept; ``None`` keeps all.
    Rows without a date or time cannot be placed on the timeline and are skipped.
    """
    keep = set(accepted) if accepted is not None else None
    builders = {"voids": _void_payload, "intakes": _intake_payload, "leakages": _leakage_payload}

    payloads: list[DiaryEntryPayload] = []
    for key, row in scan_candidates(extraction):
        if keep is not None and key not in keep:
            continue
        if row.date is None or row.time is None:
            logging.warning(f"Skipping scanned row {key}: missing date or time")
            continue
        group = key.split(":", 1)[0]
        payloads.append(
            DiaryEntryPayload(
                date=row.date,
                time=row.time,
                notes=row.notes,
                source=EntrySource.SCAN,
                confidence=row.confidence,
                **builders[group](row),
            )
        )
    return payloads
