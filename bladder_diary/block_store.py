"""Storage for recording blocks keyed by window start."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock
from typing import Dict, Protocol

from .models import RecordingBlock


class BlockNotFoundError(LookupError):
    """Raised when a block id does not exist in the store."""


class BlockStore(Protocol):
    """Persistence contract for derived recording blocks."""

    def get(self, start: datetime) -> RecordingBlock | None:
        ...

    def upsert(self, block: RecordingBlock) -> RecordingBlock:
        ...

    def list_blocks(self) -> list[RecordingBlock]:
        ...


@dataclass
class InMemoryBlockStore:
    """Simple in-memory block store keyed by block start.

    ``upsert`` is atomic under a lock so concurrent segmentation of the same
    events cannot create two blocks for one window.
    """

    _store: Dict[datetime, RecordingBlock] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock, repr=False)

    def get(self, start: datetime) -> RecordingBlock | None:
        return self._store.get(start)

    def upsert(self, block: RecordingBlock, *, now: datetime | None = None) -> RecordingBlock:
        timestamp = now or datetime.now()
        with self._lock:
            existing = self._store.get(block.start)
            if existing is None:
                stored = replace(
                    block,
                    id=block.id or str(uuid.uuid4()),
                    created_at=timestamp,
                    updated_at=timestamp,
                )
                logging.info(f"Inserted recording block {stored.id} starting {stored.start.isoformat()}")
            else:
                stored = replace(
                    block,
                    end=existing.end,
                    id=existing.id,
                    created_at=existing.created_at,
                    updated_at=timestamp,
                    treatment_plan=existing.treatment_plan,
                    treatment_plan_updated_at=existing.treatment_plan_updated_at,
                )
                logging.info(f"Updated recording block {stored.id} starting {stored.start.isoformat()}")
            self._store[block.start] = stored
            return stored

    def list_blocks(self) -> list[RecordingBlock]:
        """Return blocks ordered by start, newest first."""

        return sorted(self._store.values(), key=lambda block: block.start, reverse=True)

    def update_treatment_plan(
        self,
        block_id: str,
        treatment_plan: str,
        *,
        now: datetime | None = None,
    ) -> RecordingBlock:
        timestamp = now or datetime.now()
        with self._lock:
            for start, block in self._store.items():
                if block.id == block_id:
                    updated = replace(
                        block,
                        treatment_plan=treatment_plan,
                        treatment_plan_updated_at=timestamp,
                        updated_at=timestamp,
                    )
                    self._store[start] = updated
                    return updated
        logging.error(f"Recording block {block_id} not found for treatment plan update")
        raise BlockNotFoundError(block_id)
