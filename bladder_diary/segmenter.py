"""Recording-block segmentation of a diary event stream."""
from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Sequence

from .block_store import BlockStore
from .engine import PatternEngine
from .features import compute_stats
from .models import (
    BLOCK_DAY_WINDOW,
    Audience,
    BlockStatus,
    DayWindow,
    DiaryEvent,
    PatternContext,
    RecordingBlock,
)

BLOCK_DURATION_HOURS = 72


@dataclass
class _BlockWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


class RecordingBlockSegmenter:
    """Partitions events into fixed-duration recording blocks.

    A block opens at local midnight of the first event that no existing
    window contains. Windows already present in the block store are reused,
    so segmenting a superset of earlier events never moves a boundary.

    A window opened before an already stored block ends at that block's
    start, so a backfilled block can be shorter than ``block_duration_hours``.

    ``segment`` expects the full event snapshot. A stored block that receives
    no events is recomputed as empty, which clears stats and findings left
    behind by deleted or moved events. The window itself is kept.
    """

    def __init__(
        self,
        store: BlockStore | None = None,
        *,
        pattern_engine: PatternEngine | None = None,
        block_duration_hours: float = BLOCK_DURATION_HOURS,
        day_window: DayWindow = BLOCK_DAY_WINDOW,
        pattern_context: PatternContext | None = None,
    ) -> None:
        if block_duration_hours < 24:
            raise ValueError("block_duration_hours must be at least 24")
        self._store = store
        self._engine = pattern_engine or PatternEngine()
        self._duration = timedelta(hours=block_duration_hours)
        self._day_window = day_window
        self._context = pattern_context or PatternContext(audience=Audience.CLINICIAN)

    def segment(self, events: Sequence[DiaryEvent], *, now: datetime | None = None) -> list[RecordingBlock]:
        """Assign events to blocks, recompute each touched block and persist it."""

        if not events:
            return []
        now = now or datetime.now()

        windows = self._existing_windows()
        assignments: dict[datetime, list[DiaryEvent]] = {}
        for event in sorted(events, key=lambda item: item.sort_key):
            window = _find_window(windows, event.timestamp)
            if window is None:
                window = self._open_window(windows, event)
            assignments.setdefault(window.start, []).append(event)

        blocks: list[RecordingBlock] = []
        for window in windows:
            block_events = assignments.get(window.start, [])
            block = self._build_block(window, block_events, now)
            if not block_events and self._nothing_to_clear(block):
                continue
            blocks.append(self._persist(block))

        logging.info(f"Segmented {len(events)} events into {len(blocks)} recording blocks")
        return blocks

    def _existing_windows(self) -> list[_BlockWindow]:
        if self._store is None:
            return []
        windows = [_BlockWindow(block.start, block.end) for block in self._store.list_blocks()]
        windows.sort(key=lambda window: window.start)
        return windows

    def _open_window(self, windows: list[_BlockWindow], event: DiaryEvent) -> _BlockWindow:
        start = datetime.combine(event.occurred_on, time.min)
        for window in windows:
            if window.contains(start):
                start = window.end
        end = start + self._duration
        starts = [window.start for window in windows]
        index = bisect.bisect_right(starts, start)
        if index < len(windows) and windows[index].start < end:
            # Backfilled window: stop at the next block rather than overlap it.
            end = windows[index].start
        window = _BlockWindow(start, end)
        windows.insert(index, window)
        return window

    def _build_block(self, window: _BlockWindow, events: Sequence[DiaryEvent], now: datetime) -> RecordingBlock:
        stats = compute_stats(events, self._day_window)
        patterns = self._engine.evaluate(events, stats, self._context)
        return RecordingBlock(
            start=window.start,
            end=window.end,
            status=BlockStatus.COMPLETE if now >= window.end else BlockStatus.INCOMPLETE,
            stats=stats,
            clinical_patterns=tuple(patterns),
            overall_assessment=patterns[0].name if patterns else None,
        )

    def _nothing_to_clear(self, block: RecordingBlock) -> bool:
        existing = self._store.get(block.start) if self._store is not None else None
        return existing is None or _unchanged(existing, block)

    def _persist(self, block: RecordingBlock) -> RecordingBlock:
        if self._store is None:
            return block
        existing = self._store.get(block.start)
        if existing is not None and _unchanged(existing, block):
            return existing
        return self._store.upsert(block)


def _find_window(windows: Sequence[_BlockWindow], moment: datetime) -> _BlockWindow | None:
    for window in windows:
        if window.contains(moment):
            return window
    return None


def _unchanged(existing: RecordingBlock, block: RecordingBlock) -> bool:
    return (
        existing.status is block.status
        and existing.stats == block.stats
        and tuple(existing.clinical_patterns) == tuple(block.clinical_patterns)
    )


def segment_events(
    events: Sequence[DiaryEvent],
    block_duration_hours: float = BLOCK_DURATION_HOURS,
    *,
    now: datetime | None = None,
) -> list[RecordingBlock]:
    """Segment events without persistence."""

    return RecordingBlockSegmenter(block_duration_hours=block_duration_hours).segment(events, now=now)
