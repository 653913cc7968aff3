"""Event store contract and an in-memory implementation with change feeds."""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date
from threading import Lock
from typing import Any, Callable, Iterable, Iterator, Optional, Protocol, Sequence

from .models import DiaryEvent, EventKind, derive_leakage_weight

EventCallback = Callable[[DiaryEvent], None]

_SORT_KEYS: dict[str, Callable[[DiaryEvent], Any]] = {
    "date": lambda event: event.sort_key,
    "time": lambda event: event.occurred_at,
    "event_type": lambda event: event.kind.value,
}


class EventNotFoundError(LookupError):
    """Raised when an event id does not exist in the store."""


@dataclass(frozen=True)
class EntryFilters:
    """Filter and ordering options for fetching events."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    kinds: Optional[Sequence[EventKind]] = None
    sort_by: str = "date"
    sort_order: str = "desc"

    def matches(self, event: DiaryEvent) -> bool:
        if self.start_date is not None and event.occurred_on < self.start_date:
            return False
        if self.end_date is not None and event.occurred_on > self.end_date:
            return False
        if self.kinds and event.kind not in self.kinds:
            return False
        return True


@dataclass
class _Subscription:
    on_insert: Optional[EventCallback]
    on_update: Optional[EventCallback]
    on_delete: Optional[EventCallback]


class EventStore(Protocol):
    """Read/write access to a patient's diary events."""

    def fetch(self, filters: EntryFilters | None = None) -> list[DiaryEvent]:
        ...

    def insert(self, event: DiaryEvent) -> DiaryEvent:
        ...

    def insert_many(self, events: Iterable[DiaryEvent]) -> list[DiaryEvent]:
        ...

    def update(self, event_id: str, **changes: Any) -> DiaryEvent:
        ...

    def delete(self, event_id: str) -> None:
        ...


class InMemoryEventStore:
    """Holds events in memory and notifies subscribers of every change."""

    def __init__(self, events: Iterable[DiaryEvent] = ()) -> None:
        self._events: dict[str, DiaryEvent] = {event.id: event for event in events}
        self._subscriptions: list[_Subscription] = []
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._events)

    def fetch(self, filters: EntryFilters | None = None) -> list[DiaryEvent]:
        filters = filters or EntryFilters()
        key = _SORT_KEYS.get(filters.sort_by)
        if key is None:
            raise ValueError(f"Unsupported sort field: {filters.sort_by}")
        selected = [event for event in self._events.values() if filters.matches(event)]
        return sorted(selected, key=key, reverse=filters.sort_order == "desc")

    def get(self, event_id: str) -> DiaryEvent:
        try:
            return self._events[event_id]
        except KeyError:
            raise EventNotFoundError(event_id) from None

    def insert(self, event: DiaryEvent) -> DiaryEvent:
        return self.insert_many([event])[0]

    def insert_many(self, events: Iterable[DiaryEvent]) -> list[DiaryEvent]:
        """Persist events, assigning fresh ids, and return the stored rows."""

        with self._lock:
            stored = [replace(event, id=str(uuid.uuid4())) for event in events]
            for event in stored:
                self._events[event.id] = event
        logging.info(f"Inserted {len(stored)} diary event(s)")
        for event in stored:
            self._notify("on_insert", event)
        return stored

    def update(self, event_id: str, **changes: Any) -> DiaryEvent:
        with self._lock:
            current = self.get(event_id)
            if "id" in changes:
                raise ValueError("Event id cannot be changed")
            if "dry_pad_weight_g" in changes or "wet_pad_weight_g" in changes:
                # Re-derive the measured weight from the edited pads.
                dry = changes.get("dry_pad_weight_g", current.dry_pad_weight_g)
                wet = changes.get("wet_pad_weight_g", current.wet_pad_weight_g)
                measured = derive_leakage_weight(dry, wet)
                changes["leakage_weight_g"] = measured if measured is not None else changes.get("leakage_weight_g")
            updated = replace(current, **changes)
            self._events[event_id] = updated
        logging.info(f"Updated diary event {event_id}")
        self._notify("on_update", updated)
        return updated

    def delete(self, event_id: str) -> None:
        with self._lock:
            removed = self._events.pop(event_id, None)
        if removed is None:
            logging.error(f"Delete failed, diary event {event_id} not found")
            raise EventNotFoundError(event_id)
        logging.info(f"Deleted diary event {event_id}")
        self._notify("on_delete", removed)

    def delete_all(self) -> int:
        with self._lock:
            removed = list(self._events.values())
            self._events.clear()
        for event in removed:
            self._notify("on_delete", event)
        logging.info(f"Deleted {len(removed)} diary event(s)")
        return len(removed)

    @contextmanager
    def subscribe(
        self,
        on_insert: EventCallback | None = None,
        on_update: EventCallback | None = None,
        on_delete: EventCallback | None = None,
    ) -> Iterator[None]:
        """Receive change notifications for the duration of the ``with`` block."""

        subscription = _Subscription(on_insert, on_update, on_delete)
        self._subscriptions.append(subscription)
        try:
            yield
        finally:
            self._subscriptions.remove(subscription)

    def _notify(self, kind: str, event: DiaryEvent) -> None:
        for subscription in list(self._subscriptions):
            callback = getattr(subscription, kind)
            if callback is not None:
                callback(event)
