"""In-process event store, used by default and in tests."""

import threading
from typing import Dict, List, Optional

from history_sync.schemas.event import EventSchema
from history_sync.storage.base import EventQuery, EventStore, newest_first


class InMemoryEventStore(EventStore):
    """Dictionary keyed by event id; insertion order is kept."""

    def __init__(self) -> None:
        self._events: Dict[str, EventSchema] = {}
        self._lock = threading.Lock()

    def insert_if_absent(self, events: List[EventSchema]) -> int:
        inserted = 0
        with self._lock:
            for event in events:
                if event.id in self._events:
                    continue
                self._events[event.id] = event
                inserted += 1
        return inserted

    def query(self, query: Optional[EventQuery] = None) -> List[EventSchema]:
        query = query or EventQuery()
        with self._lock:
            snapshot = list(self._events.values())
        return newest_first(e for e in snapshot if query.matches(e))

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._events)
            self._events.clear()
        return removed
