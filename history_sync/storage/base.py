"""
Base Event Store.

Abstract interface every persistence backend implements. Stores own write
serialization; the ingestion pipeline calls them without locking.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from history_sync.schemas.event import EventSchema, EventSource


@dataclass(frozen=True)
class EventQuery:
    """Filters for reading events back out of a store."""

    since: Optional[datetime] = None
    until: Optional[datetime] = None
    source: Optional[Union[EventSource, str]] = None
    actor: Optional[str] = None
    tag: Optional[str] = None

    @property
    def source_value(self) -> Optional[str]:
        if self.source is None:
            return None
        return self.source.value if isinstance(self.source, EventSource) else str(self.source)

    def matches(self, event: EventSchema) -> bool:
        """Whether an event passes every filter that is set."""
        if self.since is not None and event.timestamp < self.since:
            return False
        if self.until is not None and event.timestamp >= self.until:
            return False
        if self.source is not None and event.source.value != self.source_value:
            return False
        if self.actor is not None and event.actor != self.actor:
            return False
        if self.tag is not None and self.tag not in event.tags:
            return False
        return True


def newest_first(events: Iterable[EventSchema]) -> List[EventSchema]:
    """Sort by timestamp, most recent first (stable for equal instants)."""
    return sorted(events, key=lambda e: e.timestamp, reverse=True)


class EventStore(ABC):
    """
    Abstract base class for event stores.

    Subclasses must implement:
        - insert_if_absent(): append events whose id is not stored yet
        - query(): read events matching an EventQuery
        - count(): number of stored events
        - clear(): remove every event
    """

    @abstractmethod
    def insert_if_absent(self, events: List[EventSchema]) -> int:
        """
        Store events whose id is not present yet.

        Ids already stored are skipped silently; that is the expected
        outcome of re-ingesting a file, not an error.

        Returns:
            Number of events actually inserted

        Raises:
            StoreError: If the write failed as a whole
        """
        pass

    @abstractmethod
    def query(self, query: Optional[EventQuery] = None) -> List[EventSchema]:
        """Events matching ``query``, newest first."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored events."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """
        Irreversibly delete every event.

        Returns:
            Number of events removed
        """
        pass

    def close(self) -> None:
        """
        Release any resources held by the store.

        Override in subclasses that hold connections.
        """
        pass

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
