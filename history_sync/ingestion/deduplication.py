"""
Module for in-batch event deduplication.

The store's key constraint already keeps repeated ids out across uploads.
Deduplicating the batch first means a document that contains the same
message twice is counted once in the ingestion result as well.
"""

from abc import ABC, abstractmethod
from typing import List

from history_sync.schemas.event import EventSchema


class EventDeduplicator(ABC):
    """
    Abstract base for deduplication strategies
    """

    @abstractmethod
    def deduplicate(self, events: List[EventSchema]) -> List[EventSchema]:
        """
        Deduplicate events and return unique set
        """
        pass


class ExactMatchDeduplicator(EventDeduplicator):
    """
    Match by content-derived event id
    """

    def deduplicate(self, events: List[EventSchema]) -> List[EventSchema]:
        """
        Returns:
            List of unique events (first occurrence kept, order preserved)
        """
        seen = set()
        unique_events = []

        for event in events:
            if event.id not in seen:
                seen.add(event.id)
                unique_events.append(event)

        return unique_events
