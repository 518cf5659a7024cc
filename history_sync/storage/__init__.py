"""
Event stores.

The pipeline only needs append-if-absent, a filtered query and clear-all;
``EventStore`` is that contract and the modules here implement it.
"""

from history_sync.storage.base import EventQuery, EventStore
from history_sync.storage.jsonl import JsonLinesEventStore
from history_sync.storage.memory import InMemoryEventStore

__all__ = ["EventQuery", "EventStore", "InMemoryEventStore", "JsonLinesEventStore"]
