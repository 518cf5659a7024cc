"""
Shared pytest fixtures for the History Sync test suite.

Provides reusable fixtures for creating EventSchema test objects and wiring
the ingestion pipeline to an in-memory store.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

import pytest

from history_sync.ingestion.normalization import make_event
from history_sync.ingestion.orchestrator import IngestionOrchestrator
from history_sync.schemas.event import EventSchema, EventSource
from history_sync.storage.memory import InMemoryEventStore


@pytest.fixture
def create_event():
    """
    Return a function that creates EventSchema objects with sensible defaults.

    Example:
        event = create_event(actor="Alice", content="Fix login")
    """

    def _create_event(
        content: str = "Test message",
        actor: str = "Alice",
        timestamp: Optional[datetime] = None,
        source: EventSource = EventSource.WHATSAPP,
        type: str = "chat.message",
        tags: Iterable[str] = (),
        limit: int = 300,
    ) -> EventSchema:
        if timestamp is None:
            timestamp = datetime(2024, 6, 15, 20, 0, tzinfo=timezone.utc)
        return make_event(
            source=source,
            timestamp=timestamp,
            actor=actor,
            type=type,
            content=content,
            limit=limit,
            tags=tags,
        )

    return _create_event


@pytest.fixture
def sample_event(create_event):
    """Return a single default test event."""
    return create_event()


@pytest.fixture
def sample_events(create_event):
    """
    Return a list of varied test events.

    Contains 4 unique events from different actors and sources.
    """
    return [
        create_event(
            content="Fix null pointer in parser",
            actor="Alice",
            source=EventSource.GIT,
            type="code.commit",
            tags=["bugfix"],
            timestamp=datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc),
        ),
        create_event(
            content="Exam revision tonight?",
            actor="Bob",
            tags=["study"],
            timestamp=datetime(2024, 6, 15, 21, 5, tzinfo=timezone.utc),
        ),
        create_event(
            content="Standup - daily sync",
            actor="me",
            source=EventSource.CALENDAR,
            type="calendar.event",
            tags=["meeting"],
            timestamp=datetime(2024, 6, 14, 10, 0, tzinfo=timezone.utc),
        ),
        create_event(
            content="Sounds good",
            actor="Alice",
            source=EventSource.SLACK,
            timestamp=datetime(2024, 6, 13, 16, 45, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def memory_store():
    """Empty in-memory event store."""
    return InMemoryEventStore()


@pytest.fixture
def orchestrator(memory_store):
    """Orchestrator writing to ``memory_store``."""
    return IngestionOrchestrator(memory_store)
