"""
JSON-lines file store.

One event per line, appended as ingested. Backs the command-line tool, where
no database is configured.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from history_sync.ingestion.errors import StoreError
from history_sync.schemas.event import EventSchema
from history_sync.storage.base import EventQuery, EventStore, newest_first

logger = logging.getLogger(__name__)


class JsonLinesEventStore(EventStore):
    """Append-only ``.jsonl`` file keyed by event id."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, EventSchema]:
        events: Dict[str, EventSchema] = {}
        if not self.path.exists():
            return events
        try:
            with self.path.open("r", encoding="utf-8") as f:
                for line_number, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        event = EventSchema.model_validate_json(line)
                    except ValidationError:
                        logger.warning(f"Skipping corrupt line {line_number} in {self.path}")
                        continue
                    events.setdefault(event.id, event)
        except OSError as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        return events

    def insert_if_absent(self, events: List[EventSchema]) -> int:
        with self._lock:
            existing = self._load()
            fresh = []
            for event in events:
                if event.id in existing:
                    continue
                existing[event.id] = event
                fresh.append(event)
            if not fresh:
                return 0
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    for event in fresh:
                        f.write(json.dumps(event.to_dict(), ensure_ascii=False) + "\n")
            except OSError as e:
                raise StoreError(f"Failed to write {self.path}: {e}") from e
        return len(fresh)

    def query(self, query: Optional[EventQuery] = None) -> List[EventSchema]:
        query = query or EventQuery()
        with self._lock:
            events = self._load()
        return newest_first(e for e in events.values() if query.matches(e))

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def clear(self) -> int:
        with self._lock:
            removed = len(self._load())
            try:
                if self.path.exists():
                    self.path.unlink()
            except OSError as e:
                raise StoreError(f"Failed to clear {self.path}: {e}") from e
        return removed
