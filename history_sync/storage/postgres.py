"""
PostgreSQL event store.

Persists canonical events into a single ``activity_events`` table. The
primary key on ``id`` enforces at-most-once persistence: batches are written
with ``ON CONFLICT (id) DO NOTHING`` so re-ingested events are skipped by
the database instead of failing the batch.
"""

import logging
from typing import List, Optional

import psycopg2
from psycopg2.extras import Json, execute_values

from history_sync.ingestion.errors import StoreError
from history_sync.schemas.event import EventAnalysis, EventSchema, EventSource
from history_sync.storage.base import EventQuery, EventStore

logger = logging.getLogger(__name__)

_COLUMNS = "id, timestamp, source, actor, type, tags, content_snippet, analysis"


class PostgresEventStore(EventStore):
    """
    Handles persisting canonical events to PostgreSQL.

    The connection is injected; the store commits or rolls back each
    operation but never opens connections itself.
    """

    def __init__(self, db_connection, table: str = "activity_events") -> None:
        """Initialize with an active psycopg2 connection."""
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table!r}")
        self.conn = db_connection
        self.table = table

    @classmethod
    def from_settings(cls, settings) -> "PostgresEventStore":
        """Open a connection using ``Settings.get_psycopg2_params()``."""
        conn = psycopg2.connect(**settings.get_psycopg2_params())
        store = cls(conn, table=settings.EVENTS_TABLE)
        store.ensure_schema()
        return store

    def ensure_schema(self) -> None:
        """Create the events table and its timestamp index if missing."""
        self._execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id TEXT PRIMARY KEY,
                timestamp TIMESTAMPTZ NOT NULL,
                source TEXT NOT NULL,
                actor TEXT NOT NULL DEFAULT 'unknown',
                type TEXT NOT NULL,
                tags TEXT[] NOT NULL DEFAULT '{{}}',
                content_snippet TEXT NOT NULL DEFAULT '',
                analysis JSONB,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            CREATE INDEX IF NOT EXISTS {self.table}_timestamp_idx
                ON {self.table} (timestamp DESC);
            """
        )

    def _execute(self, sql: str, params=None) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Database error: {e}") from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_if_absent(self, events: List[EventSchema]) -> int:
        if not events:
            return 0
        rows = [
            (
                e.id,
                e.timestamp,
                e.source.value,
                e.actor,
                e.type,
                list(e.tags),
                e.content_snippet,
                Json(e.analysis.model_dump(exclude_none=True)) if e.analysis else None,
            )
            for e in events
        ]
        try:
            with self.conn.cursor() as cur:
                inserted = execute_values(
                    cur,
                    f"INSERT INTO {self.table} ({_COLUMNS}) VALUES %s "
                    "ON CONFLICT (id) DO NOTHING RETURNING id",
                    rows,
                    fetch=True,
                )
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to persist batch of {len(events)} events: {e}")
            raise StoreError(f"Failed to persist events: {e}") from e

        count = len(inserted or [])
        if count < len(events):
            logger.debug(f"Skipped {len(events) - count} events already stored")
        return count

    def clear(self) -> int:
        try:
            with self.conn.cursor() as cur:
                cur.execute(f"DELETE FROM {self.table}")
                removed = cur.rowcount
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Failed to clear events: {e}") from e
        return max(removed or 0, 0)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self, query: Optional[EventQuery] = None) -> List[EventSchema]:
        query = query or EventQuery()
        clauses = []
        params: list = []
        if query.since is not None:
            clauses.append("timestamp >= %s")
            params.append(query.since)
        if query.until is not None:
            clauses.append("timestamp < %s")
            params.append(query.until)
        if query.source is not None:
            clauses.append("source = %s")
            params.append(query.source_value)
        if query.actor is not None:
            clauses.append("actor = %s")
            params.append(query.actor)
        if query.tag is not None:
            clauses.append("%s = ANY(tags)")
            params.append(query.tag)

        sql = f"SELECT {_COLUMNS} FROM {self.table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY timestamp DESC"

        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Failed to query events: {e}") from e
        return [self._row_to_event(row) for row in rows]

    def count(self) -> int:
        try:
            with self.conn.cursor() as cur:
                cur.execute(f"SELECT COUNT(*) FROM {self.table}")
                (total,) = cur.fetchone()
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Failed to count events: {e}") from e
        return int(total)

    def close(self) -> None:
        self.conn.close()

    @staticmethod
    def _row_to_event(row) -> EventSchema:
        event_id, timestamp, source, actor, event_type, tags, content, analysis = row
        return EventSchema(
            id=event_id,
            timestamp=timestamp,
            source=EventSource(source),
            actor=actor,
            type=event_type,
            tags=list(tags or []),
            content_snippet=content or "",
            analysis=EventAnalysis(**analysis) if analysis else None,
        )
