"""
Ingestion Orchestrator.

Coordinates one upload end to end: size check, decoding, format detection,
parser dispatch, in-batch deduplication and the append-if-absent write to
the event store. The store is injected; the orchestrator holds no global
state and parsers never see it.
"""

import logging
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any, Dict, List, Optional, Tuple

from history_sync.ingestion.decoding import decode_bytes
from history_sync.ingestion.deduplication import EventDeduplicator, ExactMatchDeduplicator
from history_sync.ingestion.errors import (
    EmptyDocumentError,
    IngestionError,
    StoreError,
    UploadTooLargeError,
)
from history_sync.ingestion.jobs import Job, JobQueue
from history_sync.ingestion.parsers import get_parser
from history_sync.ingestion.source_detector import detect_format
from history_sync.monitoring.logging import with_context
from history_sync.schemas.event import EventSchema
from history_sync.storage.base import EventStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@dataclass
class IngestionResult:
    """Outcome of ingesting one document."""

    detected_type: str
    events: List[EventSchema] = field(default_factory=list)
    stored: int = 0
    filename: Optional[str] = None

    @property
    def count(self) -> int:
        """Number of events the document produced."""
        return len(self.events)

    @property
    def duplicates(self) -> int:
        """Events the store already held."""
        return self.count - self.stored

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": "File ingested successfully",
            "count": self.count,
            "stored": self.stored,
            "detected_type": self.detected_type,
        }


class IngestionOrchestrator:
    """
    Turns uploaded exports into stored canonical events.

    Responsibilities:
    - Reject oversized or empty uploads before parsing
    - Decode, detect and dispatch to the matching parser
    - Deduplicate the batch and hand it to the store
    - Run large uploads as background jobs
    """

    def __init__(
        self,
        store: EventStore,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        tz: tzinfo = timezone.utc,
        deduplicator: Optional[EventDeduplicator] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Event store receiving parsed events
            max_upload_bytes: Uploads larger than this are rejected
            tz: Zone for timestamps that carry no offset
            deduplicator: In-batch deduplication strategy
        """
        self.logger = logging.getLogger(f"{__name__}.IngestionOrchestrator")
        self.store = store
        self.max_upload_bytes = max_upload_bytes
        self.tz = tz
        self.deduplicator = deduplicator or ExactMatchDeduplicator()

    @classmethod
    def from_settings(cls, store: EventStore, settings) -> "IngestionOrchestrator":
        """Build an orchestrator configured by ``Settings``."""
        return cls(store, max_upload_bytes=settings.MAX_UPLOAD_BYTES, tz=settings.tzinfo)

    # ========================================================================
    # PARSING
    # ========================================================================

    def parse_document(self, text: str) -> Tuple[List[EventSchema], str]:
        """
        Detect the format of ``text`` and parse it.

        Returns:
            Tuple of (events in document order, detection tag)
        """
        detection = detect_format(text, tz=self.tz)
        if detection.events is not None:
            return detection.events, detection.format.value
        parser = get_parser(detection.format.value)
        return parser(text, tz=self.tz), detection.format.value

    # ========================================================================
    # INGESTION
    # ========================================================================

    def check_size(self, size: int) -> None:
        """Raise UploadTooLargeError when ``size`` is over the limit."""
        if size > self.max_upload_bytes:
            raise UploadTooLargeError(size, self.max_upload_bytes)

    def ingest_bytes(self, data: bytes, filename: Optional[str] = None) -> IngestionResult:
        """
        Ingest a raw uploaded buffer.

        Raises:
            UploadTooLargeError: Buffer exceeds max_upload_bytes
            EmptyDocumentError: Buffer holds no content
            IngestionError: The store rejected the batch as a whole
        """
        self.check_size(len(data))
        return self.ingest_text(decode_bytes(data), filename=filename)

    def ingest_text(self, text: str, filename: Optional[str] = None) -> IngestionResult:
        """Ingest already-decoded document text."""
        if not text.strip():
            raise EmptyDocumentError("Uploaded document is empty")

        events, detected_type = self.parse_document(text)
        log = with_context(self.logger, upload=filename, detected_type=detected_type)
        log.info(f"Parsed {len(events)} events")
        return self.ingest_events(events, detected_type, filename=filename)

    def ingest_events(
        self,
        events: List[EventSchema],
        detected_type: str,
        filename: Optional[str] = None,
    ) -> IngestionResult:
        """Deduplicate and store events produced elsewhere (e.g. GitHub sync)."""
        unique = self.deduplicator.deduplicate(events)
        stored = 0
        if unique:
            try:
                stored = self.store.insert_if_absent(unique)
            except StoreError as e:
                self.logger.error(f"Store write failed for {filename or detected_type}: {e}")
                raise IngestionError(f"Failed to store events: {e}") from e

        if stored < len(unique):
            self.logger.info(f"{len(unique) - stored} events were already stored")
        return IngestionResult(
            detected_type=detected_type,
            events=unique,
            stored=stored,
            filename=filename,
        )

    def submit(self, data: bytes, jobs: JobQueue, filename: Optional[str] = None) -> Job:
        """
        Ingest ``data`` as a background job.

        The size limit is enforced before the job is created. The completed
        job's result is ``IngestionResult.to_dict()``.
        """
        self.check_size(len(data))
        return jobs.submit(self._ingest_for_job, data, filename)

    def _ingest_for_job(self, data: bytes, filename: Optional[str]) -> Dict[str, Any]:
        return self.ingest_bytes(data, filename=filename).to_dict()
