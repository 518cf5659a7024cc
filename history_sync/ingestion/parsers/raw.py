"""
Raw fallback for documents no other parser recognizes.

The whole upload becomes one ``unknown`` event so nothing is silently lost.
"""

from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event
from history_sync.schemas.event import EventSchema, EventSource

_FORMAT = Config.format_config("raw")
CONTENT_LIMIT = int(_FORMAT.get("content_limit", 1000))
RAW_ACTOR = _FORMAT.get("actor", "uploader")


def parse(
    text: str, *, tz: tzinfo = timezone.utc, now: Optional[datetime] = None
) -> List[EventSchema]:
    """
    Wrap the first characters of ``text`` as a single raw event.

    The event is stamped with the ingestion time. Its id leaves the
    timestamp out, so uploading the same document twice yields one event.
    Blank text yields no event.
    """
    if not text.strip():
        return []
    return [
        make_event(
            source=EventSource.UNKNOWN,
            timestamp=now or datetime.now(timezone.utc),
            actor=RAW_ACTOR,
            type="raw",
            content=text,
            limit=CONTENT_LIMIT,
            identity_timestamp="",
        )
    ]
