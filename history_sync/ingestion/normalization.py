"""
Event identity and normalization helpers shared by every parser.

Identity follows a content-hash strategy: an event's id is the SHA-256 of
``source|timestamp|actor|content``, so re-ingesting an unchanged export
produces the same ids and the store's key constraint absorbs the repeats.
"""

import hashlib
import logging
import math
from datetime import datetime, timezone, tzinfo
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional, Union

from history_sync.schemas.event import EventSchema, EventSource, format_iso_utc

logger = logging.getLogger(__name__)

# strptime fallbacks tried after ISO-8601, in order
_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",  # git log --date=iso
    "%a %b %d %H:%M:%S %Y %z",  # git log default
    "%a %b %d %H:%M:%S %Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d",
)


def generate_event_id(
    source: Union[EventSource, str], timestamp: str, actor: str, content: str
) -> str:
    """Deterministic identifier for an event tuple."""
    source_value = source.value if isinstance(source, EventSource) else str(source)
    data = f"{source_value}|{timestamp}|{actor}|{content}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def truncate(text: Optional[str], limit: int) -> str:
    """Clamp text to ``limit`` characters."""
    if not text:
        return ""
    return text[:limit]


def to_utc(value: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """
    Convert a datetime to aware UTC.

    Naive values carry no zone of their own and are read in ``tz``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: object, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Parse a free-form timestamp string into aware UTC.

    Accepts ISO-8601 (with ``Z`` or an offset), the formats git log emits,
    and RFC 2822 dates. Returns None when nothing matches.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    iso = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return to_utc(datetime.fromisoformat(iso), tz)
    except (ValueError, OverflowError):
        pass

    for fmt in _DATETIME_FORMATS:
        try:
            return to_utc(datetime.strptime(text, fmt), tz)
        except (ValueError, OverflowError):
            continue

    try:
        return to_utc(parsedate_to_datetime(text), tz)
    except (TypeError, ValueError, IndexError, OverflowError):
        pass

    logger.debug(f"Could not parse timestamp: {value!r}")
    return None


def parse_epoch(value: object) -> Optional[datetime]:
    """Parse epoch seconds (number or numeric string, e.g. Slack ``ts``)."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def make_event(
    *,
    source: EventSource,
    timestamp: datetime,
    actor: Optional[str],
    type: str,
    content: Optional[str],
    limit: int,
    tags: Iterable[str] = (),
    identity_timestamp: Optional[str] = None,
) -> EventSchema:
    """
    Build a canonical event with its content clamped and its id assigned.

    ``identity_timestamp`` overrides the timestamp slot of the id; the raw
    fallback uses it because its timestamp is the ingestion time.
    """
    utc = to_utc(timestamp)
    clean_actor = (actor or "").strip() or "unknown"
    snippet = truncate(content, limit)
    iso = format_iso_utc(utc)
    id_timestamp = iso if identity_timestamp is None else identity_timestamp
    return EventSchema(
        id=generate_event_id(source, id_timestamp, clean_actor, snippet),
        timestamp=utc,
        source=source,
        actor=clean_actor,
        type=type,
        tags=list(tags),
        content_snippet=snippet,
    )
