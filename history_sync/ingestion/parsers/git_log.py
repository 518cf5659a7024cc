"""
Version-control log parser.

Expects one commit per line, as produced by
``git log --pretty=format:'%h|%an|%aI|%s'``::

    abc1234|Alice|2023-10-01T10:00:00Z|Fix login redirect

Lines that are not pipe-delimited cleanly (a prefix before the hash, extra
spacing) get a second chance through a looser regex.
"""

import logging
import re
from datetime import timezone, tzinfo
from typing import List, Optional

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event, parse_timestamp
from history_sync.schemas.event import EventSchema, EventSource

logger = logging.getLogger(__name__)

_FORMAT = Config.format_config("git")
CONTENT_LIMIT = int(_FORMAT.get("content_limit", 200))
_TAGS = _FORMAT.get("tags", {})
BUGFIX_PATTERN = re.compile(_TAGS.get("bugfix", "fix|bug|bugfix|hotfix"), re.IGNORECASE)
DEFAULT_TAG = _TAGS.get("default", "feature")

COMMIT_LINE_PATTERN = re.compile(
    r"([0-9a-f]{7,40})\s+\|\s*(.+?)\s*\|\s*(.+?)\s*\|\s*(.*)", re.IGNORECASE
)


def classify_commit(message: str) -> List[str]:
    """Heuristic tag for a commit message."""
    return ["bugfix"] if BUGFIX_PATTERN.search(message) else [DEFAULT_TAG]


def _build(author: str, timestamp, message: str) -> EventSchema:
    return make_event(
        source=EventSource.GIT,
        timestamp=timestamp,
        actor=author,
        type="code.commit",
        content=message,
        limit=CONTENT_LIMIT,
        tags=classify_commit(message),
    )


def _parse_pipe_line(line: str, tz: tzinfo) -> Optional[EventSchema]:
    parts = [part.strip() for part in line.split("|")]
    if len(parts) < 3:
        return None
    _revision, author, raw_timestamp = parts[:3]
    # literal pipes inside the message survive the rejoin
    message = "|".join(parts[3:])
    timestamp = parse_timestamp(raw_timestamp, tz)
    if timestamp is None:
        return None
    return _build(author, timestamp, message)


def _parse_regex_line(line: str, tz: tzinfo) -> Optional[EventSchema]:
    match = COMMIT_LINE_PATTERN.search(line)
    if not match:
        return None
    _revision, author, raw_timestamp, message = match.groups()
    timestamp = parse_timestamp(raw_timestamp, tz)
    if timestamp is None:
        return None
    return _build(author, timestamp, message)


def parse_line(line: str, tz: tzinfo = timezone.utc) -> Optional[EventSchema]:
    """Parse a single commit line, or return None if it has neither shape."""
    return _parse_pipe_line(line, tz) or _parse_regex_line(line, tz)


def parse(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """
    Parse a version-control log export.

    Args:
        text: Full document text
        tz: Zone for timestamps that carry no offset

    Returns:
        Commit events in input order; unparseable lines are dropped
    """
    events: List[EventSchema] = []
    skipped = 0
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        event = parse_line(line, tz)
        if event is None:
            skipped += 1
            continue
        events.append(event)

    if skipped:
        logger.debug(f"git parser skipped {skipped} unparseable lines")
    return events
