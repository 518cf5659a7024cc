"""
Chat-export parser for WhatsApp-style text transcripts.

Each message starts with a header line::

    12/05/2023, 21:03 - Alice: Message text
    5/12/23, 9:03 PM - Bob: Another message

Any other line continues the message above it. Messages are assembled with
an explicit fold over the lines: the accumulator is the currently open
message (or None) and a message is only turned into an event, and therefore
only identified, once all of its lines have been seen.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone, tzinfo
from typing import List, Optional, Tuple

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event, to_utc
from history_sync.schemas.event import EventSchema, EventSource

logger = logging.getLogger(__name__)

_FORMAT = Config.format_config("whatsapp")
CONTENT_LIMIT = int(_FORMAT.get("content_limit", 300))
CONTINUATION_LIMIT = int(_FORMAT.get("continuation_limit", 200))
STUDY_PATTERN = re.compile(
    _FORMAT.get("tags", {}).get("study", "study|session|exam|revision|homework"),
    re.IGNORECASE,
)

HEADER_PATTERN = re.compile(
    r"^(\d{1,2}/\d{1,2}/\d{2,4}),?\s+(\d{1,2}:\d{2}(?:\s?[APMapm]{2})?)\s+-\s+([^:]+):\s+(.*)$"
)
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s*([APap][Mm])?$")


@dataclass(frozen=True)
class _OpenMessage:
    """A message whose continuation lines may still follow."""

    timestamp: datetime
    sender: str
    lines: Tuple[str, ...]

    def extend(self, line: str) -> "_OpenMessage":
        return replace(self, lines=self.lines + (line[:CONTINUATION_LIMIT],))

    @property
    def text(self) -> str:
        return " ".join(self.lines)


def _expand_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        return 2000 + year if year < 50 else 1900 + year
    return year


def _parse_time(raw: str) -> Optional[time]:
    match = _TIME_PATTERN.match(raw.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    meridiem = (match.group(3) or "").upper()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "PM" else 0)
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def parse_datetime(
    date_part: str, time_part: str, tz: tzinfo = timezone.utc
) -> Optional[datetime]:
    """
    Resolve a header's date and time.

    The literal order (month first, as US exports write it) is tried before
    the day/month swap, which covers the other locale ordering.
    """
    clock = _parse_time(time_part)
    if clock is None:
        return None
    first, second, year_raw = date_part.split("/")
    year = _expand_year(year_raw)
    for month, day in ((int(first), int(second)), (int(second), int(first))):
        try:
            day_value = date(year, month, day)
        except ValueError:
            continue
        try:
            return to_utc(datetime.combine(day_value, clock), tz)
        except OverflowError:
            return None
    return None


def _finish(message: _OpenMessage) -> EventSchema:
    text = message.text
    return make_event(
        source=EventSource.WHATSAPP,
        timestamp=message.timestamp,
        actor=message.sender,
        type="chat.message",
        content=text,
        limit=CONTENT_LIMIT,
        tags=["study"] if STUDY_PATTERN.search(text) else [],
    )


def parse(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """
    Parse a WhatsApp-style chat export.

    Args:
        text: Full document text
        tz: Zone the export's wall-clock times are written in

    Returns:
        One event per message, multi-line messages reassembled
    """
    events: List[EventSchema] = []
    current: Optional[_OpenMessage] = None
    dropped = 0

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        header = HEADER_PATTERN.match(line)
        if header is None:
            if current is not None:
                current = current.extend(line)
            else:
                dropped += 1
            continue

        if current is not None:
            events.append(_finish(current))
            current = None

        date_part, time_part, sender, message = header.groups()
        timestamp = parse_datetime(date_part, time_part, tz)
        if timestamp is None:
            dropped += 1
            continue
        current = _OpenMessage(
            timestamp=timestamp,
            sender=sender.strip(),
            lines=(message[:CONTENT_LIMIT],),
        )

    if current is not None:
        events.append(_finish(current))

    if dropped:
        logger.debug(f"whatsapp parser dropped {dropped} lines")
    return events
