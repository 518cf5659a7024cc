"""
Calendar (ICS) parser.

Only the handful of VEVENT properties the timeline needs are read, with
line-anchored regexes instead of a full iCalendar implementation. Date-time
values are sliced by fixed width so that parsing does not depend on locale.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event
from history_sync.schemas.event import EventSchema, EventSource

logger = logging.getLogger(__name__)

_FORMAT = Config.format_config("calendar")
CONTENT_LIMIT = int(_FORMAT.get("content_limit", 300))
CALENDAR_ACTOR = _FORMAT.get("actor", "me")
CALENDAR_TAGS = list(_FORMAT.get("tags", ["meeting"]))

_VEVENT_SPLIT = re.compile(r"BEGIN:VEVENT", re.IGNORECASE)
_DTSTART = re.compile(r"^DTSTART((?:;[^:\r\n]*)?):(\S+)", re.IGNORECASE | re.MULTILINE)
_SUMMARY = re.compile(r"^SUMMARY(?:;[^:\r\n]*)?:(.*)$", re.IGNORECASE | re.MULTILINE)
_DESCRIPTION = re.compile(r"^DESCRIPTION(?:;[^:\r\n]*)?:(.*)$", re.IGNORECASE | re.MULTILINE)
_TZID = re.compile(r";TZID=([^;:]+)", re.IGNORECASE)
# RFC 5545 folds long lines with CRLF followed by a space or tab
_FOLDED_LINE = re.compile(r"\r?\n[ \t]")


def unfold(text: str) -> str:
    """Undo RFC 5545 line folding."""
    return _FOLDED_LINE.sub("", text)


def _zone(params: str) -> tzinfo:
    match = _TZID.search(params or "")
    if not match:
        return timezone.utc
    try:
        return ZoneInfo(match.group(1).strip().strip('"'))
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug(f"ics: unknown TZID {match.group(1)!r}, using UTC")
        return timezone.utc


def parse_ics_datetime(value: str, params: str = "") -> Optional[datetime]:
    """
    Parse a DTSTART value.

    ``YYYYMMDD`` is an all-day date at UTC midnight. ``YYYYMMDDTHHMMSSZ``
    is an exact UTC instant; without the ``Z`` a known ``TZID`` parameter
    is honored, otherwise the value is read as UTC.
    """
    raw = value.strip()
    try:
        if len(raw) == 8 and raw.isdigit():
            return datetime(int(raw[0:4]), int(raw[4:6]), int(raw[6:8]), tzinfo=timezone.utc)

        is_utc = raw.upper().endswith("Z")
        digits = raw.upper().replace("T", "").replace("Z", "")
        if len(digits) < 14 or not digits[:14].isdigit():
            return None
        zone = timezone.utc if is_utc else _zone(params)
        local = datetime(
            int(digits[0:4]),
            int(digits[4:6]),
            int(digits[6:8]),
            int(digits[8:10]),
            int(digits[10:12]),
            int(digits[12:14]),
            tzinfo=zone,
        )
        return local.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _field(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    return match.group(1).strip() if match else None


def parse(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """
    Parse the VEVENT blocks of a calendar file.

    Args:
        text: Full ICS document
        tz: Unused; ICS values carry their own zone information

    Returns:
        One calendar event per VEVENT with a usable DTSTART
    """
    events: List[EventSchema] = []
    blocks = _VEVENT_SPLIT.split(unfold(text))[1:]

    for block in blocks:
        dtstart = _DTSTART.search(block)
        if not dtstart:
            continue
        params, value = dtstart.groups()
        timestamp = parse_ics_datetime(value, params)
        if timestamp is None:
            logger.debug(f"ics: skipping VEVENT with bad DTSTART {value!r}")
            continue

        summary = _field(_SUMMARY, block) or "Untitled Event"
        description = _field(_DESCRIPTION, block) or ""
        events.append(
            make_event(
                source=EventSource.CALENDAR,
                timestamp=timestamp,
                actor=CALENDAR_ACTOR,
                type="calendar.event",
                content=f"{summary} - {description}",
                limit=CONTENT_LIMIT,
                tags=CALENDAR_TAGS,
            )
        )
    return events
