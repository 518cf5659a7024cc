"""
Per-format parsers.

Every parser is a pure function ``parse(text, *, tz) -> list[EventSchema]``
that never raises for malformed input. ``PARSERS`` maps detection tags to
the parser that handles them.
"""

from typing import Callable, Dict, List

from history_sync.ingestion.parsers import chat_json, git_log, github_events, ics, raw, whatsapp
from history_sync.schemas.event import EventSchema

Parser = Callable[..., List[EventSchema]]

PARSERS: Dict[str, Parser] = {
    "telegram": chat_json.parse_telegram,
    "slack": chat_json.parse_slack,
    "discord": chat_json.parse_discord,
    "github": github_events.parse,
    "calendar": ics.parse,
    "whatsapp": whatsapp.parse,
    "whatsapp_fallback": whatsapp.parse,
    "git": git_log.parse,
    "git_fallback": git_log.parse,
    "raw": raw.parse,
}


def get_parser(detected_type: str) -> Parser:
    """Parser for a detection tag; unknown tags get the raw fallback."""
    return PARSERS.get(detected_type, raw.parse)


__all__ = ["PARSERS", "Parser", "get_parser"]
