"""
Parsers for JSON chat exports.

Three shapes are supported:

- Slack channel export: a list of ``{ts, user, text, user_profile}`` objects
- DiscordChatExporter: a list, or ``{messages: [...]}``, of
  ``{timestamp, author, content}`` objects
- Telegram Desktop ``result.json``: ``{name, messages: [...]}`` where a
  message's ``text`` is a string or a list of string/entity segments

Each parser needs the whole document to be valid JSON and returns an empty
list otherwise. Records are validated one at a time; a bad record is
skipped without affecting the rest of the batch. No heuristic tags are
applied to chat JSON.
"""

import json
import logging
from datetime import timezone, tzinfo
from typing import Any, Iterable, List, Optional

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event, parse_epoch, parse_timestamp
from history_sync.schemas.event import EventSchema, EventSource

logger = logging.getLogger(__name__)

SLACK_CONTENT_LIMIT = Config.content_limit("slack")
DISCORD_CONTENT_LIMIT = Config.content_limit("discord")
TELEGRAM_CONTENT_LIMIT = Config.content_limit("telegram")


def load_json(text: str) -> Optional[Any]:
    """Decode a JSON document, returning None when it is not valid JSON."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def message_list(payload: Any) -> Optional[list]:
    """Messages of a top-level list or of an object's ``messages`` list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("messages"), list):
        return payload["messages"]
    return None


def _records(items: Iterable[Any]) -> Iterable[dict]:
    return (item for item in items if isinstance(item, dict))


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _first_name(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if isinstance(candidate, (str, int)) and not isinstance(candidate, bool):
            name = str(candidate).strip()
            if name:
                return name
    return None


# ============================================================================
# SLACK
# ============================================================================


def parse_slack(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """Parse a Slack channel export (epoch-second ``ts`` values)."""
    payload = load_json(text)
    if not isinstance(payload, list):
        return []

    events: List[EventSchema] = []
    for msg in _records(payload):
        if not msg.get("ts") or not msg.get("user"):
            continue
        timestamp = parse_epoch(msg["ts"])
        if timestamp is None:
            logger.debug(f"slack: skipping message with bad ts {msg.get('ts')!r}")
            continue
        profile = msg.get("user_profile")
        real_name = profile.get("real_name") if isinstance(profile, dict) else None
        events.append(
            make_event(
                source=EventSource.SLACK,
                timestamp=timestamp,
                actor=_first_name(real_name, msg.get("user")),
                type="chat.message",
                content=_text(msg.get("text")),
                limit=SLACK_CONTENT_LIMIT,
            )
        )
    return events


# ============================================================================
# DISCORD
# ============================================================================


def _discord_author(author: Any) -> Optional[str]:
    if isinstance(author, dict):
        return _first_name(
            author.get("nickname"),
            author.get("name"),
            author.get("username"),
            author.get("id"),
        )
    return _first_name(author)


def parse_discord(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """Parse a DiscordChatExporter JSON export."""
    messages = message_list(load_json(text))
    if messages is None:
        return []

    events: List[EventSchema] = []
    for msg in _records(messages):
        raw_timestamp = msg.get("timestamp") or msg.get("date")
        if not raw_timestamp or not msg.get("author"):
            continue
        timestamp = parse_timestamp(raw_timestamp, tz)
        if timestamp is None:
            logger.debug(f"discord: skipping message with bad timestamp {raw_timestamp!r}")
            continue
        events.append(
            make_event(
                source=EventSource.DISCORD,
                timestamp=timestamp,
                actor=_discord_author(msg["author"]),
                type="chat.message",
                content=_text(msg.get("content")),
                limit=DISCORD_CONTENT_LIMIT,
            )
        )
    return events


# ============================================================================
# TELEGRAM
# ============================================================================


def flatten_telegram_text(value: Any) -> str:
    """Join Telegram's text segments (plain strings and ``{text}`` entities)."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for segment in value:
            if isinstance(segment, str):
                parts.append(segment)
            elif isinstance(segment, dict):
                parts.append(_text(segment.get("text")))
        return "".join(parts)
    return ""


def parse_telegram(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """Parse a Telegram Desktop ``result.json`` export."""
    payload = load_json(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
        return []

    events: List[EventSchema] = []
    for msg in _records(payload["messages"]):
        if msg.get("type") != "message" or not msg.get("date"):
            continue
        content = flatten_telegram_text(msg.get("text"))
        if not content:
            continue
        timestamp = parse_timestamp(msg["date"], tz)
        if timestamp is None:
            logger.debug(f"telegram: skipping message with bad date {msg.get('date')!r}")
            continue
        events.append(
            make_event(
                source=EventSource.TELEGRAM,
                timestamp=timestamp,
                actor=_first_name(msg.get("from"), msg.get("from_id")),
                type="chat.message",
                content=content,
                limit=TELEGRAM_CONTENT_LIMIT,
            )
        )
    return events
