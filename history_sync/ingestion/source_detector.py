"""
Format Detection for uploaded exports.

Classifies decoded text into one of the supported source formats. Signatures
are pure predicates tried in a fixed order, first match wins:

1. Telegram JSON (``name`` + ``messages``)
2. Slack JSON (first element has ``ts`` and ``user``)
3. Discord JSON (first message has ``timestamp`` and ``author``)
4. GitHub events API dump (``type``, ``created_at``, ``actor``, ``repo``)
5. ICS calendar (``BEGIN:VCALENDAR``)
6. WhatsApp-style chat (sender/colon lines plus a D/M/Y date)
7. Git log (hex revision or pipe in the sample)
8. Git log parse that yields events
9. Chat parse that yields events
10. Raw single-event wrap
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timezone, tzinfo
from enum import Enum
from typing import Any, Callable, List, Optional

from history_sync.configs.config import Config
from history_sync.ingestion.parsers import git_log, whatsapp
from history_sync.ingestion.parsers.chat_json import load_json, message_list
from history_sync.schemas.event import EventSchema

logger = logging.getLogger(__name__)

_CHAT_SENDER = re.compile(r"-\s+[^:]+:\s+")
_CHAT_DATE = re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}")
_HEX_TOKEN = re.compile(r"\b[0-9a-f]{7,40}\b")
_CALENDAR_MARKER = "BEGIN:VCALENDAR"


class DetectedFormat(str, Enum):
    """Detection tag reported back to the uploader."""

    TELEGRAM = "telegram"
    SLACK = "slack"
    DISCORD = "discord"
    GITHUB = "github"
    CALENDAR = "calendar"
    WHATSAPP = "whatsapp"
    GIT = "git"
    GIT_FALLBACK = "git_fallback"
    WHATSAPP_FALLBACK = "whatsapp_fallback"
    RAW = "raw"


@dataclass
class Detection:
    """
    Result of classifying a document.

    ``events`` is filled only when detection had to parse the document to
    decide (the fallback steps), so the caller need not parse it twice.
    """

    format: DetectedFormat
    events: Optional[List[EventSchema]] = None


# ---------------------------------------------------------------------------
# JSON signatures
# ---------------------------------------------------------------------------


def _first(items: Optional[list]) -> Optional[dict]:
    if items and isinstance(items[0], dict):
        return items[0]
    return None


def is_telegram(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and isinstance(payload.get("messages"), list)
        and bool(payload.get("name"))
    )


def is_slack(payload: Any) -> bool:
    first = _first(payload) if isinstance(payload, list) else None
    return first is not None and bool(first.get("ts")) and bool(first.get("user"))


def is_discord(payload: Any) -> bool:
    first = _first(message_list(payload))
    return first is not None and bool(first.get("timestamp")) and bool(first.get("author"))


def is_github_events(payload: Any) -> bool:
    first = _first(payload) if isinstance(payload, list) else None
    return first is not None and all(
        first.get(key) for key in ("type", "created_at", "actor", "repo")
    )


_JSON_SIGNATURES: List[tuple[DetectedFormat, Callable[[Any], bool]]] = [
    (DetectedFormat.TELEGRAM, is_telegram),
    (DetectedFormat.SLACK, is_slack),
    (DetectedFormat.DISCORD, is_discord),
    (DetectedFormat.GITHUB, is_github_events),
]


def detect_json_format(text: str) -> Optional[DetectedFormat]:
    """Classify a JSON export, or None when the text is not a known JSON shape."""
    stripped = text.lstrip()
    if not stripped.startswith(("{", "[")):
        return None
    payload = load_json(stripped)
    if payload is None:
        return None
    for detected, matches in _JSON_SIGNATURES:
        if matches(payload):
            return detected
    return None


# ---------------------------------------------------------------------------
# Text signatures
# ---------------------------------------------------------------------------


def sample_lines(text: str, limit: Optional[int] = None) -> str:
    """The leading lines the text heuristics look at."""
    limit = limit or Config.detection_sample_lines()
    return "\n".join(text.splitlines()[:limit])


def is_calendar(text: str) -> bool:
    return _CALENDAR_MARKER in text


def looks_like_chat(sample: str) -> bool:
    return bool(_CHAT_SENDER.search(sample)) and bool(_CHAT_DATE.search(sample))


def looks_like_git_log(sample: str) -> bool:
    return bool(_HEX_TOKEN.search(sample)) or "|" in sample


def detect_format(text: str, *, tz: tzinfo = timezone.utc) -> Detection:
    """
    Classify decoded document text.

    Args:
        text: Decoded upload
        tz: Zone passed to the parsers the fallback steps run

    Returns:
        Detection with the format tag (and events for fallback matches)
    """
    json_format = detect_json_format(text)
    if json_format is not None:
        return Detection(json_format)

    if is_calendar(text):
        return Detection(DetectedFormat.CALENDAR)

    sample = sample_lines(text)
    if looks_like_chat(sample):
        return Detection(DetectedFormat.WHATSAPP)
    if looks_like_git_log(sample):
        return Detection(DetectedFormat.GIT)

    git_events = git_log.parse(text, tz=tz)
    if git_events:
        return Detection(DetectedFormat.GIT_FALLBACK, git_events)

    chat_events = whatsapp.parse(text, tz=tz)
    if chat_events:
        return Detection(DetectedFormat.WHATSAPP_FALLBACK, chat_events)

    logger.info("No known format matched; falling back to raw wrap")
    return Detection(DetectedFormat.RAW)
