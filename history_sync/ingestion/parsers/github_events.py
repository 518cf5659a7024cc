"""
GitHub activity parser.

Maps objects from the GitHub events API (``/users/{name}/events``) to
``github-api`` events. Used both by the sync client and for uploaded dumps
of that endpoint.
"""

import logging
from datetime import timezone, tzinfo
from typing import Any, Iterable, List, Optional, Tuple

from history_sync.configs.config import Config
from history_sync.ingestion.normalization import make_event, parse_timestamp
from history_sync.ingestion.parsers.chat_json import load_json
from history_sync.ingestion.parsers.git_log import classify_commit
from history_sync.schemas.event import EventSchema, EventSource

logger = logging.getLogger(__name__)

CONTENT_LIMIT = Config.content_limit("github")


def _get(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def describe_event(raw: dict) -> Tuple[str, List[str], str]:
    """Return ``(type, tags, snippet)`` for one GitHub API event."""
    kind = raw.get("type")
    repo = _get(raw, "repo", "name") or "unknown repo"
    payload = raw.get("payload") if isinstance(raw.get("payload"), dict) else {}

    if kind == "PushEvent":
        commits = payload.get("commits") or []
        first = commits[0] if commits and isinstance(commits[0], dict) else {}
        message = first.get("message") or "Pushed code"
        snippet = f"Pushed {len(commits)} commits to {repo}: {message}"
        return "code.commit", classify_commit(snippet), snippet
    if kind == "PullRequestEvent":
        title = _get(payload, "pull_request", "title") or ""
        return "code.pr", [], f"{payload.get('action')} PR in {repo}: {title}"
    if kind == "IssuesEvent":
        title = _get(payload, "issue", "title") or ""
        return "code.issue", [], f"{payload.get('action')} issue in {repo}: {title}"
    if kind == "CreateEvent":
        return "code.create", [], f"Created {payload.get('ref_type')} in {repo}"
    return "code.other", [], f"{kind} in {repo}"


def map_event(raw: Any, tz: tzinfo = timezone.utc) -> Optional[EventSchema]:
    """Convert one API object, or return None when it lacks a usable time."""
    if not isinstance(raw, dict):
        return None
    timestamp = parse_timestamp(raw.get("created_at"), tz)
    if timestamp is None:
        return None
    event_type, tags, snippet = describe_event(raw)
    return make_event(
        source=EventSource.GITHUB_API,
        timestamp=timestamp,
        actor=_get(raw, "actor", "login"),
        type=event_type,
        content=snippet,
        limit=CONTENT_LIMIT,
        tags=tags,
    )


def map_events(items: Iterable[Any], tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """Convert a sequence of API objects, dropping unusable ones."""
    events = []
    for raw in items:
        event = map_event(raw, tz)
        if event is None:
            logger.debug("github: skipping event without created_at")
            continue
        events.append(event)
    return events


def parse(text: str, *, tz: tzinfo = timezone.utc) -> List[EventSchema]:
    """Parse a JSON dump of the GitHub events API."""
    payload = load_json(text)
    if not isinstance(payload, list):
        return []
    return map_events(payload, tz)
