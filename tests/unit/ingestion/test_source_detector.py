"""
Unit tests for upload format detection.

Each signature is checked on its own, then the full ordered chain including
the parse-based fallbacks.
"""

import json

import pytest

from history_sync.ingestion.source_detector import (
    DetectedFormat,
    detect_format,
    detect_json_format,
    is_calendar,
    is_discord,
    is_github_events,
    is_slack,
    is_telegram,
    looks_like_chat,
    looks_like_git_log,
    sample_lines,
)

TELEGRAM = json.dumps({"name": "Family", "messages": []})
SLACK = json.dumps([{"ts": "1696154400.0001", "user": "U1", "text": "hi"}])
DISCORD = json.dumps(
    {"messages": [{"timestamp": "2023-10-01T10:00:00Z", "author": {"name": "a"}}]}
)
GITHUB = json.dumps(
    [
        {
            "type": "PushEvent",
            "created_at": "2023-10-01T10:00:00Z",
            "actor": {"login": "octocat"},
            "repo": {"name": "octo/repo"},
        }
    ]
)
CALENDAR = "BEGIN:VCALENDAR\nBEGIN:VEVENT\nDTSTART:20231001T100000Z\nEND:VEVENT\nEND:VCALENDAR\n"
WHATSAPP = "12/05/2023, 21:03 - Alice: Hello\n12/05/2023, 21:04 - Bob: Hi\n"
GIT = "a1b2c3d|Alice|2023-10-01T10:00:00Z|Fix login\n"
FILLER = "\n".join(["note"] * 25) + "\n"


class TestJsonSignatures:
    """Tests for the JSON predicates."""

    def test_telegram(self):
        assert is_telegram({"name": "x", "messages": []})
        assert not is_telegram({"messages": []})

    def test_slack(self):
        assert is_slack([{"ts": "1", "user": "U1"}])
        assert not is_slack([{"ts": "1"}])
        assert not is_slack([])

    def test_discord(self):
        assert is_discord([{"timestamp": "t", "author": "a"}])
        assert is_discord({"messages": [{"timestamp": "t", "author": "a"}]})
        assert not is_discord({"messages": [{"timestamp": "t"}]})

    def test_github(self):
        assert is_github_events(json.loads(GITHUB))
        assert not is_github_events([{"type": "PushEvent"}])

    def test_detect_json_format_ignores_non_json(self):
        assert detect_json_format("hello") is None
        assert detect_json_format("{broken") is None
        assert detect_json_format('{"foo": 1}') is None


class TestTextSignatures:
    """Tests for the line-sample heuristics."""

    def test_calendar(self):
        assert is_calendar(CALENDAR)
        assert not is_calendar("BEGIN:VEVENT")

    def test_chat(self):
        assert looks_like_chat(WHATSAPP)
        assert not looks_like_chat("Alice - Bob: hello")

    def test_git(self):
        assert looks_like_git_log("commit a1b2c3d")
        assert looks_like_git_log("x|y")
        assert not looks_like_git_log("plain words")

    def test_sample_lines(self):
        assert sample_lines("a\nb\nc", limit=2) == "a\nb"
        assert len(sample_lines(FILLER).splitlines()) == 20


class TestDetectFormat:
    """Tests for the ordered detection chain."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            (TELEGRAM, DetectedFormat.TELEGRAM),
            (SLACK, DetectedFormat.SLACK),
            (DISCORD, DetectedFormat.DISCORD),
            (GITHUB, DetectedFormat.GITHUB),
            (CALENDAR, DetectedFormat.CALENDAR),
            (WHATSAPP, DetectedFormat.WHATSAPP),
            (GIT, DetectedFormat.GIT),
            ("Just some notes about my day", DetectedFormat.RAW),
            ("{broken json", DetectedFormat.RAW),
        ],
    )
    def test_signatures(self, text, expected):
        detection = detect_format(text)

        assert detection.format == expected
        assert detection.events is None

    def test_git_fallback_carries_events(self):
        detection = detect_format(FILLER + GIT)

        assert detection.format == DetectedFormat.GIT_FALLBACK
        assert len(detection.events) == 1
        assert detection.events[0].actor == "Alice"

    def test_chat_fallback_carries_events(self):
        detection = detect_format(FILLER + "12/05/2023, 21:03 - Alice: Hi\n")

        assert detection.format == DetectedFormat.WHATSAPP_FALLBACK
        assert [e.content_snippet for e in detection.events] == ["Hi"]

    def test_format_values(self):
        assert DetectedFormat.GIT_FALLBACK.value == "git_fallback"
        assert DetectedFormat.WHATSAPP_FALLBACK.value == "whatsapp_fallback"
