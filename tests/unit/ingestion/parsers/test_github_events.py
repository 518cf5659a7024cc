"""
Unit tests for mapping GitHub events API objects.
"""

import json

import pytest

from history_sync.ingestion.parsers.github_events import (
    describe_event,
    map_event,
    map_events,
    parse,
)
from history_sync.schemas.event import EventSource


def _event(kind, payload=None, **overrides):
    raw = {
        "type": kind,
        "created_at": "2023-10-01T10:00:00Z",
        "actor": {"login": "octocat"},
        "repo": {"name": "octo/repo"},
        "payload": payload or {},
    }
    raw.update(overrides)
    return raw


class TestDescribeEvent:
    """Tests for per-kind descriptions."""

    def test_push_event(self):
        raw = _event("PushEvent", {"commits": [{"message": "Fix crash"}, {"message": "x"}]})

        event_type, tags, snippet = describe_event(raw)

        assert event_type == "code.commit"
        assert tags == ["bugfix"]
        assert snippet == "Pushed 2 commits to octo/repo: Fix crash"

    def test_push_without_commits(self):
        event_type, tags, snippet = describe_event(_event("PushEvent"))

        assert snippet == "Pushed 0 commits to octo/repo: Pushed code"
        assert tags == ["feature"]

    @pytest.mark.parametrize(
        "kind,payload,expected_type,expected_snippet",
        [
            (
                "PullRequestEvent",
                {"action": "opened", "pull_request": {"title": "Add docs"}},
                "code.pr",
                "opened PR in octo/repo: Add docs",
            ),
            (
                "IssuesEvent",
                {"action": "closed", "issue": {"title": "Crash"}},
                "code.issue",
                "closed issue in octo/repo: Crash",
            ),
            ("CreateEvent", {"ref_type": "branch"}, "code.create", "Created branch in octo/repo"),
            ("WatchEvent", {}, "code.other", "WatchEvent in octo/repo"),
        ],
    )
    def test_other_kinds(self, kind, payload, expected_type, expected_snippet):
        event_type, tags, snippet = describe_event(_event(kind, payload))

        assert event_type == expected_type
        assert tags == []
        assert snippet == expected_snippet


class TestMapEvents:
    """Tests for conversion into canonical events."""

    def test_map_event(self):
        event = map_event(_event("WatchEvent"))

        assert event.source == EventSource.GITHUB_API
        assert event.source.value == "github-api"
        assert event.actor == "octocat"

    def test_missing_created_at_is_skipped(self):
        raw = _event("WatchEvent", created_at=None)

        assert map_event(raw) is None
        assert map_events([raw, _event("WatchEvent"), "junk"]) == [map_event(_event("WatchEvent"))]

    def test_parse_document(self):
        text = json.dumps([_event("WatchEvent"), _event("CreateEvent", {"ref_type": "tag"})])

        assert [e.type for e in parse(text)] == ["code.other", "code.create"]

    def test_parse_rejects_non_list(self):
        assert parse('{"type": "PushEvent"}') == []
