"""
Unit tests for the version-control log parser.

Covers pipe-delimited lines, the regex fallback, commit classification and
timestamp handling.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from history_sync.ingestion.parsers import git_log
from history_sync.ingestion.parsers.git_log import (
    COMMIT_LINE_PATTERN,
    classify_commit,
    parse,
    parse_line,
)
from history_sync.schemas.event import EventSource

GIT_LOG = (
    "a1b2c3d|Alice|2023-10-01T10:00:00Z|Fix login redirect\n"
    "\n"
    "e4f5a6b|Bob|2023-10-01T12:00:00+02:00|Add export button\n"
)


class TestClassifyCommit:
    """Tests for the commit tagging heuristic."""

    def test_bugfix_keywords(self):
        assert classify_commit("Fix crash on startup") == ["bugfix"]
        assert classify_commit("HOTFIX: payments") == ["bugfix"]
        assert classify_commit("Resolve bug #12") == ["bugfix"]

    def test_default_is_feature(self):
        assert classify_commit("Add dark mode") == ["feature"]


class TestParseLine:
    """Tests for single-line parsing."""

    def test_pipe_line(self):
        event = parse_line("a1b2c3d|Alice|2023-10-01T10:00:00Z|Fix login redirect")

        assert event is not None
        assert event.source == EventSource.GIT
        assert event.type == "code.commit"
        assert event.actor == "Alice"
        assert event.timestamp == datetime(2023, 10, 1, 10, 0, tzinfo=timezone.utc)
        assert event.content_snippet == "Fix login redirect"
        assert event.tags == ["bugfix"]

    def test_message_keeps_literal_pipes(self):
        event = parse_line("a1b2c3d|Bob|2023-10-01T10:00:00Z|Support a|b syntax")

        assert event.content_snippet == "Support a|b syntax"
        assert event.tags == ["feature"]

    def test_offset_converted_to_utc(self):
        event = parse_line("a1b2c3d|Bob|2023-10-01 12:00:00 +0200|Add docs")

        assert event.timestamp == datetime(2023, 10, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_read_in_given_zone(self):
        event = parse_line(
            "a1b2c3d|Bob|2023-10-01 12:00:00|Add docs", ZoneInfo("Europe/Madrid")
        )

        assert event.timestamp == datetime(2023, 10, 1, 10, 0, tzinfo=timezone.utc)

    def test_timestamp_past_utc_range_is_dropped(self):
        assert parse_line("a1b2c3d|Alice|9999-12-31T23:00:00-05:00|Add docs") is None

    def test_spaced_line(self):
        event = parse_line("a1b2c3d | Alice | 2023-10-01T10:00:00Z | Tidy imports")

        assert event.actor == "Alice"
        assert event.content_snippet == "Tidy imports"

    def test_unparseable_lines(self):
        assert parse_line("not a commit") is None
        assert parse_line("a1b2c3d|Alice|not-a-date|Add docs") is None

    def test_regex_pattern_matches_prefixed_line(self):
        match = COMMIT_LINE_PATTERN.search("* a1b2c3d | Alice | 2023-10-01 | Msg")

        assert match is not None
        assert match.groups() == ("a1b2c3d", "Alice", "2023-10-01", "Msg")


class TestParse:
    """Tests for whole-document parsing."""

    def test_parses_every_commit_in_order(self):
        events = parse(GIT_LOG)

        assert [e.actor for e in events] == ["Alice", "Bob"]
        assert [e.tags for e in events] == [["bugfix"], ["feature"]]

    def test_drops_bad_lines(self):
        text = GIT_LOG + "garbage line\n"

        assert len(parse(text)) == 2

    def test_out_of_range_timestamp_drops_only_its_line(self):
        text = "0a0a0a0|Zed|9999-12-31T23:00:00-05:00|Fix far future\n" + GIT_LOG

        assert [e.actor for e in parse(text)] == ["Alice", "Bob"]

    def test_content_is_truncated(self):
        line = "a1b2c3d|Alice|2023-10-01T10:00:00Z|" + "x" * 500

        event = parse(line)[0]

        assert len(event.content_snippet) == git_log.CONTENT_LIMIT == 200

    def test_ids_are_deterministic(self):
        first = [e.id for e in parse(GIT_LOG)]
        second = [e.id for e in parse(GIT_LOG)]

        assert first == second
        assert len(set(first)) == 2

    def test_empty_text(self):
        assert parse("") == []
