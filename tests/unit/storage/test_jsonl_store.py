"""
Unit tests for the JSON-lines file store.
"""

import pytest

from history_sync.ingestion.errors import StoreError
from history_sync.ingestion.parsers.chat_json import parse_slack
from history_sync.schemas.event import format_iso_utc
from history_sync.storage import EventQuery, JsonLinesEventStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "events.jsonl"


class TestJsonLinesEventStore:
    """Tests for JsonLinesEventStore."""

    def test_persists_across_instances(self, store_path, sample_events):
        assert JsonLinesEventStore(store_path).insert_if_absent(sample_events) == 4

        reopened = JsonLinesEventStore(store_path)

        assert reopened.count() == 4
        assert sorted(e.id for e in reopened.query()) == sorted(e.id for e in sample_events)

    def test_round_trip_preserves_fields(self, store_path, sample_event):
        JsonLinesEventStore(store_path).insert_if_absent([sample_event])

        loaded = JsonLinesEventStore(store_path).query()[0]

        assert loaded == sample_event

    def test_insert_if_absent(self, store_path, sample_events):
        store = JsonLinesEventStore(store_path)
        store.insert_if_absent(sample_events[:2])

        assert store.insert_if_absent(sample_events) == 2
        assert len(store_path.read_text(encoding="utf-8").splitlines()) == 4

    def test_corrupt_lines_are_skipped(self, store_path, sample_events):
        store = JsonLinesEventStore(store_path)
        store.insert_if_absent(sample_events)
        with store_path.open("a", encoding="utf-8") as f:
            f.write("not json\n")

        assert store.count() == 4

    def test_query_filter(self, store_path, sample_events):
        store = JsonLinesEventStore(store_path)
        store.insert_if_absent(sample_events)

        assert [e.actor for e in store.query(EventQuery(tag="study"))] == ["Bob"]

    def test_clear(self, store_path, sample_events):
        store = JsonLinesEventStore(store_path)
        store.insert_if_absent(sample_events)

        assert store.clear() == 4
        assert not store_path.exists()
        assert store.count() == 0

    def test_missing_file_is_empty(self, store_path):
        assert JsonLinesEventStore(store_path).query() == []

    def test_unreadable_path(self, tmp_path):
        with pytest.raises(StoreError):
            JsonLinesEventStore(tmp_path).count()

    def test_round_trip_sub_millisecond_timestamp(self, store_path):
        export = '[{"ts": "1696154400.000100", "user": "U1", "text": "hi"}]'
        ingested = parse_slack(export)
        store = JsonLinesEventStore(store_path)
        store.insert_if_absent(ingested)

        loaded = JsonLinesEventStore(store_path).query()

        assert loaded == ingested
        assert format_iso_utc(loaded[0].timestamp) == "2023-10-01T10:00:00.000Z"
        assert store.insert_if_absent(parse_slack(export)) == 0
