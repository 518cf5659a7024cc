"""
Unit tests for the day x hour aggregation.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from history_sync.aggregation import aggregate, build_matrix, rank_actors
from history_sync.aggregation.aggregator import HOURS_PER_DAY, local_today

NOW = datetime(2024, 6, 15, 23, 30, tzinfo=timezone.utc)


class TestBuildMatrix:
    """Tests for matrix bucketing."""

    def test_shape(self, sample_events):
        matrix = build_matrix(sample_events, 30, now=NOW)

        assert len(matrix) == 30
        assert all(len(row) == HOURS_PER_DAY for row in matrix)

    def test_cells(self, sample_events):
        matrix = build_matrix(sample_events, 30, now=NOW)

        assert matrix[0][9] == 1
        assert matrix[0][21] == 1
        assert matrix[1][10] == 1
        assert matrix[2][16] == 1
        assert sum(map(sum, matrix)) == 4

    def test_future_and_old_events_left_out(self, create_event):
        events = [
            create_event(content="future", timestamp=NOW + timedelta(days=1)),
            create_event(content="old", timestamp=NOW - timedelta(days=40)),
            create_event(content="edge", timestamp=NOW - timedelta(days=7)),
        ]

        matrix = build_matrix(events, 7, now=NOW)

        assert sum(map(sum, matrix)) == 0

    def test_total_never_exceeds_input(self, sample_events, create_event):
        events = sample_events + [create_event(timestamp=NOW + timedelta(hours=2))]

        matrix = build_matrix(events, 3, now=NOW)

        assert sum(map(sum, matrix)) <= len(events)

    def test_calendar_days_in_local_zone(self, create_event):
        madrid = ZoneInfo("Europe/Madrid")
        event = create_event(timestamp=datetime(2024, 6, 15, 23, 30, tzinfo=timezone.utc))
        now = datetime(2024, 6, 16, 10, 0, tzinfo=timezone.utc)

        matrix = build_matrix([event], 2, now=now, tz=madrid)

        # 01:30 on the 16th in Madrid
        assert matrix[0][1] == 1

    def test_yesterday_late_evening_is_one_day_ago(self, create_event):
        event = create_event(timestamp=datetime(2024, 6, 14, 23, 59, tzinfo=timezone.utc))
        now = datetime(2024, 6, 15, 0, 1, tzinfo=timezone.utc)

        assert build_matrix([event], 2, now=now)[1][23] == 1

    def test_days_must_be_positive(self):
        with pytest.raises(ValueError):
            build_matrix([], 0, now=NOW)

    def test_local_today(self):
        assert local_today(NOW, ZoneInfo("Europe/Madrid")).isoformat() == "2024-06-16"


class TestRankActors:
    """Tests for the actor ranking."""

    def test_counts_and_tie_order(self, sample_events):
        ranked = rank_actors(sample_events)

        assert [(a.name, a.count) for a in ranked] == [("Alice", 2), ("Bob", 1), ("me", 1)]

    def test_empty(self):
        assert rank_actors([]) == []


class TestAggregate:
    """Tests for the combined aggregation result."""

    def test_result(self, sample_events):
        result = aggregate(sample_events, 30, now=NOW)

        assert result.days == 30
        assert result.total == 4
        assert result.events == sample_events
        assert result.actors[0].name == "Alice"

    def test_deterministic(self, sample_events):
        first = aggregate(sample_events, 30, now=NOW).model_dump(mode="json")
        second = aggregate(sample_events, 30, now=NOW).model_dump(mode="json")

        assert first == second
