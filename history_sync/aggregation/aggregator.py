"""
Day x hour aggregation for the heatmap and timeline views.

Row 0 of the matrix is today and row ``i`` is ``i`` days ago. Days are
calendar days in the viewer's zone, not rolling 24-hour windows: an event at
23:59 yesterday is one day ago even if it happened a minute before midnight.
"""

from collections import Counter
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence

from history_sync.schemas.aggregate import ActorCount, AggregateResult
from history_sync.schemas.event import EventSchema

HOURS_PER_DAY = 24


def local_today(now: Optional[datetime] = None, tz: tzinfo = timezone.utc) -> date:
    """Calendar date of ``now`` (default: the current instant) in ``tz``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    return now.astimezone(tz).date()


def day_delta(event: EventSchema, today: date, tz: tzinfo = timezone.utc) -> int:
    """Whole calendar days between ``today`` and the event's local date."""
    return (today - event.local_time(tz).date()).days


def build_matrix(
    events: Iterable[EventSchema],
    days: int,
    *,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> List[List[int]]:
    """
    Count events per (day-ago, hour-of-day) cell.

    Future-dated events and events ``days`` or more days old are left out
    of the matrix.
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")

    today = local_today(now, tz)
    matrix = [[0] * HOURS_PER_DAY for _ in range(days)]
    for event in events:
        delta = day_delta(event, today, tz)
        if 0 <= delta < days:
            matrix[delta][event.local_time(tz).hour] += 1
    return matrix


def rank_actors(events: Iterable[EventSchema]) -> List[ActorCount]:
    """
    Event count per actor, highest first.

    Ties keep the order in which actors first appear.
    """
    counts = Counter(event.actor or "unknown" for event in events)
    # Counter keeps first-seen order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ActorCount(name=name, count=count) for name, count in ranked]


def aggregate(
    events: Sequence[EventSchema],
    days: int,
    *,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> AggregateResult:
    """
    Build the heatmap matrix and actor ranking for a window of events.

    Args:
        events: Events to aggregate, typically a store query result
        days: Number of matrix rows
        now: Reference instant for "today" (defaults to the current time)
        tz: Zone whose calendar days and hours the matrix uses

    Returns:
        AggregateResult with all input events, including those outside
        the matrix window
    """
    events = list(events)
    return AggregateResult(
        matrix=build_matrix(events, days, now=now, tz=tz),
        events=events,
        actors=rank_actors(events),
    )
