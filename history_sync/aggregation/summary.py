"""
Pre-aggregated activity summary for the external analysis service.

The analyst model receives daily per-source counts rather than raw events,
which keeps the prompt small and free of message content.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, Optional

from history_sync.schemas.aggregate import ActivitySummary
from history_sync.schemas.event import EventSchema


def build_activity_summary(
    events: Iterable[EventSchema],
    days: int = 30,
    *,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> ActivitySummary:
    """
    Count events per local date and source over the last ``days`` days.

    Dates are ``YYYY-MM-DD`` keys, most recent first.
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    cutoff = now - timedelta(days=days)

    daily: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    sources = []
    total = 0
    recent = sorted(
        (e for e in events if cutoff < e.timestamp <= now),
        key=lambda e: e.timestamp,
        reverse=True,
    )
    for event in recent:
        day = event.local_time(tz).date().isoformat()
        source = event.source.value
        daily[day][source] += 1
        if source not in sources:
            sources.append(source)
        total += 1

    return ActivitySummary(
        window_days=days,
        sources=sources,
        daily={day: dict(counts) for day, counts in daily.items()},
        total_events=total,
    )
