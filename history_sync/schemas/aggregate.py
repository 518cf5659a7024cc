"""Response models produced by the aggregation layer."""

from typing import Dict, List

from pydantic import BaseModel, Field

from history_sync.schemas.event import EventSchema


class ActorCount(BaseModel):
    """How many events one actor produced in a window."""

    name: str
    count: int = Field(..., ge=0)


class AggregateResult(BaseModel):
    """Day x hour matrix, the windowed events, and the actor ranking."""

    matrix: List[List[int]]
    events: List[EventSchema] = Field(default_factory=list)
    actors: List[ActorCount] = Field(default_factory=list)

    @property
    def days(self) -> int:
        return len(self.matrix)

    @property
    def total(self) -> int:
        """Number of events counted in the matrix."""
        return sum(sum(row) for row in self.matrix)


class ActivitySummary(BaseModel):
    """
    Daily per-source event counts over a recent window.

    This is the compact payload handed to the external analysis service
    instead of raw events.
    """

    window_days: int
    sources: List[str] = Field(default_factory=list)
    daily: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    total_events: int = 0
