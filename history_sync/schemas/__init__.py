from history_sync.schemas.aggregate import ActivitySummary, ActorCount, AggregateResult
from history_sync.schemas.event import EventAnalysis, EventSchema, EventSource

__all__ = [
    "ActivitySummary",
    "ActorCount",
    "AggregateResult",
    "EventAnalysis",
    "EventSchema",
    "EventSource",
]
