# history_sync/schemas/event.py
"""
Canonical Event Schema for History Sync.

Every parser, whatever its source format, produces instances of this model.
It is the unit the store persists and the aggregator buckets, so timestamps
are always timezone-aware UTC and content is already truncated when an
instance exists.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

# Longest content any format may store (the raw fallback).
MAX_CONTENT_LENGTH = 1000


class EventSource(str, Enum):
    """Origin format of an event."""

    GIT = "git"
    WHATSAPP = "whatsapp"
    SLACK = "slack"
    DISCORD = "discord"
    TELEGRAM = "telegram"
    GITHUB_API = "github-api"
    CALENDAR = "calendar"
    UNKNOWN = "unknown"


class EventAnalysis(BaseModel):
    """
    Optional annotation attached out-of-band by an external analysis service.

    Ingestion never sets it.
    """

    model_config = ConfigDict(frozen=True)

    impact_score: Optional[int] = Field(default=None, ge=1, le=10)
    impact_label: Optional[str] = None
    sentiment: Optional[str] = None
    summary: Optional[str] = None


class EventSchema(BaseModel):
    """
    Canonical activity event.

    Instances are immutable; re-identifying an event means building a new one.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(..., min_length=1, description="Content-derived identifier")
    timestamp: datetime = Field(..., description="Event instant, UTC")
    source: EventSource
    actor: str = "unknown"
    type: str = Field(..., min_length=1, description="Coarse kind, e.g. chat.message")
    tags: List[str] = Field(default_factory=list)
    content_snippet: str = Field(default="", max_length=MAX_CONTENT_LENGTH)
    analysis: Optional[EventAnalysis] = None

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        """Store every timestamp as aware UTC at millisecond precision."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)

    @field_validator("actor")
    @classmethod
    def _default_actor(cls, value: str) -> str:
        return value.strip() or "unknown"

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: List[str]) -> List[str]:
        # tags behave as a set but keep their first-seen order
        return list(dict.fromkeys(tag for tag in value if tag))

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_iso_utc(value)

    @property
    def iso_timestamp(self) -> str:
        """ISO-8601 UTC string, e.g. ``2023-10-01T10:00:00.000Z``."""
        return format_iso_utc(self.timestamp)

    def local_time(self, tz=timezone.utc) -> datetime:
        """Event instant expressed in ``tz``."""
        return self.timestamp.astimezone(tz)

    def to_dict(self) -> dict:
        """JSON-ready representation."""
        return self.model_dump(mode="json", exclude_none=True)


def format_iso_utc(value: datetime) -> str:
    """
    Render an aware datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
