"""
Calendar event models.

Events come from synced external calendars (feeds) and only block time;
the scheduler never writes them.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from autoschedule.utils.datetime_utils import ensure_utc


class CalendarEventBase(BaseModel):
    """Base event fields shared across create/read."""

    feed_id: str = Field(..., min_length=1, description="Calendar (feed) ID")
    title: str = Field(..., max_length=500)
    start: datetime
    end: datetime
    all_day: bool = False
    location: Optional[str] = Field(None, max_length=500)

    @field_validator("start", "end", mode="after")
    @classmethod
    def normalize_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class CalendarEventCreate(CalendarEventBase):
    """Schema for storing a synced event."""

    pass


class CalendarEvent(CalendarEventBase):
    """Stored calendar event."""

    id: UUID

    class Config:
        from_attributes = True
