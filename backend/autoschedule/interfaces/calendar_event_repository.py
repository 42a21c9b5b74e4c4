"""
Calendar event repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from autoschedule.models.calendar import CalendarEvent, CalendarEventCreate


class ICalendarEventRepository(ABC):
    """Abstract interface for synced calendar events."""

    @abstractmethod
    async def create(self, user_id: str, event: CalendarEventCreate) -> CalendarEvent:
        """Store a synced event."""
        pass

    @abstractmethod
    async def list_in_range(
        self,
        feed_ids: list[str],
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        """
        List events of the given feeds that touch [start, end].

        An event matches when event.start <= end and event.end >= start.
        """
        pass
