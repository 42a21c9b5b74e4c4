"""
Calendar service for conflict detection.

Reads synced calendar events through a week-aligned cache and reports which
calendar events or already scheduled tasks collide with candidate slots.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from autoschedule.core.config import get_settings
from autoschedule.core.logger import setup_logger
from autoschedule.interfaces.calendar_event_repository import ICalendarEventRepository
from autoschedule.interfaces.task_repository import ITaskRepository
from autoschedule.models.calendar import CalendarEvent
from autoschedule.models.enums import ConflictSourceType, ConflictType
from autoschedule.models.scheduling import (
    BatchConflictCheck,
    Conflict,
    ConflictSource,
    EventCache,
    TimeSlot,
)
from autoschedule.models.task import Task
from autoschedule.utils.datetime_utils import (
    are_intervals_overlapping,
    ensure_utc,
    js_weekday,
    now_utc,
    to_local,
)

logger = setup_logger(__name__)


class CalendarService:
    """
    Service for calendar event lookup and slot conflict checks.

    One instance is meant to live for a single scheduling run: it holds a
    single cache entry covering whole local weeks (Sunday to Saturday).
    """

    def __init__(
        self,
        event_repo: ICalendarEventRepository,
        task_repo: ITaskRepository,
        user_id: str,
        time_zone: Optional[str] = None,
        cache_ttl_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        settings = get_settings()
        self.event_repo = event_repo
        self.task_repo = task_repo
        self.user_id = user_id
        self.time_zone = time_zone or settings.DEFAULT_TIME_ZONE
        self.cache_ttl = timedelta(
            minutes=settings.EVENT_CACHE_TTL_MINUTES if cache_ttl_minutes is None else cache_ttl_minutes
        )
        self._clock = clock
        self._cache: Optional[EventCache] = None

    def get_week_timestamp(self, date: datetime, is_start: bool) -> datetime:
        """
        Snap a date to its week boundary at local midnight.

        Args:
            date: Any instant within the week
            is_start: True for the Sunday at or before, False for the
                Saturday at or after

        Returns:
            UTC-aware boundary
        """
        local = to_local(date, self.time_zone)
        weekday = js_weekday(local)
        offset = -weekday if is_start else 6 - weekday
        day = local.date() + timedelta(days=offset)
        midnight = datetime(day.year, day.month, day.day, tzinfo=ZoneInfo(self.time_zone))
        return ensure_utc(midnight)

    def _is_cache_valid(self, start_day: datetime, end_day: datetime, calendar_ids: list[str]) -> bool:
        cache = self._cache
        if cache is None:
            return False
        if self._clock() - cache.timestamp > self.cache_ttl:
            return False
        if sorted(cache.calendar_ids) != sorted(calendar_ids):
            return False
        return cache.start_day <= start_day and cache.end_day >= end_day

    def invalidate(self) -> None:
        """Drop cached events so the next lookup reads storage again."""
        self._cache = None

    async def get_events(
        self,
        start: datetime,
        end: datetime,
        calendar_ids: list[str],
    ) -> list[CalendarEvent]:
        """
        Get events from the given calendars intersecting [start, end].

        Events touching either boundary are included.
        """
        if not calendar_ids:
            return []

        start_day = self.get_week_timestamp(start, is_start=True)
        end_day = self.get_week_timestamp(end, is_start=False)

        if self._is_cache_valid(start_day, end_day, calendar_ids):
            events = self._cache.events
        else:
            # Saturday midnight is the last boundary; pad so Saturday itself is covered
            events = await self.event_repo.list_in_range(
                calendar_ids, start_day, end_day + timedelta(days=1)
            )
            self._cache = EventCache(
                events=events,
                start_day=start_day,
                end_day=end_day,
                calendar_ids=list(calendar_ids),
                timestamp=self._clock(),
            )
            logger.debug(
                f"Cached {len(events)} events for {start_day.isoformat()} - {end_day.isoformat()}"
            )

        return [event for event in events if event.start <= end and event.end >= start]

    async def find_conflicts(
        self,
        slot: TimeSlot,
        calendar_ids: list[str],
        exclude_task_id: Optional[UUID] = None,
    ) -> list[Conflict]:
        """
        Find what a slot collides with.

        The first overlapping calendar event is reported alone; scheduled
        tasks are only checked when no event overlaps.
        """
        events = await self.get_events(slot.start, slot.end, calendar_ids)
        event_conflict = self._event_conflict(slot, events)
        if event_conflict is not None:
            return [event_conflict]

        tasks = await self.task_repo.list_scheduled(
            self.user_id,
            exclude_task_id=exclude_task_id,
            start=slot.start,
            end=slot.end,
        )
        return self._task_conflicts(slot, tasks)

    async def find_batch_conflicts(
        self,
        slots: list[TimeSlot],
        calendar_ids: list[str],
        exclude_task_id: Optional[UUID] = None,
    ) -> list[BatchConflictCheck]:
        """
        Check many slots with a single event read and a single task read.

        Results match calling find_conflicts for each slot.
        """
        if not slots:
            return []

        range_start = min(slot.start for slot in slots)
        range_end = max(slot.end for slot in slots)

        events = await self.get_events(range_start, range_end, calendar_ids)
        tasks = await self.task_repo.list_scheduled(
            self.user_id,
            exclude_task_id=exclude_task_id,
            start=range_start,
            end=range_end,
        )

        return [
            BatchConflictCheck(
                slot=slot,
                task_id=exclude_task_id,
                conflicts=self._conflicts_for_slot(slot, events, tasks),
            )
            for slot in slots
        ]

    @classmethod
    def _conflicts_for_slot(
        cls,
        slot: TimeSlot,
        events: list[CalendarEvent],
        tasks: list[Task],
    ) -> list[Conflict]:
        event_conflict = cls._event_conflict(slot, events)
        if event_conflict is not None:
            return [event_conflict]
        return cls._task_conflicts(slot, tasks)

    @staticmethod
    def _event_conflict(slot: TimeSlot, events: list[CalendarEvent]) -> Optional[Conflict]:
        for event in events:
            if are_intervals_overlapping(slot.start, slot.end, event.start, event.end):
                return Conflict(
                    type=ConflictType.CALENDAR_EVENT,
                    start=event.start,
                    end=event.end,
                    title=event.title,
                    source=ConflictSource(type=ConflictSourceType.CALENDAR, id=str(event.id)),
                )
        return None

    @staticmethod
    def _task_conflicts(slot: TimeSlot, tasks: list[Task]) -> list[Conflict]:
        conflicts = []
        for task in tasks:
            if task.scheduled_start is None or task.scheduled_end is None:
                continue
            if are_intervals_overlapping(slot.start, slot.end, task.scheduled_start, task.scheduled_end):
                conflicts.append(
                    Conflict(
                        type=ConflictType.TASK,
                        start=task.scheduled_start,
                        end=task.scheduled_end,
                        title=task.title,
                        source=ConflictSource(type=ConflictSourceType.TASK, id=str(task.id)),
                    )
                )
        return conflicts
