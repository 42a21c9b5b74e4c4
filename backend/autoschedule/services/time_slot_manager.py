"""
Time slot search for a single task.

Generates candidate slots between two instants, keeps the ones inside work
hours that collide with nothing, then scores and ranks them.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from autoschedule.core.config import get_settings
from autoschedule.core.logger import setup_logger
from autoschedule.interfaces.task_repository import ITaskRepository
from autoschedule.models.auto_schedule import AutoScheduleSettings
from autoschedule.models.scheduling import NO_PROJECT_KEY, ScheduledInterval, TimeSlot
from autoschedule.models.task import Task
from autoschedule.services.calendar_service import CalendarService
from autoschedule.services.slot_scorer import SlotScorer
from autoschedule.utils.auto_schedule import get_energy_level_for_time
from autoschedule.utils.datetime_utils import (
    are_intervals_overlapping,
    ensure_utc,
    js_weekday,
    now_utc,
    round_date_up,
    to_local,
)

logger = setup_logger(__name__)


class TimeSlotManager:
    """
    Finds and ranks free slots for tasks within one scheduling run.

    Keeps an in-memory ledger of placements (shared with the SlotScorer) so
    tasks committed earlier in a batch block later ones without re-reading
    storage.
    """

    def __init__(
        self,
        settings: AutoScheduleSettings,
        calendar_service: CalendarService,
        task_repo: ITaskRepository,
        user_id: str,
        slot_scorer: Optional[SlotScorer] = None,
        default_duration: Optional[int] = None,
        minimum_start_buffer: Optional[int] = None,
        rounding_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        app_settings = get_settings()
        self.settings = settings
        self.calendar_service = calendar_service
        self.task_repo = task_repo
        self.user_id = user_id
        self.slot_scorer = slot_scorer or SlotScorer(settings, clock=clock)
        self.default_duration = default_duration or app_settings.DEFAULT_TASK_DURATION_MINUTES
        self.minimum_start_buffer = (
            app_settings.MINIMUM_START_BUFFER_MINUTES
            if minimum_start_buffer is None
            else minimum_start_buffer
        )
        self.rounding_minutes = rounding_minutes or app_settings.SLOT_ROUNDING_MINUTES
        self.time_zone = settings.time_zone
        self._clock = clock
        self._ledger_loaded = False
        self._ledger_lock = asyncio.Lock()

    # ===========================================
    # Ledger
    # ===========================================

    async def update_scheduled_tasks(self) -> None:
        """Reload the ledger from every auto-scheduled task holding a slot."""
        scheduled = await self.task_repo.list_scheduled(self.user_id)
        self.slot_scorer.update_scheduled_tasks(scheduled)
        self._ledger_loaded = True
        logger.debug(f"Loaded {len(scheduled)} scheduled tasks into ledger")

    async def ensure_ledger_loaded(self) -> None:
        """Load the ledger once; concurrent first callers share one read."""
        if self._ledger_loaded:
            return
        async with self._ledger_lock:
            if not self._ledger_loaded:
                await self.update_scheduled_tasks()

    def add_scheduled_task_conflict(self, task: Task) -> None:
        """Record a just-committed task so later searches avoid its slot."""
        if task.scheduled_start is None or task.scheduled_end is None:
            return
        key = str(task.project_id) if task.project_id else NO_PROJECT_KEY
        self.slot_scorer.get_scheduled_tasks().setdefault(key, []).append(
            ScheduledInterval(start=task.scheduled_start, end=task.scheduled_end)
        )

    # ===========================================
    # Slot search
    # ===========================================

    async def find_available_slots(
        self,
        task: Task,
        start_date: datetime,
        end_date: datetime,
    ) -> list[TimeSlot]:
        """
        Find free slots for a task between start_date and end_date.

        Returns:
            Slots sorted by score, best first (empty when nothing fits)
        """
        await self.ensure_ledger_loaded()

        duration = task.duration or self.default_duration
        slots = self._generate_potential_slots(duration, start_date, end_date)
        slots = self._filter_by_start_date(slots, task)
        slots = self.filter_by_work_hours(slots)
        slots = await self._remove_conflicts(slots, task)
        slots = self._apply_buffer_times(slots)
        slots = self._score_slots(slots, task)
        return self._sort_by_score(slots)

    def _generate_potential_slots(
        self,
        duration: int,
        start_date: datetime,
        end_date: datetime,
    ) -> list[TimeSlot]:
        """
        Step through [start_date, end_date) in task-sized increments.

        Today starts after a short lead time (next day if that is already
        past work hours); later days start at work_hour_start. Steps run
        across day boundaries; the work-hours filter drops what falls outside.
        """
        local_start = to_local(start_date, self.time_zone)
        local_end = to_local(end_date, self.time_zone)
        local_now = to_local(self._clock(), self.time_zone)

        if local_start.date() == local_now.date():
            current = max(local_start, local_now) + timedelta(minutes=self.minimum_start_buffer)
            if current.hour >= self.settings.work_hour_end:
                current = current.replace(
                    hour=self.settings.work_hour_start, minute=0, second=0, microsecond=0
                ) + timedelta(days=1)
        else:
            current = local_start.replace(
                hour=self.settings.work_hour_start, minute=0, second=0, microsecond=0
            )

        # Step in UTC so every slot spans exactly duration minutes across DST changes
        current = ensure_utc(round_date_up(current, self.rounding_minutes))
        end = ensure_utc(round_date_up(local_end, self.rounding_minutes))
        step = timedelta(minutes=duration)

        slots = []
        while current < end:
            slots.append(TimeSlot(start=current, end=current + step))
            current += step
        return slots

    def _filter_by_start_date(self, slots: list[TimeSlot], task: Task) -> list[TimeSlot]:
        if task.start_date is None:
            return slots
        return [slot for slot in slots if slot.start >= task.start_date]

    def is_within_work_hours(self, slot: TimeSlot) -> bool:
        """Local weekday is a work day and the slot sits inside work hours."""
        local_start = to_local(slot.start, self.time_zone)
        local_end = to_local(slot.end, self.time_zone)

        if js_weekday(local_start) not in self.settings.work_days:
            return False

        return (
            local_start.hour >= self.settings.work_hour_start
            and local_end.hour <= self.settings.work_hour_end
            and local_start.hour < self.settings.work_hour_end
        )

    def filter_by_work_hours(self, slots: list[TimeSlot]) -> list[TimeSlot]:
        """Keep slots inside work hours and mark them as such."""
        kept = []
        for slot in slots:
            if self.is_within_work_hours(slot):
                slot.is_within_work_hours = True
                kept.append(slot)
        return kept

    def _has_in_memory_conflict(self, slot: TimeSlot) -> bool:
        for intervals in self.slot_scorer.get_scheduled_tasks().values():
            for interval in intervals:
                if are_intervals_overlapping(slot.start, slot.end, interval.start, interval.end):
                    return True
        return False

    async def _remove_conflicts(self, slots: list[TimeSlot], task: Task) -> list[TimeSlot]:
        results = await self.calendar_service.find_batch_conflicts(
            slots, self.settings.selected_calendars, task.id
        )

        available = []
        for result in results:
            if result.conflicts:
                result.slot.conflicts = result.conflicts
            elif not self._has_in_memory_conflict(result.slot):
                available.append(result.slot)
        return available

    def calculate_buffer_times(self, slot: TimeSlot) -> tuple[TimeSlot, TimeSlot]:
        """
        Build the buffer windows around a slot.

        Returns:
            (before, after) slots of buffer_minutes each, with
            is_within_work_hours evaluated
        """
        buffer = timedelta(minutes=self.settings.buffer_minutes)
        before = TimeSlot(start=slot.start - buffer, end=slot.start)
        after = TimeSlot(start=slot.end, end=slot.end + buffer)
        before.is_within_work_hours = self.is_within_work_hours(before)
        after.is_within_work_hours = self.is_within_work_hours(after)
        return before, after

    def _apply_buffer_times(self, slots: list[TimeSlot]) -> list[TimeSlot]:
        # Buffers only affect scoring; they are not checked for conflicts
        for slot in slots:
            before, after = self.calculate_buffer_times(slot)
            slot.has_buffer_time = before.is_within_work_hours and after.is_within_work_hours
        return slots

    def _score_slots(self, slots: list[TimeSlot], task: Task) -> list[TimeSlot]:
        for slot in slots:
            slot.energy_level = get_energy_level_for_time(
                to_local(slot.start, self.time_zone).hour, self.settings
            )
            slot.score = self.slot_scorer.score_slot(slot, task).total
        return slots

    @staticmethod
    def _sort_by_score(slots: list[TimeSlot]) -> list[TimeSlot]:
        return sorted(slots, key=lambda slot: slot.score, reverse=True)

    async def is_slot_available(self, slot: TimeSlot, exclude_task_id: Optional[UUID] = None) -> bool:
        """Check one slot: work hours, calendar conflicts and the ledger."""
        if not self.is_within_work_hours(slot):
            return False

        if self.settings.selected_calendars:
            conflicts = await self.calendar_service.find_conflicts(
                slot, self.settings.selected_calendars, exclude_task_id
            )
            if conflicts:
                return False

        return not self._has_in_memory_conflict(slot)
