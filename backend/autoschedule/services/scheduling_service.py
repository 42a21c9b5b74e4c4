"""
Batch scheduling service.

Places a set of tasks greedily: tasks are ranked by the best slot they could
get on their own, then committed one by one so each placement blocks the
slots of the tasks after it.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from autoschedule.core.config import get_settings
from autoschedule.core.logger import setup_logger
from autoschedule.interfaces.task_repository import ITaskRepository
from autoschedule.models.scheduling import TimeSlot
from autoschedule.models.task import Task, TaskScheduleUpdate
from autoschedule.services.time_slot_manager import TimeSlotManager
from autoschedule.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


class SchedulingService:
    """
    Service for scheduling many tasks in one run.

    Provides:
    - Preliminary ranking of tasks by their best achievable slot score
    - Sequential commit so tasks in the same batch never collide
    - Lookahead windows widened until a slot is found
    """

    def __init__(
        self,
        task_repo: ITaskRepository,
        time_slot_manager: TimeSlotManager,
        user_id: str,
        lookahead_windows_days: Optional[list[int]] = None,
        batch_size: Optional[int] = None,
        default_duration: Optional[int] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        settings = get_settings()
        self.task_repo = task_repo
        self.time_slot_manager = time_slot_manager
        self.user_id = user_id
        self.lookahead_windows_days = lookahead_windows_days or list(settings.LOOKAHEAD_WINDOWS_DAYS)
        self.batch_size = batch_size or settings.PRELIMINARY_SCORING_BATCH_SIZE
        self.default_duration = default_duration or settings.DEFAULT_TASK_DURATION_MINUTES
        self._clock = clock

    async def _find_first_window_slots(self, task: Task) -> list[TimeSlot]:
        """Try each lookahead window from now; return the first non-empty result."""
        now = self._clock()
        for days in self.lookahead_windows_days:
            slots = await self.time_slot_manager.find_available_slots(
                task, now, now + timedelta(days=days)
            )
            if slots:
                return slots
            logger.info(f"No available slots for task {task.id} in {days}-day window")
        return []

    async def _preliminary_score(self, task: Task) -> float:
        slots = await self._find_first_window_slots(task)
        return slots[0].score if slots else 0.0

    async def schedule_multiple_tasks(self, tasks: list[Task]) -> list[Task]:
        """
        Schedule all unlocked tasks in the list.

        Locked tasks keep their placement but are returned with the rest.

        Args:
            tasks: Tasks to place (locked and unlocked)

        Returns:
            Every input task, re-read from storage
        """
        tasks_to_schedule = [
            task.model_copy(update={"duration": task.duration or self.default_duration})
            for task in tasks
            if not task.schedule_locked
        ]

        # Stale placements must neither block nor survive this run
        cleared = await self.task_repo.clear_schedules(
            self.user_id, [task.id for task in tasks_to_schedule]
        )
        for task in tasks_to_schedule:
            task.scheduled_start = None
            task.scheduled_end = None
        logger.info(
            f"Scheduling {len(tasks_to_schedule)} tasks "
            f"({len(tasks) - len(tasks_to_schedule)} locked, {cleared} cleared)"
        )

        scores: dict[UUID, float] = {}
        for offset in range(0, len(tasks_to_schedule), self.batch_size):
            batch = tasks_to_schedule[offset:offset + self.batch_size]
            batch_scores = await asyncio.gather(*(self._preliminary_score(task) for task in batch))
            for task, score in zip(batch, batch_scores):
                scores[task.id] = score

        # sorted() is stable, so equal scores keep input order
        ordered = sorted(tasks_to_schedule, key=lambda task: scores[task.id], reverse=True)
        logger.debug(
            "Scheduling order: "
            + ", ".join(f"{task.title} ({scores[task.id]:.3f})" for task in ordered)
        )

        scheduled_count = 0
        for task in ordered:
            if await self.schedule_task(task):
                scheduled_count += 1

        logger.info(f"Scheduled {scheduled_count}/{len(tasks_to_schedule)} tasks")
        return await self.task_repo.list_by_ids(self.user_id, [task.id for task in tasks])

    async def schedule_task(self, task: Task) -> Optional[Task]:
        """
        Commit the best slot for one task.

        Returns:
            The updated task, or None when no window has a free slot
        """
        duration = task.duration or self.default_duration
        if task.duration is None:
            task = task.model_copy(update={"duration": duration})

        slots = await self._find_first_window_slots(task)
        if not slots:
            logger.info(f"Could not find a slot for task {task.id} ({task.title})")
            return None

        best_slot = slots[0]
        updated_task = await self.task_repo.update_schedule(
            self.user_id,
            task.id,
            TaskScheduleUpdate(
                scheduled_start=best_slot.start,
                scheduled_end=best_slot.end,
                is_auto_scheduled=True,
                duration=duration,
                schedule_score=best_slot.score,
            ),
        )
        self.time_slot_manager.add_scheduled_task_conflict(updated_task)
        logger.debug(
            f"Task {task.id} scheduled {best_slot.start.isoformat()} - "
            f"{best_slot.end.isoformat()} (score {best_slot.score:.3f})"
        )
        return updated_task
