"""
Entry point for rescheduling everything a user has queued for auto-scheduling.
"""

from datetime import datetime
from typing import Callable

from autoschedule.core.exceptions import NotFoundError
from autoschedule.core.logger import setup_logger
from autoschedule.interfaces.auto_schedule_settings_repository import IAutoScheduleSettingsRepository
from autoschedule.interfaces.calendar_event_repository import ICalendarEventRepository
from autoschedule.interfaces.task_repository import ITaskRepository
from autoschedule.models.task import Task
from autoschedule.services.calendar_service import CalendarService
from autoschedule.services.scheduling_service import SchedulingService
from autoschedule.services.time_slot_manager import TimeSlotManager
from autoschedule.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


async def schedule_all_tasks_for_user(
    user_id: str,
    task_repo: ITaskRepository,
    event_repo: ICalendarEventRepository,
    settings_repo: IAutoScheduleSettingsRepository,
    clock: Callable[[], datetime] = now_utc,
) -> list[Task]:
    """
    Reschedule every open auto-scheduled task of a user.

    Unlocked tasks get new slots; locked tasks keep theirs and block them.
    Completed and in-progress tasks are left alone.

    Returns:
        Locked and unlocked tasks as stored after the run

    Raises:
        NotFoundError: If the user has no auto-schedule settings
    """
    try:
        logger.info(f"Starting task scheduling for user {user_id}")

        settings = await settings_repo.get(user_id)
        if not settings:
            raise NotFoundError(
                "Auto-schedule settings not found for user",
                details={"user_id": user_id},
            )

        tasks_to_schedule = await task_repo.list_auto_schedulable(user_id, locked=False)
        locked_tasks = await task_repo.list_auto_schedulable(user_id, locked=True)
        logger.info(
            f"Found {len(tasks_to_schedule)} tasks to schedule, {len(locked_tasks)} locked"
        )

        calendar_service = CalendarService(
            event_repo,
            task_repo,
            user_id,
            time_zone=settings.time_zone,
            clock=clock,
        )
        time_slot_manager = TimeSlotManager(
            settings,
            calendar_service,
            task_repo,
            user_id,
            clock=clock,
        )
        scheduling_service = SchedulingService(
            task_repo,
            time_slot_manager,
            user_id,
            clock=clock,
        )

        updated_tasks = await scheduling_service.schedule_multiple_tasks(
            tasks_to_schedule + locked_tasks
        )

        task_ids = [task.id for task in updated_tasks]
        await task_repo.mark_last_scheduled(user_id, task_ids, clock())
        result = await task_repo.list_by_ids(user_id, task_ids)

        logger.info(f"Task scheduling completed for user {user_id}: {len(result)} tasks")
        return result
    except Exception as e:
        logger.error(f"Error scheduling tasks for user {user_id}: {e}")
        raise
