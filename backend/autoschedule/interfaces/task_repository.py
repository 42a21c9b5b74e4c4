"""
Task repository interface.

Defines the task persistence operations the scheduler depends on.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from autoschedule.models.task import Task, TaskCreate, TaskScheduleUpdate


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """
        Create a new task.

        Args:
            user_id: Owner user ID
            task: Task creation data

        Returns:
            Created task with generated ID and timestamps
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, task_id: UUID) -> Optional[Task]:
        """
        Get a task by ID.

        Returns:
            Task if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_ids(self, user_id: str, task_ids: list[UUID]) -> list[Task]:
        """
        Get all tasks whose ID is in `task_ids`.

        Missing IDs are skipped; order follows `task_ids`.
        """
        pass

    @abstractmethod
    async def list_auto_schedulable(self, user_id: str, locked: bool) -> list[Task]:
        """
        List auto-scheduled tasks that are neither completed nor in progress.

        Args:
            user_id: Owner user ID
            locked: Return locked tasks (True) or unlocked tasks (False)
        """
        pass

    @abstractmethod
    async def list_scheduled(
        self,
        user_id: str,
        exclude_task_id: Optional[UUID] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Task]:
        """
        List auto-scheduled tasks that have both scheduled_start and scheduled_end.

        Args:
            user_id: Owner user ID
            exclude_task_id: Task to leave out (the one being placed)
            start: When given with `end`, only tasks overlapping [start, end)
            end: See `start`
        """
        pass

    @abstractmethod
    async def clear_schedules(self, user_id: str, task_ids: list[UUID]) -> int:
        """
        Reset scheduled_start, scheduled_end and schedule_score.

        Returns:
            Number of tasks updated
        """
        pass

    @abstractmethod
    async def update_schedule(
        self, user_id: str, task_id: UUID, update: TaskScheduleUpdate
    ) -> Task:
        """
        Write scheduler-owned fields of a task.

        Raises:
            NotFoundError: If task not found
        """
        pass

    @abstractmethod
    async def mark_last_scheduled(
        self, user_id: str, task_ids: list[UUID], scheduled_at: datetime
    ) -> int:
        """
        Stamp last_scheduled on the given tasks.

        Returns:
            Number of tasks updated
        """
        pass
