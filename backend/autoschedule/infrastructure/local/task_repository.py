"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy import update as sa_update

from autoschedule.core.exceptions import NotFoundError
from autoschedule.infrastructure.local.database import TaskORM, get_session_factory
from autoschedule.interfaces.task_repository import ITaskRepository
from autoschedule.models.enums import TaskStatus
from autoschedule.models.task import Task, TaskCreate, TaskScheduleUpdate
from autoschedule.utils.datetime_utils import ensure_utc, to_naive_utc

_DATETIME_FIELDS = {"scheduled_start", "scheduled_end"}


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=UUID(orm.id),
            user_id=orm.user_id,
            project_id=UUID(orm.project_id) if orm.project_id else None,
            title=orm.title,
            description=orm.description,
            status=TaskStatus(orm.status),
            duration=orm.duration,
            due_date=ensure_utc(orm.due_date),
            start_date=ensure_utc(orm.start_date),
            priority=orm.priority,
            energy_level=orm.energy_level,
            preferred_time=orm.preferred_time,
            is_auto_scheduled=bool(orm.is_auto_scheduled),
            schedule_locked=bool(orm.schedule_locked),
            scheduled_start=ensure_utc(orm.scheduled_start),
            scheduled_end=ensure_utc(orm.scheduled_end),
            schedule_score=orm.schedule_score,
            last_scheduled=ensure_utc(orm.last_scheduled),
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """Create a new task."""
        async with self._session_factory() as session:
            orm = TaskORM(
                id=str(uuid4()),
                user_id=user_id,
                project_id=str(task.project_id) if task.project_id else None,
                title=task.title,
                description=task.description,
                status=task.status.value,
                duration=task.duration,
                due_date=to_naive_utc(task.due_date),
                start_date=to_naive_utc(task.start_date),
                priority=task.priority.value if task.priority else None,
                energy_level=task.energy_level.value if task.energy_level else None,
                preferred_time=task.preferred_time.value if task.preferred_time else None,
                is_auto_scheduled=task.is_auto_scheduled,
                schedule_locked=task.schedule_locked,
                scheduled_start=to_naive_utc(task.scheduled_start),
                scheduled_end=to_naive_utc(task.scheduled_end),
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, user_id: str, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(TaskORM.id == str(task_id), TaskORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_by_ids(self, user_id: str, task_ids: list[UUID]) -> list[Task]:
        """Get tasks by ID, keeping the requested order."""
        if not task_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.id.in_([str(task_id) for task_id in task_ids]),
                    )
                )
            )
            by_id = {orm.id: self._orm_to_model(orm) for orm in result.scalars().all()}
            return [by_id[str(task_id)] for task_id in task_ids if str(task_id) in by_id]

    async def list_auto_schedulable(self, user_id: str, locked: bool) -> list[Task]:
        """List auto-scheduled tasks that still need a time slot."""
        async with self._session_factory() as session:
            query = (
                select(TaskORM)
                .where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.is_auto_scheduled.is_(True),
                        TaskORM.schedule_locked.is_(locked),
                        TaskORM.status.notin_(
                            [TaskStatus.COMPLETED.value, TaskStatus.IN_PROGRESS.value]
                        ),
                    )
                )
                .order_by(TaskORM.created_at)
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_scheduled(
        self,
        user_id: str,
        exclude_task_id: Optional[UUID] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Task]:
        """List auto-scheduled tasks holding a time slot."""
        async with self._session_factory() as session:
            query = select(TaskORM).where(
                and_(
                    TaskORM.user_id == user_id,
                    TaskORM.is_auto_scheduled.is_(True),
                    TaskORM.scheduled_start.is_not(None),
                    TaskORM.scheduled_end.is_not(None),
                )
            )

            if exclude_task_id is not None:
                query = query.where(TaskORM.id != str(exclude_task_id))

            if start is not None and end is not None:
                query = query.where(
                    and_(
                        TaskORM.scheduled_start < to_naive_utc(end),
                        TaskORM.scheduled_end > to_naive_utc(start),
                    )
                )

            query = query.order_by(TaskORM.scheduled_start)
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def clear_schedules(self, user_id: str, task_ids: list[UUID]) -> int:
        """Reset scheduled fields for the given tasks."""
        if not task_ids:
            return 0
        async with self._session_factory() as session:
            result = await session.execute(
                sa_update(TaskORM)
                .where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.id.in_([str(task_id) for task_id in task_ids]),
                    )
                )
                .values(
                    scheduled_start=None,
                    scheduled_end=None,
                    schedule_score=None,
                    updated_at=datetime.utcnow(),
                )
            )
            await session.commit()
            return result.rowcount

    async def update_schedule(
        self, user_id: str, task_id: UUID, update: TaskScheduleUpdate
    ) -> Task:
        """Write scheduler-owned fields."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM).where(
                    and_(TaskORM.id == str(task_id), TaskORM.user_id == user_id)
                )
            )
            orm = result.scalar_one_or_none()

            if not orm:
                raise NotFoundError(f"Task {task_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field in _DATETIME_FIELDS:
                    value = to_naive_utc(value)
                setattr(orm, field, value)

            orm.updated_at = datetime.utcnow()

            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def mark_last_scheduled(
        self, user_id: str, task_ids: list[UUID], scheduled_at: datetime
    ) -> int:
        """Stamp last_scheduled on the given tasks."""
        if not task_ids:
            return 0
        async with self._session_factory() as session:
            result = await session.execute(
                sa_update(TaskORM)
                .where(
                    and_(
                        TaskORM.user_id == user_id,
                        TaskORM.id.in_([str(task_id) for task_id in task_ids]),
                    )
                )
                .values(last_scheduled=to_naive_utc(scheduled_at))
            )
            await session.commit()
            return result.rowcount
