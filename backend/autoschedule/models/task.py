"""
Task model definitions.

Tasks are consumed by the scheduler; only the scheduled fields and the
schedule score are written back.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from autoschedule.models.enums import EnergyLevel, Priority, TaskStatus, TimePreference
from autoschedule.utils.datetime_utils import ensure_utc

_DATETIME_FIELDS = (
    "due_date",
    "start_date",
    "scheduled_start",
    "scheduled_end",
    "last_scheduled",
)


class TaskBase(BaseModel):
    """Base task fields shared across create/read."""

    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(None, max_length=2000)
    status: TaskStatus = Field(TaskStatus.TODO)
    project_id: Optional[UUID] = Field(None, description="Owning project (None = no project)")
    duration: Optional[int] = Field(None, ge=1, description="Duration in minutes")
    due_date: Optional[datetime] = Field(None, description="Deadline")
    start_date: Optional[datetime] = Field(
        None,
        description="Not-before constraint: no slot may start earlier",
    )
    priority: Optional[Priority] = Field(None, description="Unset scores like NONE")
    energy_level: Optional[EnergyLevel] = None
    preferred_time: Optional[TimePreference] = None
    is_auto_scheduled: bool = Field(True, description="Managed by the auto-scheduler")
    schedule_locked: bool = Field(
        False,
        description="Keep the current placement; still occupies its slot",
    )
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    @field_validator(*_DATETIME_FIELDS, mode="after", check_fields=False)
    @classmethod
    def normalize_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Store every instant as timezone-aware UTC."""
        return ensure_utc(value)


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    pass


class TaskScheduleUpdate(BaseModel):
    """Partial update of the scheduler-owned fields."""

    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    is_auto_scheduled: Optional[bool] = None
    duration: Optional[int] = Field(None, ge=1)
    schedule_score: Optional[float] = None


class Task(TaskBase):
    """Complete task model with all fields."""

    id: UUID
    user_id: str = Field(..., description="Owner user ID")
    schedule_score: Optional[float] = Field(None, description="Score of the chosen slot (0..~2.0)")
    last_scheduled: Optional[datetime] = Field(None, description="Last auto-scheduling run")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @property
    def is_scheduled(self) -> bool:
        """Both scheduled boundaries are set."""
        return self.scheduled_start is not None and self.scheduled_end is not None
