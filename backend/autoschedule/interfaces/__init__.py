"""Abstract interfaces for infrastructure abstraction."""

from autoschedule.interfaces.auto_schedule_settings_repository import IAutoScheduleSettingsRepository
from autoschedule.interfaces.calendar_event_repository import ICalendarEventRepository
from autoschedule.interfaces.task_repository import ITaskRepository

__all__ = [
    "ITaskRepository",
    "ICalendarEventRepository",
    "IAutoScheduleSettingsRepository",
]
