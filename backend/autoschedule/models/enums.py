"""
Enum definitions for the scheduling engine.

These enums are used across models and provide type-safe status/priority values.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Task priority. NONE and an unset priority score the same."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class EnergyLevel(str, Enum):
    """
    Energy level for tasks and for time-of-day windows.

    HIGH = Heavy task requiring focus and concentration
    MEDIUM = Moderate task requiring some focus
    LOW = Light task that can be done in spare moments
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimePreference(str, Enum):
    """Preferred time of day for a task."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class ConflictType(str, Enum):
    """What a slot collided with."""

    CALENDAR_EVENT = "calendar_event"
    TASK = "task"


class ConflictSourceType(str, Enum):
    """Origin of a conflicting item."""

    CALENDAR = "calendar"
    TASK = "task"
