"""
Value types used inside a scheduling run.

These are ephemeral: slots and conflicts are created, scored and discarded
within a single slot search, so they are plain mutable dataclasses rather
than pydantic models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from autoschedule.models.calendar import CalendarEvent
from autoschedule.models.enums import ConflictSourceType, ConflictType, EnergyLevel

NO_PROJECT_KEY = "none"


@dataclass
class ConflictSource:
    type: ConflictSourceType
    id: str


@dataclass
class Conflict:
    type: ConflictType
    start: datetime
    end: datetime
    title: str
    source: ConflictSource


@dataclass
class TimeSlot:
    """Candidate interval for placing one task."""

    start: datetime
    end: datetime
    score: float = 0.0
    conflicts: list[Conflict] = field(default_factory=list)
    energy_level: Optional[EnergyLevel] = None
    is_within_work_hours: bool = False
    has_buffer_time: bool = False


@dataclass
class SlotScore:
    total: float
    factors: dict[str, float]


@dataclass
class BatchConflictCheck:
    slot: TimeSlot
    task_id: Optional[UUID]
    conflicts: list[Conflict]


@dataclass
class ScheduledInterval:
    """Ledger entry for a task already placed in this run."""

    start: datetime
    end: datetime


@dataclass
class EventCache:
    """Single-slot cache of calendar events for whole weeks."""

    events: list[CalendarEvent]
    start_day: datetime
    end_day: datetime
    calendar_ids: list[str]
    timestamp: datetime
