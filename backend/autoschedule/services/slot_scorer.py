"""
Slot scoring for auto-scheduling.

Rates a candidate slot for a task as a weighted average of seven factors.
Deadline proximity carries the largest weight, so overdue tasks outrank
high-priority tasks that are not yet due.
"""

import math
from datetime import datetime
from typing import Callable, Optional

from autoschedule.core.logger import setup_logger
from autoschedule.models.auto_schedule import AutoScheduleSettings
from autoschedule.models.enums import EnergyLevel, Priority, TimePreference
from autoschedule.models.scheduling import NO_PROJECT_KEY, ScheduledInterval, SlotScore, TimeSlot
from autoschedule.models.task import Task
from autoschedule.utils.auto_schedule import get_energy_level_for_time
from autoschedule.utils.datetime_utils import minutes_between, now_utc, to_local, whole_hours_between

logger = setup_logger(__name__)

MINUTES_PER_DAY = 24 * 60

WEIGHTS = {
    "workHourAlignment": 1.0,
    "energyLevelMatch": 1.5,
    "projectProximity": 0.5,
    "bufferAdequacy": 0.8,
    "timePreference": 1.2,
    "deadlineProximity": 3.0,
    "priorityScore": 1.8,
}

ENERGY_ORDER = [EnergyLevel.HIGH, EnergyLevel.MEDIUM, EnergyLevel.LOW]

# [start, end) local hours
TIME_PREFERENCE_RANGES = {
    TimePreference.MORNING: (5, 12),
    TimePreference.AFTERNOON: (12, 17),
    TimePreference.EVENING: (17, 22),
}

PRIORITY_SCORES = {
    Priority.HIGH: 1.0,
    Priority.MEDIUM: 0.75,
    Priority.LOW: 0.5,
    Priority.NONE: 0.25,
}

OVERDUE_MAX_SCORE = 2.0
OVERDUE_SCALE_DAYS = 14
OVERDUE_MAX_PENALTY = 0.5
DEADLINE_DECAY_DAYS = 3
DEADLINE_MAX_SCORE = 0.99
NO_PREFERENCE_HALF_LIFE_DAYS = 7
PROJECT_DECAY_HOURS = 4

ScheduledLedger = dict[str, list[ScheduledInterval]]


class SlotScorer:
    """
    Scores slots against a task and the per-project ledger of placements.

    The ledger maps a project ID (or "none" for tasks without a project) to
    intervals already taken in the current run. The dict is shared with the
    TimeSlotManager, which appends to it as tasks are committed.
    """

    def __init__(
        self,
        settings: AutoScheduleSettings,
        scheduled_tasks: Optional[ScheduledLedger] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.settings = settings
        self.scheduled_tasks: ScheduledLedger = scheduled_tasks if scheduled_tasks is not None else {}
        self._clock = clock

    def update_scheduled_tasks(self, tasks: list[Task]) -> None:
        """Rebuild the ledger from tasks that hold a time slot."""
        self.scheduled_tasks.clear()
        for task in tasks:
            if task.scheduled_start is None or task.scheduled_end is None:
                continue
            key = str(task.project_id) if task.project_id else NO_PROJECT_KEY
            self.scheduled_tasks.setdefault(key, []).append(
                ScheduledInterval(start=task.scheduled_start, end=task.scheduled_end)
            )

    def get_scheduled_tasks(self) -> ScheduledLedger:
        return self.scheduled_tasks

    def score_slot(self, slot: TimeSlot, task: Task) -> SlotScore:
        """
        Score a slot for a task.

        Returns:
            SlotScore with the weighted total (0..~2.0 when overdue) and
            the raw factor values
        """
        factors = {
            "workHourAlignment": self._score_work_hour_alignment(slot),
            "energyLevelMatch": self._score_energy_level_match(slot, task),
            "projectProximity": self._score_project_proximity(slot, task),
            "bufferAdequacy": self._score_buffer_adequacy(slot),
            "timePreference": self._score_time_preference(slot, task),
            "deadlineProximity": self._score_deadline_proximity(slot, task),
            "priorityScore": self._score_priority(task),
        }

        total_weight = sum(WEIGHTS.values())
        weighted_sum = 0.0
        for name, value in factors.items():
            contribution = value * WEIGHTS[name]
            weighted_sum += contribution
            logger.debug(
                f"{name}: value={value:.3f} weight={WEIGHTS[name]} "
                f"contribution={contribution:.3f} ({contribution / total_weight:.1%} of total)"
            )

        total = weighted_sum / total_weight
        logger.debug(f"Slot {slot.start.isoformat()} for task {task.id}: total={total:.4f}")
        return SlotScore(total=total, factors=factors)

    def _score_work_hour_alignment(self, slot: TimeSlot) -> float:
        return 1.0 if slot.is_within_work_hours else 0.0

    def _score_energy_level_match(self, slot: TimeSlot, task: Task) -> float:
        if not task.energy_level:
            return 0.5

        local_hour = to_local(slot.start, self.settings.time_zone).hour
        slot_energy = get_energy_level_for_time(local_hour, self.settings)
        if slot_energy is None:
            return 0.5

        distance = abs(ENERGY_ORDER.index(task.energy_level) - ENERGY_ORDER.index(slot_energy))
        if distance == 0:
            return 1.0
        return 0.5 if distance == 1 else 0.0

    def _score_buffer_adequacy(self, slot: TimeSlot) -> float:
        return 1.0 if slot.has_buffer_time else 0.0

    def _score_time_preference(self, slot: TimeSlot, task: Task) -> float:
        if task.preferred_time:
            start, end = TIME_PREFERENCE_RANGES[task.preferred_time]
            hour = to_local(slot.start, self.settings.time_zone).hour
            return 1.0 if start <= hour < end else 0.0

        # Earlier is better: exactly 0.5 one week out
        days_to_slot = minutes_between(slot.start, self._clock()) / MINUTES_PER_DAY
        return math.exp(-(math.log(2) / NO_PREFERENCE_HALF_LIFE_DAYS) * days_to_slot)

    def _score_deadline_proximity(self, slot: TimeSlot, task: Task) -> float:
        if not task.due_date:
            return 0.5

        now = self._clock()
        minutes_overdue = minutes_between(now, task.due_date)

        if minutes_overdue > 0:
            days_overdue = minutes_overdue / MINUTES_PER_DAY
            base_score = min(OVERDUE_MAX_SCORE, 1.0 + days_overdue / OVERDUE_SCALE_DAYS)
            days_to_slot = minutes_between(slot.start, now) / MINUTES_PER_DAY
            time_penalty = min(OVERDUE_MAX_PENALTY, days_to_slot / OVERDUE_SCALE_DAYS)
            logger.debug(
                f"Overdue by {days_overdue:.2f}d: base={base_score:.3f} penalty={time_penalty:.3f}"
            )
            return base_score * (1 - time_penalty)

        days_to_deadline = minutes_between(task.due_date, slot.start) / MINUTES_PER_DAY
        return min(DEADLINE_MAX_SCORE, math.exp(-days_to_deadline / DEADLINE_DECAY_DAYS))

    def _score_project_proximity(self, slot: TimeSlot, task: Task) -> float:
        if not task.project_id or not self.settings.group_by_project:
            return 0.5

        project_tasks = self.scheduled_tasks.get(str(task.project_id))
        if not project_tasks:
            return 0.5

        closest = min(
            min(
                abs(whole_hours_between(slot.start, interval.start)),
                abs(whole_hours_between(slot.end, interval.end)),
            )
            for interval in project_tasks
        )
        return math.exp(-closest / PROJECT_DECAY_HOURS)

    def _score_priority(self, task: Task) -> float:
        if not task.priority:
            return PRIORITY_SCORES[Priority.NONE]
        return PRIORITY_SCORES[task.priority]
