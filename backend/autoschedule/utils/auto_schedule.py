"""
Helpers for interpreting auto-schedule settings.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

from autoschedule.core.exceptions import ValidationError
from autoschedule.models.enums import EnergyLevel

if TYPE_CHECKING:
    from autoschedule.models.auto_schedule import AutoScheduleSettings


def _parse_json_list(value: Any, field: str) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else []
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{field} is not valid JSON", details={"value": value}) from exc
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValidationError(f"{field} must be a list", details={"value": value})
    return list(value)


def parse_work_days(value: Any) -> list[int]:
    """
    Parse work days given as a list or a JSON string such as "[1,2,3,4,5]".

    Days use 0 = Sunday ... 6 = Saturday. Duplicates are removed and the
    result is sorted.
    """
    days = _parse_json_list(value, "work_days")
    try:
        parsed = sorted({int(day) for day in days})
    except (TypeError, ValueError) as exc:
        raise ValidationError("work_days must contain integers", details={"value": days}) from exc
    if any(day < 0 or day > 6 for day in parsed):
        raise ValidationError("work_days must be between 0 and 6", details={"value": parsed})
    return parsed


def parse_selected_calendars(value: Any) -> list[str]:
    """Parse calendar IDs given as a list or a JSON string."""
    return [str(calendar_id) for calendar_id in _parse_json_list(value, "selected_calendars")]


def _in_hour_window(hour: int, start: Optional[int], end: Optional[int]) -> bool:
    if start is None or end is None:
        return False
    if start <= end:
        return start <= hour < end
    # Window wraps past midnight (e.g. 22 -> 2)
    return hour >= start or hour < end


def get_energy_level_for_time(
    hour: int,
    settings: "AutoScheduleSettings",
) -> Optional[EnergyLevel]:
    """
    Map a local hour to the user's configured energy level.

    Windows are [start, end) hours and are checked high, medium, low in
    that order. Returns None when no window covers the hour.
    """
    windows = (
        (EnergyLevel.HIGH, settings.high_energy_start, settings.high_energy_end),
        (EnergyLevel.MEDIUM, settings.medium_energy_start, settings.medium_energy_end),
        (EnergyLevel.LOW, settings.low_energy_start, settings.low_energy_end),
    )
    for level, start, end in windows:
        if _in_hour_window(hour, start, end):
            return level
    return None
