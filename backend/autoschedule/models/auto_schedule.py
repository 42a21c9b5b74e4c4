"""
Per-user auto-schedule settings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from autoschedule.core.exceptions import ValidationError
from autoschedule.utils.auto_schedule import parse_selected_calendars, parse_work_days

DEFAULT_WORK_DAYS = [1, 2, 3, 4, 5]  # Monday to Friday
DEFAULT_WORK_HOUR_START = 9
DEFAULT_WORK_HOUR_END = 17
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_TIME_ZONE = "UTC"

_Hour = Optional[int]


def _coerce_list(parser, value: Any):
    try:
        return parser(value)
    except ValidationError as exc:
        raise ValueError(exc.message) from exc


class AutoScheduleSettingsBase(BaseModel):
    work_days: list[int] = Field(default_factory=lambda: list(DEFAULT_WORK_DAYS))
    work_hour_start: int = Field(DEFAULT_WORK_HOUR_START, ge=0, le=23)
    work_hour_end: int = Field(DEFAULT_WORK_HOUR_END, ge=1, le=24)
    buffer_minutes: int = Field(DEFAULT_BUFFER_MINUTES, ge=0)
    selected_calendars: list[str] = Field(default_factory=list)
    group_by_project: bool = False
    high_energy_start: _Hour = Field(None, ge=0, le=23)
    high_energy_end: _Hour = Field(None, ge=0, le=24)
    medium_energy_start: _Hour = Field(None, ge=0, le=23)
    medium_energy_end: _Hour = Field(None, ge=0, le=24)
    low_energy_start: _Hour = Field(None, ge=0, le=23)
    low_energy_end: _Hour = Field(None, ge=0, le=24)
    time_zone: str = Field(DEFAULT_TIME_ZONE, description="IANA time zone of the user")

    @field_validator("work_days", mode="before")
    @classmethod
    def parse_days(cls, value: Any) -> list[int]:
        return _coerce_list(parse_work_days, value)

    @field_validator("selected_calendars", mode="before")
    @classmethod
    def parse_calendars(cls, value: Any) -> list[str]:
        return _coerce_list(parse_selected_calendars, value)


class AutoScheduleSettings(AutoScheduleSettingsBase):
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AutoScheduleSettingsUpdate(BaseModel):
    work_days: Optional[list[int]] = None
    work_hour_start: _Hour = Field(None, ge=0, le=23)
    work_hour_end: _Hour = Field(None, ge=1, le=24)
    buffer_minutes: Optional[int] = Field(None, ge=0)
    selected_calendars: Optional[list[str]] = None
    group_by_project: Optional[bool] = None
    high_energy_start: _Hour = Field(None, ge=0, le=23)
    high_energy_end: _Hour = Field(None, ge=0, le=24)
    medium_energy_start: _Hour = Field(None, ge=0, le=23)
    medium_energy_end: _Hour = Field(None, ge=0, le=24)
    low_energy_start: _Hour = Field(None, ge=0, le=23)
    low_energy_end: _Hour = Field(None, ge=0, le=24)
    time_zone: Optional[str] = None

    @field_validator("work_days", mode="before")
    @classmethod
    def parse_days(cls, value: Any) -> Optional[list[int]]:
        if value is None:
            return None
        return _coerce_list(parse_work_days, value)

    @field_validator("selected_calendars", mode="before")
    @classmethod
    def parse_calendars(cls, value: Any) -> Optional[list[str]]:
        if value is None:
            return None
        return _coerce_list(parse_selected_calendars, value)
