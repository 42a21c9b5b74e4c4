"""
SQLite implementation of auto-schedule settings repository.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from autoschedule.infrastructure.local.database import AutoScheduleSettingsORM, get_session_factory
from autoschedule.interfaces.auto_schedule_settings_repository import IAutoScheduleSettingsRepository
from autoschedule.models.auto_schedule import (
    AutoScheduleSettings,
    AutoScheduleSettingsBase,
    AutoScheduleSettingsUpdate,
)
from autoschedule.utils.datetime_utils import ensure_utc, now_utc, to_naive_utc


class SqliteAutoScheduleSettingsRepository(IAutoScheduleSettingsRepository):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: AutoScheduleSettingsORM) -> AutoScheduleSettings:
        return AutoScheduleSettings(
            user_id=orm.user_id,
            work_days=orm.work_days or [],
            work_hour_start=orm.work_hour_start,
            work_hour_end=orm.work_hour_end,
            buffer_minutes=orm.buffer_minutes,
            selected_calendars=orm.selected_calendars or [],
            group_by_project=bool(orm.group_by_project),
            high_energy_start=orm.high_energy_start,
            high_energy_end=orm.high_energy_end,
            medium_energy_start=orm.medium_energy_start,
            medium_energy_end=orm.medium_energy_end,
            low_energy_start=orm.low_energy_start,
            low_energy_end=orm.low_energy_end,
            time_zone=orm.time_zone,
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
        )

    async def get(self, user_id: str) -> Optional[AutoScheduleSettings]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AutoScheduleSettingsORM).where(AutoScheduleSettingsORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def upsert(self, user_id: str, update: AutoScheduleSettingsUpdate) -> AutoScheduleSettings:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AutoScheduleSettingsORM).where(AutoScheduleSettingsORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            now = to_naive_utc(now_utc())
            changes = update.model_dump(exclude_unset=True)
            if orm:
                for field, value in changes.items():
                    if value is not None:
                        setattr(orm, field, value)
                orm.updated_at = now
            else:
                # Unset fields fall back to the defaults (Mon-Fri, 9-17)
                values = AutoScheduleSettingsBase(
                    **{field: value for field, value in changes.items() if value is not None}
                )
                orm = AutoScheduleSettingsORM(
                    user_id=user_id,
                    **values.model_dump(),
                    created_at=now,
                    updated_at=now,
                )
                session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
