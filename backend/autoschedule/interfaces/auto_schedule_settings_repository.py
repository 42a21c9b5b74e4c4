"""
Auto-schedule settings repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from autoschedule.models.auto_schedule import AutoScheduleSettings, AutoScheduleSettingsUpdate


class IAutoScheduleSettingsRepository(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[AutoScheduleSettings]:
        pass

    @abstractmethod
    async def upsert(self, user_id: str, update: AutoScheduleSettingsUpdate) -> AutoScheduleSettings:
        pass
