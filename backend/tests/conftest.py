"""
Shared fixtures: throwaway SQLite storage and repositories.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from autoschedule.infrastructure.local.auto_schedule_settings_repository import (
    SqliteAutoScheduleSettingsRepository,
)
from autoschedule.infrastructure.local.calendar_event_repository import SqliteCalendarEventRepository
from autoschedule.infrastructure.local.database import Base
from autoschedule.infrastructure.local.task_repository import SqliteTaskRepository


@pytest.fixture
async def session_factory(tmp_path):
    """Create a per-test SQLite database."""
    # File-backed so concurrent sessions each get their own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def test_user_id():
    return "test_user"


@pytest.fixture
def task_repo(session_factory):
    return SqliteTaskRepository(session_factory)


@pytest.fixture
def event_repo(session_factory):
    return SqliteCalendarEventRepository(session_factory)


@pytest.fixture
def settings_repo(session_factory):
    return SqliteAutoScheduleSettingsRepository(session_factory)
