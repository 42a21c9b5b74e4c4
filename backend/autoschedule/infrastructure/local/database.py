"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
Datetime columns hold naive UTC values.
"""

from datetime import datetime
from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    JSON,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from autoschedule.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    project_id = Column(String(36), nullable=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="todo", index=True)
    duration = Column(Integer, nullable=True)
    due_date = Column(DateTime, nullable=True)
    start_date = Column(DateTime, nullable=True)
    priority = Column(String(10), nullable=True)
    energy_level = Column(String(10), nullable=True)
    preferred_time = Column(String(10), nullable=True)

    # Auto-scheduling fields
    is_auto_scheduled = Column(Boolean, default=True, index=True)
    schedule_locked = Column(Boolean, default=False)
    scheduled_start = Column(DateTime, nullable=True, index=True)
    scheduled_end = Column(DateTime, nullable=True, index=True)
    schedule_score = Column(Float, nullable=True)
    last_scheduled = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CalendarEventORM(Base):
    """Synced calendar event ORM model."""

    __tablename__ = "calendar_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    feed_id = Column(String(255), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    start = Column(DateTime, nullable=False, index=True)
    end = Column(DateTime, nullable=False, index=True)
    all_day = Column(Boolean, default=False)
    location = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class AutoScheduleSettingsORM(Base):
    """Per-user auto-schedule settings ORM model."""

    __tablename__ = "auto_schedule_settings"

    user_id = Column(String(255), primary_key=True)
    work_days = Column(JSON, nullable=False, default=list)
    work_hour_start = Column(Integer, nullable=False)
    work_hour_end = Column(Integer, nullable=False)
    buffer_minutes = Column(Integer, nullable=False)
    selected_calendars = Column(JSON, nullable=False, default=list)
    group_by_project = Column(Boolean, default=False)
    high_energy_start = Column(Integer, nullable=True)
    high_energy_end = Column(Integer, nullable=True)
    medium_energy_start = Column(Integer, nullable=True)
    medium_energy_end = Column(Integer, nullable=True)
    low_energy_start = Column(Integer, nullable=True)
    low_energy_end = Column(Integer, nullable=True)
    time_zone = Column(String(64), nullable=False, default="UTC")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


@lru_cache()
def get_engine() -> AsyncEngine:
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
