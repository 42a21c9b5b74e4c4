"""
SQLite implementation of calendar event repository.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from autoschedule.infrastructure.local.database import CalendarEventORM, get_session_factory
from autoschedule.interfaces.calendar_event_repository import ICalendarEventRepository
from autoschedule.models.calendar import CalendarEvent, CalendarEventCreate
from autoschedule.utils.datetime_utils import ensure_utc, to_naive_utc


class SqliteCalendarEventRepository(ICalendarEventRepository):
    """SQLite implementation of calendar event repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: CalendarEventORM) -> CalendarEvent:
        return CalendarEvent(
            id=UUID(orm.id),
            feed_id=orm.feed_id,
            title=orm.title,
            start=ensure_utc(orm.start),
            end=ensure_utc(orm.end),
            all_day=bool(orm.all_day),
            location=orm.location,
        )

    async def create(self, user_id: str, event: CalendarEventCreate) -> CalendarEvent:
        async with self._session_factory() as session:
            orm = CalendarEventORM(
                id=str(uuid4()),
                user_id=user_id,
                feed_id=event.feed_id,
                title=event.title,
                start=to_naive_utc(event.start),
                end=to_naive_utc(event.end),
                all_day=event.all_day,
                location=event.location,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def list_in_range(
        self,
        feed_ids: list[str],
        start: datetime,
        end: datetime,
    ) -> list[CalendarEvent]:
        if not feed_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(CalendarEventORM)
                .where(
                    and_(
                        CalendarEventORM.feed_id.in_(feed_ids),
                        CalendarEventORM.start <= to_naive_utc(end),
                        CalendarEventORM.end >= to_naive_utc(start),
                    )
                )
                .order_by(CalendarEventORM.start)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]
