"""
Unit tests for CalendarService.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from autoschedule.models.calendar import CalendarEvent
from autoschedule.models.enums import ConflictSourceType, ConflictType
from autoschedule.models.scheduling import TimeSlot
from autoschedule.models.task import Task
from autoschedule.services.calendar_service import CalendarService
from autoschedule.utils.datetime_utils import UTC

# Monday
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)


def make_event(start: datetime, end: datetime, title: str = "Meeting", feed_id: str = "cal-1") -> CalendarEvent:
    return CalendarEvent(id=uuid4(), feed_id=feed_id, title=title, start=start, end=end)


def make_scheduled_task(start: datetime, end: datetime, title: str = "Scheduled") -> Task:
    return Task(
        id=uuid4(),
        user_id="test_user",
        title=title,
        scheduled_start=start,
        scheduled_end=end,
        created_at=NOW,
        updated_at=NOW,
    )


def make_slot(start: datetime, minutes: int = 60) -> TimeSlot:
    return TimeSlot(start=start, end=start + timedelta(minutes=minutes))


@pytest.fixture
def mock_event_repo():
    """Create mock calendar event repository."""
    repo = AsyncMock()
    repo.list_in_range.return_value = []
    return repo


@pytest.fixture
def mock_task_repo():
    """Create mock task repository."""
    repo = AsyncMock()
    repo.list_scheduled.return_value = []
    return repo


@pytest.fixture
def clock():
    return MutableClock(NOW)


@pytest.fixture
def calendar_service(mock_event_repo, mock_task_repo, clock):
    return CalendarService(
        mock_event_repo,
        mock_task_repo,
        "test_user",
        time_zone="UTC",
        cache_ttl_minutes=30,
        clock=clock,
    )


def test_get_week_timestamp_snaps_to_sunday_and_saturday(calendar_service):
    wednesday = datetime(2026, 10, 21, 15, 0, tzinfo=UTC)

    assert calendar_service.get_week_timestamp(wednesday, True) == datetime(2026, 10, 18, tzinfo=UTC)
    assert calendar_service.get_week_timestamp(wednesday, False) == datetime(2026, 10, 24, tzinfo=UTC)


def test_get_week_timestamp_on_boundaries(calendar_service):
    sunday = datetime(2026, 10, 18, 23, 0, tzinfo=UTC)
    saturday = datetime(2026, 10, 24, 1, 0, tzinfo=UTC)

    assert calendar_service.get_week_timestamp(sunday, True) == datetime(2026, 10, 18, tzinfo=UTC)
    assert calendar_service.get_week_timestamp(saturday, False) == datetime(2026, 10, 24, tzinfo=UTC)


def test_get_week_timestamp_uses_local_midnight(mock_event_repo, mock_task_repo):
    service = CalendarService(mock_event_repo, mock_task_repo, "test_user", time_zone="America/New_York")
    # 02:00 UTC Monday is still Sunday evening in New York
    instant = datetime(2026, 10, 19, 2, 0, tzinfo=UTC)

    # Sunday 00:00 EDT
    assert service.get_week_timestamp(instant, True) == datetime(2026, 10, 18, 4, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_get_events_empty_calendars_skips_storage(calendar_service, mock_event_repo):
    result = await calendar_service.get_events(at(9), at(17), [])

    assert result == []
    mock_event_repo.list_in_range.assert_not_called()


@pytest.mark.asyncio
async def test_get_events_fetches_padded_week(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(17), ["cal-1"])

    mock_event_repo.list_in_range.assert_awaited_once_with(
        ["cal-1"],
        datetime(2026, 10, 18, tzinfo=UTC),
        datetime(2026, 10, 25, tzinfo=UTC),
    )


@pytest.mark.asyncio
async def test_get_events_filters_inclusively(calendar_service, mock_event_repo):
    touching = make_event(at(8), at(9), title="Touching")
    inside = make_event(at(10), at(11), title="Inside")
    later = make_event(at(18), at(19), title="Later")
    mock_event_repo.list_in_range.return_value = [touching, inside, later]

    result = await calendar_service.get_events(at(9), at(17), ["cal-1"])

    assert [event.title for event in result] == ["Touching", "Inside"]


@pytest.mark.asyncio
async def test_cache_reused_within_week(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    await calendar_service.get_events(at(9, days=3), at(12, days=3), ["cal-1"])

    assert mock_event_repo.list_in_range.await_count == 1


@pytest.mark.asyncio
async def test_cache_ttl_boundary(calendar_service, mock_event_repo, clock):
    await calendar_service.get_events(at(9), at(10), ["cal-1"])

    clock.now = NOW + timedelta(minutes=30)
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    assert mock_event_repo.list_in_range.await_count == 1

    clock.now = NOW + timedelta(minutes=30, seconds=1)
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    assert mock_event_repo.list_in_range.await_count == 2


@pytest.mark.asyncio
async def test_cache_ignores_calendar_order(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(10), ["cal-1", "cal-2"])
    await calendar_service.get_events(at(9), at(10), ["cal-2", "cal-1"])

    assert mock_event_repo.list_in_range.await_count == 1


@pytest.mark.asyncio
async def test_cache_miss_on_different_calendars(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    await calendar_service.get_events(at(9), at(10), ["cal-1", "cal-2"])

    assert mock_event_repo.list_in_range.await_count == 2


@pytest.mark.asyncio
async def test_cache_miss_outside_cached_weeks(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    await calendar_service.get_events(at(9), at(10, days=7), ["cal-1"])

    assert mock_event_repo.list_in_range.await_count == 2


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(calendar_service, mock_event_repo):
    await calendar_service.get_events(at(9), at(10), ["cal-1"])
    calendar_service.invalidate()
    await calendar_service.get_events(at(9), at(10), ["cal-1"])

    assert mock_event_repo.list_in_range.await_count == 2


@pytest.mark.asyncio
async def test_find_conflicts_first_event_wins(calendar_service, mock_event_repo, mock_task_repo):
    """Only the first overlapping event is reported, and tasks are not checked."""
    mock_event_repo.list_in_range.return_value = [
        make_event(at(10), at(11), title="First"),
        make_event(at(10, 30), at(11, 30), title="Second"),
    ]
    mock_task_repo.list_scheduled.return_value = [make_scheduled_task(at(10), at(11))]

    conflicts = await calendar_service.find_conflicts(make_slot(at(10)), ["cal-1"])

    assert len(conflicts) == 1
    assert conflicts[0].title == "First"
    assert conflicts[0].type == ConflictType.CALENDAR_EVENT
    assert conflicts[0].source.type == ConflictSourceType.CALENDAR
    mock_task_repo.list_scheduled.assert_not_awaited()


@pytest.mark.asyncio
async def test_find_conflicts_event_hit_skips_task_store(
    calendar_service, mock_event_repo, mock_task_repo
):
    mock_event_repo.list_in_range.return_value = [make_event(at(10), at(11), title="Review")]
    mock_task_repo.list_scheduled.side_effect = RuntimeError("task store down")

    conflicts = await calendar_service.find_conflicts(make_slot(at(10)), ["cal-1"])

    assert [conflict.title for conflict in conflicts] == ["Review"]


@pytest.mark.asyncio
async def test_find_conflicts_reports_all_tasks(calendar_service, mock_task_repo):
    mock_task_repo.list_scheduled.return_value = [
        make_scheduled_task(at(9, 30), at(10, 30), title="A"),
        make_scheduled_task(at(10, 30), at(11), title="B"),
        make_scheduled_task(at(11), at(12), title="Adjacent"),
    ]
    task_id = uuid4()

    conflicts = await calendar_service.find_conflicts(make_slot(at(10)), [], exclude_task_id=task_id)

    assert [conflict.title for conflict in conflicts] == ["A", "B"]
    assert all(conflict.type == ConflictType.TASK for conflict in conflicts)
    mock_task_repo.list_scheduled.assert_awaited_once_with(
        "test_user", exclude_task_id=task_id, start=at(10), end=at(11)
    )


@pytest.mark.asyncio
async def test_back_to_back_event_is_not_a_conflict(calendar_service, mock_event_repo):
    mock_event_repo.list_in_range.return_value = [make_event(at(9), at(10))]

    assert await calendar_service.find_conflicts(make_slot(at(10)), ["cal-1"]) == []


@pytest.mark.asyncio
async def test_batch_matches_serial(calendar_service, mock_event_repo, mock_task_repo):
    mock_event_repo.list_in_range.return_value = [
        make_event(at(10), at(11), title="Standup"),
        make_event(at(14), at(15), title="Review"),
    ]
    mock_task_repo.list_scheduled.return_value = [
        make_scheduled_task(at(12), at(13), title="Lunch prep"),
        make_scheduled_task(at(12, 30), at(13, 30), title="Emails"),
    ]
    slots = [make_slot(at(hour)) for hour in range(9, 17)]

    batch = await calendar_service.find_batch_conflicts(slots, ["cal-1"])
    serial = [await calendar_service.find_conflicts(slot, ["cal-1"]) for slot in slots]

    assert [check.conflicts for check in batch] == serial
    assert [check.slot for check in batch] == slots


@pytest.mark.asyncio
async def test_batch_reads_storage_once(calendar_service, mock_event_repo, mock_task_repo):
    slots = [make_slot(at(9)), make_slot(at(15))]

    await calendar_service.find_batch_conflicts(slots, ["cal-1"])

    assert mock_event_repo.list_in_range.await_count == 1
    mock_task_repo.list_scheduled.assert_awaited_once_with(
        "test_user", exclude_task_id=None, start=at(9), end=at(16)
    )


@pytest.mark.asyncio
async def test_batch_empty_input(calendar_service, mock_event_repo, mock_task_repo):
    assert await calendar_service.find_batch_conflicts([], ["cal-1"]) == []
    mock_event_repo.list_in_range.assert_not_called()
    mock_task_repo.list_scheduled.assert_not_called()
