"""
Unit tests for SchedulingService.
"""

from datetime import datetime, timedelta
from itertools import combinations
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from autoschedule.models.auto_schedule import AutoScheduleSettings
from autoschedule.models.enums import Priority
from autoschedule.models.scheduling import TimeSlot
from autoschedule.models.task import Task, TaskCreate
from autoschedule.services.calendar_service import CalendarService
from autoschedule.services.scheduling_service import SchedulingService
from autoschedule.services.time_slot_manager import TimeSlotManager
from autoschedule.utils.datetime_utils import UTC, are_intervals_overlapping

# Monday
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)


def create_test_task(**overrides) -> Task:
    """Helper to create test task."""
    fields = dict(
        id=uuid4(),
        user_id="test_user",
        title="Task",
        duration=60,
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(overrides)
    return Task(**fields)


# ===========================================
# With mocked slot search
# ===========================================


@pytest.fixture
def mock_task_repo():
    """Create mock task repository that echoes schedule updates."""
    repo = AsyncMock()
    repo.clear_schedules.return_value = 0
    repo.list_by_ids.return_value = []
    repo.update_schedule.side_effect = lambda user_id, task_id, update: create_test_task(
        id=task_id,
        scheduled_start=update.scheduled_start,
        scheduled_end=update.scheduled_end,
        schedule_score=update.schedule_score,
        duration=update.duration,
    )
    return repo


@pytest.fixture
def mock_manager():
    manager = MagicMock()
    manager.find_available_slots = AsyncMock(return_value=[])
    return manager


def slots_scored_by_title(scores: dict[str, float]):
    async def find_available_slots(task, start, end):
        return [TimeSlot(start=at(9), end=at(10), score=scores[task.title])]

    return find_available_slots


def make_service(task_repo, manager, **kwargs) -> SchedulingService:
    kwargs.setdefault("lookahead_windows_days", [7, 14, 30])
    return SchedulingService(task_repo, manager, "test_user", clock=lambda: NOW, **kwargs)


@pytest.mark.asyncio
async def test_tasks_committed_in_score_order(mock_task_repo, mock_manager):
    tasks = [create_test_task(title=title) for title in ("low", "high", "mid")]
    mock_manager.find_available_slots.side_effect = slots_scored_by_title(
        {"low": 0.2, "high": 0.9, "mid": 0.5}
    )
    service = make_service(mock_task_repo, mock_manager, batch_size=2)

    await service.schedule_multiple_tasks(tasks)

    committed = [call.args[1] for call in mock_task_repo.update_schedule.await_args_list]
    assert committed == [tasks[1].id, tasks[2].id, tasks[0].id]
    assert mock_manager.add_scheduled_task_conflict.call_count == 3


@pytest.mark.asyncio
async def test_equal_scores_keep_input_order(mock_task_repo, mock_manager):
    tasks = [create_test_task(title="same") for _ in range(4)]
    mock_manager.find_available_slots.side_effect = slots_scored_by_title({"same": 0.5})
    service = make_service(mock_task_repo, mock_manager)

    await service.schedule_multiple_tasks(tasks)

    committed = [call.args[1] for call in mock_task_repo.update_schedule.await_args_list]
    assert committed == [task.id for task in tasks]


@pytest.mark.asyncio
async def test_locked_tasks_are_not_cleared_or_rescheduled(mock_task_repo, mock_manager):
    locked = create_test_task(title="locked", schedule_locked=True, scheduled_start=at(9), scheduled_end=at(10))
    free = create_test_task(title="free")
    mock_manager.find_available_slots.side_effect = slots_scored_by_title({"free": 0.5})
    service = make_service(mock_task_repo, mock_manager)

    await service.schedule_multiple_tasks([locked, free])

    mock_task_repo.clear_schedules.assert_awaited_once_with("test_user", [free.id])
    committed = [call.args[1] for call in mock_task_repo.update_schedule.await_args_list]
    assert committed == [free.id]
    mock_task_repo.list_by_ids.assert_awaited_once_with("test_user", [locked.id, free.id])


@pytest.mark.asyncio
async def test_schedule_task_widens_window(mock_task_repo, mock_manager):
    async def find_available_slots(task, start, end):
        if end - start < timedelta(days=14):
            return []
        return [TimeSlot(start=at(9, days=10), end=at(10, days=10), score=0.4)]

    mock_manager.find_available_slots.side_effect = find_available_slots
    service = make_service(mock_task_repo, mock_manager)

    result = await service.schedule_task(create_test_task())

    assert result.scheduled_start == at(9, days=10)
    windows = [call.args[2] - call.args[1] for call in mock_manager.find_available_slots.await_args_list]
    assert windows == [timedelta(days=7), timedelta(days=14)]


@pytest.mark.asyncio
async def test_schedule_task_returns_none_without_slots(mock_task_repo, mock_manager):
    service = make_service(mock_task_repo, mock_manager)

    assert await service.schedule_task(create_test_task()) is None
    assert mock_manager.find_available_slots.await_count == 3
    mock_task_repo.update_schedule.assert_not_called()
    mock_manager.add_scheduled_task_conflict.assert_not_called()


@pytest.mark.asyncio
async def test_schedule_task_writes_slot_fields(mock_task_repo, mock_manager):
    mock_manager.find_available_slots.return_value = [
        TimeSlot(start=at(9), end=at(9, 30), score=0.8),
        TimeSlot(start=at(10), end=at(10, 30), score=0.6),
    ]
    service = make_service(mock_task_repo, mock_manager, default_duration=30)

    await service.schedule_task(create_test_task(duration=None))

    update = mock_task_repo.update_schedule.await_args.args[2]
    assert update.scheduled_start == at(9)
    assert update.scheduled_end == at(9, 30)
    assert update.schedule_score == 0.8
    assert update.is_auto_scheduled is True
    assert update.duration == 30


@pytest.mark.asyncio
async def test_storage_error_aborts_batch(mock_task_repo, mock_manager):
    mock_manager.find_available_slots.side_effect = slots_scored_by_title({"a": 0.9, "b": 0.1})
    mock_task_repo.update_schedule.side_effect = RuntimeError("database is locked")
    service = make_service(mock_task_repo, mock_manager)

    with pytest.raises(RuntimeError):
        await service.schedule_multiple_tasks([create_test_task(title="a"), create_test_task(title="b")])

    assert mock_task_repo.update_schedule.await_count == 1


# ===========================================
# Against SQLite storage
# ===========================================


def build_scheduling_service(task_repo, event_repo, settings: AutoScheduleSettings) -> SchedulingService:
    clock = lambda: NOW  # noqa: E731
    calendar_service = CalendarService(
        event_repo, task_repo, settings.user_id, time_zone=settings.time_zone, clock=clock
    )
    manager = TimeSlotManager(settings, calendar_service, task_repo, settings.user_id, clock=clock)
    return SchedulingService(
        task_repo,
        manager,
        settings.user_id,
        lookahead_windows_days=[7, 14, 30],
        batch_size=8,
        default_duration=30,
        clock=clock,
    )


@pytest.fixture
def default_settings(test_user_id):
    # Mon-Fri 9-17 UTC, 15 minute buffer, no calendars
    return AutoScheduleSettings(user_id=test_user_id)


@pytest.mark.asyncio
async def test_end_to_end_two_tasks(task_repo, event_repo, default_settings, test_user_id):
    task_a = await task_repo.create(test_user_id, TaskCreate(title="A", duration=60, priority=Priority.HIGH))
    task_b = await task_repo.create(test_user_id, TaskCreate(title="B", duration=30))
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    result = await service.schedule_multiple_tasks([task_a, task_b])

    by_title = {task.title: task for task in result}
    assert (by_title["A"].scheduled_start, by_title["A"].scheduled_end) == (at(9, 30), at(10, 30))
    assert (by_title["B"].scheduled_start, by_title["B"].scheduled_end) == (at(10, 30), at(11))
    assert all(task.is_auto_scheduled for task in result)
    assert all(task.schedule_score > 0 for task in result)


@pytest.mark.asyncio
async def test_overdue_task_lands_in_first_buffered_work_slot(
    task_repo, event_repo, default_settings, test_user_id
):
    task = await task_repo.create(
        test_user_id,
        TaskCreate(title="Overdue", duration=30, priority=Priority.NONE, due_date=NOW - timedelta(days=1)),
    )
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    [result] = await service.schedule_multiple_tasks([task])

    assert result.scheduled_start == at(9, 30)
    assert result.scheduled_start.isoweekday() <= 5
    assert 9 <= result.scheduled_start.hour < 17
    assert result.scheduled_end - result.scheduled_start == timedelta(minutes=30)
    # Weighted average of the factors: an overdue deadline score above 1.0
    # still leaves the total below 1.0
    assert result.schedule_score == pytest.approx(0.77985, abs=1e-4)


@pytest.mark.asyncio
async def test_batch_never_double_books(task_repo, event_repo, default_settings, test_user_id):
    tasks = [
        await task_repo.create(test_user_id, TaskCreate(title=f"Task {i}", duration=60))
        for i in range(6)
    ]
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    result = await service.schedule_multiple_tasks(tasks)

    assert all(task.is_scheduled for task in result)
    for left, right in combinations(result, 2):
        assert not are_intervals_overlapping(
            left.scheduled_start, left.scheduled_end, right.scheduled_start, right.scheduled_end
        )


@pytest.mark.asyncio
async def test_locked_task_blocks_its_slot(task_repo, event_repo, default_settings, test_user_id):
    locked = await task_repo.create(
        test_user_id,
        TaskCreate(
            title="Locked",
            duration=60,
            schedule_locked=True,
            scheduled_start=at(9, 30),
            scheduled_end=at(10, 30),
        ),
    )
    free = await task_repo.create(test_user_id, TaskCreate(title="Free", duration=60))
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    result = await service.schedule_multiple_tasks([locked, free])

    by_title = {task.title: task for task in result}
    assert by_title["Locked"].scheduled_start == at(9, 30)
    assert by_title["Locked"].schedule_score is None
    assert by_title["Free"].scheduled_start == at(10, 30)


@pytest.mark.asyncio
async def test_stale_schedule_does_not_block_itself(task_repo, event_repo, default_settings, test_user_id):
    task = await task_repo.create(
        test_user_id,
        TaskCreate(title="Stale", duration=60, scheduled_start=at(9, 30), scheduled_end=at(10, 30)),
    )
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    [result] = await service.schedule_multiple_tasks([task])

    assert result.scheduled_start == at(9, 30)


@pytest.mark.asyncio
async def test_default_duration_is_persisted(task_repo, event_repo, default_settings, test_user_id):
    task = await task_repo.create(test_user_id, TaskCreate(title="No duration"))
    service = build_scheduling_service(task_repo, event_repo, default_settings)

    [result] = await service.schedule_multiple_tasks([task])

    assert result.duration == 30
    assert result.scheduled_end - result.scheduled_start == timedelta(minutes=30)


@pytest.mark.asyncio
async def test_task_without_any_slot_stays_unscheduled(task_repo, event_repo, test_user_id):
    settings = AutoScheduleSettings(user_id=test_user_id, work_days=[])
    task = await task_repo.create(test_user_id, TaskCreate(title="Nowhere", duration=60))
    service = build_scheduling_service(task_repo, event_repo, settings)

    [result] = await service.schedule_multiple_tasks([task])

    assert result.id == task.id
    assert result.is_scheduled is False
