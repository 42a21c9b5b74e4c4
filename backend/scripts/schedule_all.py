"""
Run auto-scheduling for one user against the configured database.

Usage:
    cd backend
    python -m scripts.schedule_all --user-id dev_user
    python -m scripts.schedule_all --user-id dev_user --init-db   # create tables first

Reads DATABASE_URL and LOG_LEVEL from .env.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Suppress noisy SQLAlchemy logs
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

# Ensure backend root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from autoschedule.infrastructure.local.auto_schedule_settings_repository import (
    SqliteAutoScheduleSettingsRepository,
)
from autoschedule.infrastructure.local.calendar_event_repository import (
    SqliteCalendarEventRepository,
)
from autoschedule.infrastructure.local.database import init_db
from autoschedule.infrastructure.local.task_repository import SqliteTaskRepository
from autoschedule.services.task_scheduling_service import schedule_all_tasks_for_user
from autoschedule.utils.datetime_utils import to_local


async def run(user_id: str, create_tables: bool) -> None:
    if create_tables:
        await init_db()

    settings_repo = SqliteAutoScheduleSettingsRepository()
    tasks = await schedule_all_tasks_for_user(
        user_id,
        SqliteTaskRepository(),
        SqliteCalendarEventRepository(),
        settings_repo,
    )
    settings = await settings_repo.get(user_id)

    print(f"\n{len(tasks)} tasks ({settings.time_zone})")
    for task in tasks:
        if task.is_scheduled:
            start = to_local(task.scheduled_start, settings.time_zone)
            end = to_local(task.scheduled_end, settings.time_zone)
            lock = " [locked]" if task.schedule_locked else ""
            print(
                f"  {start:%a %Y-%m-%d %H:%M}-{end:%H:%M}  "
                f"score={task.schedule_score or 0:.3f}  {task.title}{lock}"
            )
        else:
            print(f"  (unscheduled)  {task.title}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Auto-schedule all open tasks of a user."
    )
    parser.add_argument("--user-id", required=True, help="Owner of the tasks")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables before scheduling.",
    )
    args = parser.parse_args()
    asyncio.run(run(args.user_id, create_tables=args.init_db))


if __name__ == "__main__":
    main()
