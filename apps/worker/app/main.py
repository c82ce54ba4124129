from __future__ import annotations

import logging

from apscheduler.schedulers.blocking import BlockingScheduler

from apps.worker.app.refresh import log_delivery, run_foreground_refresh, run_reminder_rebuild
from packages.clock import SystemClock
from packages.config.settings import load_settings
from packages.db.errors import StorageError
from packages.notifications.scheduler import ApschedulerNotificationScheduler

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    clock = SystemClock(settings.timezone)
    reminders = ApschedulerNotificationScheduler(log_delivery, settings.timezone)
    reminders.start()

    def foreground_job() -> None:
        try:
            run_foreground_refresh(reminders, clock=clock, settings=settings, mark_opened=False)
        except StorageError as exc:
            logger.warning("Foreground refresh failed: %s", exc.__class__.__name__)

    def nightly_job() -> None:
        try:
            run_reminder_rebuild(reminders, clock=clock, settings=settings)
        except StorageError as exc:
            logger.warning("Reminder rebuild failed: %s", exc.__class__.__name__)

    scheduler = BlockingScheduler(timezone=settings.timezone)
    scheduler.add_job(
        foreground_job,
        "interval",
        minutes=settings.refresh_minutes,
        id="foreground_refresh",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        nightly_job,
        "cron",
        hour=0,
        minute=5,
        id="nightly_reminders",
        max_instances=1,
        coalesce=True,
    )
    foreground_job()
    try:
        scheduler.start()
    finally:
        reminders.shutdown()


if __name__ == "__main__":
    main()
