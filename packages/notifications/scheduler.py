from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Protocol
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from packages.notifications.policy import NotificationContent

logger = logging.getLogger(__name__)

JOB_PREFIX = "reminder:"


class NotificationPermissionDenied(RuntimeError):
    pass


@dataclass(frozen=True)
class ScheduledReminder:
    id: str
    hour: int
    minute: int
    content: NotificationContent
    day_of_week: str | None = None


class NotificationScheduler(Protocol):
    def schedule(
        self,
        reminder_id: str,
        hour: int,
        minute: int,
        content: NotificationContent,
        day_of_week: str | None = None,
    ) -> None: ...

    def cancel(self, reminder_id: str) -> None: ...

    def cancel_all(self) -> None: ...

    def list_scheduled(self) -> list[ScheduledReminder]: ...


class ApschedulerNotificationScheduler:
    """Daily (or weekly) recurring reminders on an APScheduler background scheduler.

    ``deliver`` is the hand-off to whatever shows the notification; it is
    called with the reminder id and its content when the trigger fires.
    """

    def __init__(
        self,
        deliver: Callable[[str, NotificationContent], None],
        tz: ZoneInfo,
        scheduler: BackgroundScheduler | None = None,
        permission_granted: Callable[[], bool] | None = None,
    ) -> None:
        self.deliver = deliver
        self.timezone = tz
        self.scheduler = scheduler or BackgroundScheduler(timezone=tz)
        self.permission_granted = permission_granted
        self._reminders: dict[str, ScheduledReminder] = {}

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def schedule(
        self,
        reminder_id: str,
        hour: int,
        minute: int,
        content: NotificationContent,
        day_of_week: str | None = None,
    ) -> None:
        if self.permission_granted is not None and not self.permission_granted():
            raise NotificationPermissionDenied("Notification permission not granted")
        trigger = CronTrigger(
            hour=hour, minute=minute, day_of_week=day_of_week, timezone=self.timezone
        )
        self.scheduler.add_job(
            self.deliver,
            trigger,
            args=[reminder_id, content],
            id=f"{JOB_PREFIX}{reminder_id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._reminders[reminder_id] = ScheduledReminder(
            id=reminder_id, hour=hour, minute=minute, content=content, day_of_week=day_of_week
        )

    def cancel(self, reminder_id: str) -> None:
        self._reminders.pop(reminder_id, None)
        try:
            self.scheduler.remove_job(f"{JOB_PREFIX}{reminder_id}")
        except JobLookupError:
            logger.debug("Reminder %s was not scheduled", reminder_id)

    def cancel_all(self) -> None:
        for reminder_id in list(self._reminders):
            self.cancel(reminder_id)

    def list_scheduled(self) -> list[ScheduledReminder]:
        return sorted(self._reminders.values(), key=lambda item: item.id)
