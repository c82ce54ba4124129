from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
import random

from packages.clock import local_date_of
from packages.notifications.policy import (
    build_course_unlock_content,
    build_evening_nudge_content,
    build_streak_nudge_content,
    build_weekly_summary_content,
    get_evening_trigger_hour,
    should_send_course_unlock,
    should_send_evening_nudge,
    should_send_streak_nudge,
)
from packages.notifications.scheduler import NotificationPermissionDenied, NotificationScheduler
from packages.progress.rules import (
    OUTCOME_SUCCESS,
    calculate_streak,
    course_day_index,
    is_day_success,
    minutes_saved,
)
from packages.stores.content import ContentStore
from packages.stores.events import EventStore
from packages.stores.profile import STYLE_NORMAL, STYLE_OFF, ProfileStore
from packages.stores.progress import ProgressStore

logger = logging.getLogger(__name__)

EVENING_NUDGE_ID = "evening-nudge"
STREAK_NUDGE_ID = "streak-nudge"
COURSE_UNLOCK_ID = "course-unlock"
WEEKLY_SUMMARY_ID = "weekly-summary"

STREAK_NUDGE_TIME = (20, 0)
COURSE_UNLOCK_TIME = (8, 0)
WEEKLY_SUMMARY_TIME = (19, 0)
WEEKLY_SUMMARY_DAY = "sun"


@dataclass(frozen=True)
class ReminderContext:
    style: str = STYLE_NORMAL
    has_opened_today: bool = False
    streak: int = 0
    today_success: bool = False
    current_day_index: int = 1
    today_content_completed: bool = False
    weekly_meditation_count: int = 0

    @property
    def weekly_minutes_saved(self) -> int:
        return minutes_saved(self.weekly_meditation_count)


@dataclass
class RescheduleResult:
    enabled: bool
    scheduled_ids: list[str] = field(default_factory=list)
    permission_denied: bool = False


def build_reminder_context(session, clock) -> ReminderContext:
    today = clock.today_local()
    tz = clock.timezone
    profile = ProfileStore(session).get()
    events = EventStore(session, tz)
    content = ContentStore(session, tz)

    success_dates = set(ProgressStore(session).list_success_dates())
    today_content_completed = content.has_completed_on(today)
    today_success = today in success_dates or is_day_success(
        events.count_by_date(today, outcome=OUTCOME_SUCCESS), today_content_completed
    )
    if today_success:
        streak = calculate_streak(success_dates | {today}, today)
    else:
        # A streak that ended yesterday is still alive until midnight.
        yesterday = (date.fromisoformat(today) - timedelta(days=1)).isoformat()
        streak = calculate_streak(success_dates, yesterday)

    if profile is None:
        return ReminderContext(
            streak=streak,
            today_success=today_success,
            today_content_completed=today_content_completed,
            weekly_meditation_count=events.weekly_success_count(today),
        )
    started_on = local_date_of(profile.created_at, tz) if profile.created_at else today
    return ReminderContext(
        style=profile.notification_style,
        has_opened_today=profile.last_opened_on == today,
        streak=streak,
        today_success=today_success,
        current_day_index=course_day_index(started_on, today),
        today_content_completed=today_content_completed,
        weekly_meditation_count=events.weekly_success_count(today),
    )


def reschedule_all(
    scheduler: NotificationScheduler,
    context: ReminderContext,
    rng: random.Random | None = None,
) -> RescheduleResult:
    scheduler.cancel_all()
    if context.style == STYLE_OFF:
        return RescheduleResult(enabled=False)

    result = RescheduleResult(enabled=True)
    try:
        if should_send_evening_nudge(context.style, context.has_opened_today):
            content = build_evening_nudge_content(context.style)
            if content is not None:
                scheduler.schedule(EVENING_NUDGE_ID, get_evening_trigger_hour(rng), 0, content)
                result.scheduled_ids.append(EVENING_NUDGE_ID)

        if should_send_streak_nudge(context.streak, context.today_success):
            content = build_streak_nudge_content(context.streak, context.style)
            if content is not None:
                scheduler.schedule(STREAK_NUDGE_ID, *STREAK_NUDGE_TIME, content)
                result.scheduled_ids.append(STREAK_NUDGE_ID)

        if should_send_course_unlock(context.current_day_index, context.today_content_completed):
            content = build_course_unlock_content(context.style, context.current_day_index)
            if content is not None:
                scheduler.schedule(COURSE_UNLOCK_ID, *COURSE_UNLOCK_TIME, content)
                result.scheduled_ids.append(COURSE_UNLOCK_ID)

        content = build_weekly_summary_content(
            context.weekly_meditation_count, context.weekly_minutes_saved, context.style
        )
        if content is not None:
            scheduler.schedule(
                WEEKLY_SUMMARY_ID, *WEEKLY_SUMMARY_TIME, content, day_of_week=WEEKLY_SUMMARY_DAY
            )
            result.scheduled_ids.append(WEEKLY_SUMMARY_ID)
    except NotificationPermissionDenied:
        logger.info("Notification permission denied; reminders disabled")
        scheduler.cancel_all()
        return RescheduleResult(enabled=False, permission_denied=True)

    logger.info("Reminders rebuilt: %s", ", ".join(result.scheduled_ids) or "none")
    return result
