from __future__ import annotations

from dataclasses import dataclass
import random

from packages.stores.profile import STYLE_OFF, STYLE_STEALTH

STREAK_NUDGE_MIN_DAYS = 3
COURSE_FIRST_UNLOCK_DAY = 2
COURSE_LAST_DAY = 7
EVENING_HOURS = (21, 22)

# Notification copy never mentions spending amounts; stealth copy never names the app.


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str


def should_send_evening_nudge(style: str, has_opened_today: bool) -> bool:
    if style == STYLE_OFF:
        return False
    return not has_opened_today


def should_send_streak_nudge(streak_days: int, today_success: bool) -> bool:
    if streak_days < STREAK_NUDGE_MIN_DAYS:
        return False
    return not today_success


def should_send_course_unlock(current_day_index: int, today_content_completed: bool) -> bool:
    if current_day_index < COURSE_FIRST_UNLOCK_DAY or current_day_index > COURSE_LAST_DAY:
        return False
    return not today_content_completed


def get_evening_trigger_hour(rng: random.Random | None = None) -> int:
    chooser = rng or random
    return chooser.choice(EVENING_HOURS)


def build_evening_nudge_content(style: str) -> NotificationContent | None:
    if style == STYLE_OFF:
        return None
    if style == STYLE_STEALTH:
        return NotificationContent(title="Take a moment for yourself", body="")
    return NotificationContent(
        title="Feeling the urge?",
        body="Open Unmatch for a 60-second reset.",
    )


def build_streak_nudge_content(streak_days: int, style: str) -> NotificationContent | None:
    if style == STYLE_OFF or streak_days < STREAK_NUDGE_MIN_DAYS:
        return None
    if style == STYLE_STEALTH:
        return NotificationContent(title="Reminder", body="You have an incomplete daily task.")
    return NotificationContent(
        title=f"Your {streak_days}-day streak is still going.",
        body="Keep it alive?",
    )


def build_weekly_summary_content(
    meditation_count: int, minutes_saved: int, style: str
) -> NotificationContent | None:
    if style == STYLE_OFF:
        return None
    if style == STYLE_STEALTH:
        return NotificationContent(title="Reminder", body="Your weekly summary is ready.")
    return NotificationContent(
        title="Your week in review",
        body=(
            f"This week: {meditation_count} meditations completed, "
            f"{minutes_saved} minutes saved. View your progress."
        ),
    )


def build_course_unlock_content(style: str, current_day_index: int) -> NotificationContent | None:
    if style == STYLE_OFF:
        return None
    if current_day_index < COURSE_FIRST_UNLOCK_DAY or current_day_index > COURSE_LAST_DAY:
        return None
    if style == STYLE_STEALTH:
        return NotificationContent(title="Reminder", body="New content is available.")
    return NotificationContent(
        title="Unmatch",
        body="A new lesson is available in your starter course.",
    )
