from packages.notifications.orchestrator import (
    ReminderContext,
    RescheduleResult,
    build_reminder_context,
    reschedule_all,
)
from packages.notifications.policy import (
    NotificationContent,
    build_course_unlock_content,
    build_evening_nudge_content,
    build_streak_nudge_content,
    build_weekly_summary_content,
    get_evening_trigger_hour,
    should_send_course_unlock,
    should_send_evening_nudge,
    should_send_streak_nudge,
)
from packages.notifications.scheduler import (
    ApschedulerNotificationScheduler,
    NotificationPermissionDenied,
    ScheduledReminder,
)

__all__ = [
    "ApschedulerNotificationScheduler",
    "NotificationContent",
    "NotificationPermissionDenied",
    "ReminderContext",
    "RescheduleResult",
    "ScheduledReminder",
    "build_course_unlock_content",
    "build_evening_nudge_content",
    "build_reminder_context",
    "build_streak_nudge_content",
    "build_weekly_summary_content",
    "get_evening_trigger_hour",
    "reschedule_all",
    "should_send_course_unlock",
    "should_send_evening_nudge",
    "should_send_streak_nudge",
]
