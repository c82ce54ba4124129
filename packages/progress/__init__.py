from packages.progress.rules import (
    calculate_meditation_rank,
    calculate_streak,
    course_day_index,
    is_day_success,
    minutes_saved,
    should_increment_meditation,
    should_increment_spend_avoided,
    week_start,
)

__all__ = [
    "calculate_meditation_rank",
    "calculate_streak",
    "course_day_index",
    "is_day_success",
    "minutes_saved",
    "should_increment_meditation",
    "should_increment_spend_avoided",
    "week_start",
]
