from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

MEDITATION_RANK_START = 1
MEDITATION_RANK_CAP = 30
MEDITATIONS_PER_RANK = 5
MINUTES_SAVED_PER_MEDITATION = 12

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"
OUTCOME_ONGOING = "ongoing"
OUTCOMES = (OUTCOME_SUCCESS, OUTCOME_FAIL, OUTCOME_ONGOING)

KIND_SWIPE = "swipe"
KIND_CHECK = "check"
KIND_SPEND = "spend"
URGE_KINDS = (KIND_SWIPE, KIND_CHECK, KIND_SPEND)


def calculate_meditation_rank(meditation_count: int) -> int:
    """Rank derived from the lifetime count of successful meditations.

    One rank per five meditations starting at 1, capped at 30. A negative
    count is treated as a fresh start.
    """
    if meditation_count < 0:
        return MEDITATION_RANK_START
    computed = meditation_count // MEDITATIONS_PER_RANK + MEDITATION_RANK_START
    return min(computed, MEDITATION_RANK_CAP)


def is_day_success(panic_success_count: int, daily_task_completed: bool) -> bool:
    return panic_success_count >= 1 or daily_task_completed


def calculate_streak(success_dates: Iterable[str], today: str) -> int:
    """Count consecutive success days ending on (and including) ``today``.

    ``success_dates`` are YYYY-MM-DD strings in any order; duplicates are
    ignored. Returns 0 when today itself is not a success day.
    """
    success_set = set(success_dates)
    streak = 0
    cursor = date.fromisoformat(today)
    while cursor.isoformat() in success_set:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def should_increment_meditation(outcome: str) -> bool:
    return outcome == OUTCOME_SUCCESS


def should_increment_spend_avoided(urge_kind: str, outcome: str) -> bool:
    return urge_kind == KIND_SPEND and outcome == OUTCOME_SUCCESS


def minutes_saved(meditation_count: int) -> int:
    return max(0, meditation_count) * MINUTES_SAVED_PER_MEDITATION


def week_start(today: str) -> str:
    current = date.fromisoformat(today)
    return (current - timedelta(days=current.weekday())).isoformat()


def course_day_index(started_on: str, today: str) -> int:
    elapsed = (date.fromisoformat(today) - date.fromisoformat(started_on)).days
    return max(1, elapsed + 1)
