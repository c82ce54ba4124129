from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import func

from packages.clock import ensure_utc, local_date_of
from packages.db.models import UrgeEvent
from packages.progress.rules import OUTCOME_SUCCESS, week_start

TIME_OF_DAY_BUCKETS = ("morning", "afternoon", "evening")


@dataclass(frozen=True)
class DayOfWeekCount:
    # 0 = Sunday ... 6 = Saturday
    day_of_week: int
    count: int


@dataclass(frozen=True)
class TimeOfDayCount:
    bucket: str
    count: int


class EventStore:
    def __init__(self, session, tz: ZoneInfo) -> None:
        self.session = session
        self.timezone = tz

    def create(
        self,
        started_at: datetime,
        urge_kind: str,
        outcome: str,
        action_type: str = "general",
        action_id: str = "",
        trigger_tag: str | None = None,
        spend_category: str | None = None,
        spend_item_type: str | None = None,
        from_screen: str = "panic",
        urge_level: int = 5,
        protocol_completed: bool = True,
    ) -> int:
        event = UrgeEvent(
            started_at=ensure_utc(started_at),
            date_local=local_date_of(started_at, self.timezone),
            from_screen=from_screen,
            urge_level=urge_level,
            protocol_completed=protocol_completed,
            urge_kind=urge_kind,
            action_type=action_type,
            action_id=action_id,
            outcome=outcome,
            trigger_tag=trigger_tag,
            spend_category=spend_category,
            spend_item_type=spend_item_type,
        )
        self.session.add(event)
        self.session.flush()
        return event.id

    def list_by_date(self, date_local: str) -> list[UrgeEvent]:
        return (
            self.session.query(UrgeEvent)
            .filter(UrgeEvent.date_local == date_local)
            .order_by(UrgeEvent.started_at.asc(), UrgeEvent.id.asc())
            .all()
        )

    def list_in_range(self, start_date: str, end_date: str) -> list[UrgeEvent]:
        return (
            self.session.query(UrgeEvent)
            .filter(UrgeEvent.date_local >= start_date, UrgeEvent.date_local <= end_date)
            .order_by(UrgeEvent.started_at.asc(), UrgeEvent.id.asc())
            .all()
        )

    def count_by_date(
        self, date_local: str, outcome: str | None = None, urge_kind: str | None = None
    ) -> int:
        query = self.session.query(func.count(UrgeEvent.id)).filter(
            UrgeEvent.date_local == date_local
        )
        if outcome is not None:
            query = query.filter(UrgeEvent.outcome == outcome)
        if urge_kind is not None:
            query = query.filter(UrgeEvent.urge_kind == urge_kind)
        return int(query.scalar() or 0)

    def count_in_range(
        self, start_date: str, end_date: str, outcome: str | None = OUTCOME_SUCCESS
    ) -> int:
        query = self.session.query(func.count(UrgeEvent.id)).filter(
            UrgeEvent.date_local >= start_date, UrgeEvent.date_local <= end_date
        )
        if outcome is not None:
            query = query.filter(UrgeEvent.outcome == outcome)
        return int(query.scalar() or 0)

    def weekly_success_count(self, today: str) -> int:
        return self.count_in_range(week_start(today), today)

    def count_completed_sessions(self) -> int:
        return int(
            self.session.query(func.count(UrgeEvent.id))
            .filter(UrgeEvent.protocol_completed.is_(True))
            .scalar()
            or 0
        )

    def count_by_day_of_week(self, outcome: str = OUTCOME_SUCCESS) -> list[DayOfWeekCount]:
        counts = {day: 0 for day in range(7)}
        rows = (
            self.session.query(UrgeEvent.date_local)
            .filter(UrgeEvent.outcome == outcome)
            .all()
        )
        for (date_local,) in rows:
            counts[date.fromisoformat(date_local).isoweekday() % 7] += 1
        return [DayOfWeekCount(day_of_week=day, count=counts[day]) for day in range(7)]

    def count_by_time_of_day(self, outcome: str = OUTCOME_SUCCESS) -> list[TimeOfDayCount]:
        counts = {bucket: 0 for bucket in TIME_OF_DAY_BUCKETS}
        rows = (
            self.session.query(UrgeEvent.started_at)
            .filter(UrgeEvent.outcome == outcome)
            .all()
        )
        for (started_at,) in rows:
            local_hour = ensure_utc(started_at).astimezone(self.timezone).hour
            counts[time_of_day_bucket(local_hour)] += 1
        return [TimeOfDayCount(bucket=bucket, count=counts[bucket]) for bucket in TIME_OF_DAY_BUCKETS]


def time_of_day_bucket(local_hour: int) -> str:
    if 5 <= local_hour < 12:
        return "morning"
    if 12 <= local_hour < 18:
        return "afternoon"
    return "evening"

