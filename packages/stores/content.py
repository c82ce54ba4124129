from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from packages.catalog.catalog import StarterDay
from packages.clock import ensure_utc, local_date_of
from packages.db.models import ContentCompletion, ContentItem


class ContentStore:
    def __init__(self, session, tz: ZoneInfo) -> None:
        self.session = session
        self.timezone = tz

    def seed_if_empty(self, days: list[StarterDay]) -> int:
        if self.session.query(ContentItem).first() is not None:
            return 0
        for day in days:
            self.session.add(
                ContentItem(
                    content_id=day.content_id,
                    day_index=day.day_index,
                    title=day.title,
                    body=day.body,
                    action_text=day.action_text,
                    est_minutes=day.est_minutes,
                )
            )
        self.session.flush()
        return len(days)

    def list_all(self) -> list[ContentItem]:
        return self.session.query(ContentItem).order_by(ContentItem.day_index.asc()).all()

    def get_by_day(self, day_index: int) -> ContentItem | None:
        return (
            self.session.query(ContentItem)
            .filter(ContentItem.day_index == day_index)
            .first()
        )

    def mark_completed(self, content_id: str, now: datetime) -> bool:
        if self.session.get(ContentCompletion, content_id) is not None:
            return False
        self.session.add(
            ContentCompletion(
                content_id=content_id,
                completed_at=ensure_utc(now),
                date_local=local_date_of(now, self.timezone),
            )
        )
        self.session.flush()
        return True

    def is_completed(self, content_id: str) -> bool:
        return self.session.get(ContentCompletion, content_id) is not None

    def has_completed_on(self, date_local: str) -> bool:
        return (
            self.session.query(ContentCompletion)
            .filter(ContentCompletion.date_local == date_local)
            .first()
            is not None
        )
