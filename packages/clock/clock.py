from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


class SystemClock:
    def __init__(self, tz: ZoneInfo) -> None:
        self.timezone = tz

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today_local(self) -> str:
        return local_date_of(self.now(), self.timezone)


class FixedClock:
    """Clock pinned to a settable instant, for deterministic tests."""

    def __init__(self, now: datetime, tz: ZoneInfo) -> None:
        self.timezone = tz
        self._now = ensure_utc(now)

    def now(self) -> datetime:
        return self._now

    def today_local(self) -> str:
        return local_date_of(self._now, self.timezone)

    def set(self, now: datetime) -> None:
        self._now = ensure_utc(now)

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date_of(instant: datetime, tz: ZoneInfo) -> str:
    return ensure_utc(instant).astimezone(tz).date().isoformat()
