from __future__ import annotations

from packages.db.models import DailyCheckin

RATING_MIN = 1
RATING_MAX = 5


class CheckinStore:
    """One self-reported check-in per local day; saving again replaces it."""

    def __init__(self, session) -> None:
        self.session = session

    def get_by_date(self, date_local: str) -> DailyCheckin | None:
        return self.session.get(DailyCheckin, date_local)

    def upsert_for_date(
        self,
        date_local: str,
        mood: int,
        fatigue: int,
        urge: int,
        note: str | None = None,
        opened_at_night: bool | None = None,
        spent_today: bool | None = None,
        spent_amount: int | None = None,
    ) -> DailyCheckin:
        for name, value in (("mood", mood), ("fatigue", fatigue), ("urge", urge)):
            if not RATING_MIN <= value <= RATING_MAX:
                raise ValueError(f"{name} must be between {RATING_MIN} and {RATING_MAX}")
        if spent_amount is not None and spent_amount < 0:
            raise ValueError("spent_amount must be non-negative cents")
        if not spent_today:
            spent_amount = None

        row = DailyCheckin(
            date_local=date_local,
            mood=mood,
            fatigue=fatigue,
            urge=urge,
            note=(note or "").strip() or None,
            opened_at_night=opened_at_night,
            spent_today=spent_today,
            spent_amount=spent_amount,
        )
        merged = self.session.merge(row)
        self.session.flush()
        return merged

    def list_in_range(self, start_date: str, end_date: str) -> list[DailyCheckin]:
        return (
            self.session.query(DailyCheckin)
            .filter(DailyCheckin.date_local >= start_date, DailyCheckin.date_local <= end_date)
            .order_by(DailyCheckin.date_local.asc())
            .all()
        )
