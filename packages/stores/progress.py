from __future__ import annotations

from packages.db.models import Progress


class ProgressStore:
    def __init__(self, session) -> None:
        self.session = session

    def get_by_date(self, date_local: str) -> Progress | None:
        return self.session.get(Progress, date_local)

    def get_latest(self) -> Progress | None:
        return self.session.query(Progress).order_by(Progress.date_local.desc()).first()

    def upsert(
        self,
        date_local: str,
        streak_current: int,
        meditation_count_total: int,
        meditation_rank: int,
        last_success_date: str | None,
        spend_avoided_count_total: int,
    ) -> Progress:
        row = Progress(
            date_local=date_local,
            streak_current=streak_current,
            meditation_count_total=meditation_count_total,
            meditation_rank=meditation_rank,
            last_success_date=last_success_date,
            spend_avoided_count_total=spend_avoided_count_total,
        )
        merged = self.session.merge(row)
        self.session.flush()
        return merged

    def list_all_dates_ascending(self) -> list[str]:
        rows = self.session.query(Progress.date_local).order_by(Progress.date_local.asc()).all()
        return [row[0] for row in rows]

    def list_success_dates(self) -> list[str]:
        rows = (
            self.session.query(Progress.date_local)
            .filter(Progress.last_success_date == Progress.date_local)
            .order_by(Progress.date_local.asc())
            .all()
        )
        return [row[0] for row in rows]
