from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from packages.clock import ensure_utc
from packages.db.models import SubscriptionState

SINGLETON_ID = "singleton"

STATUS_NONE = "none"
STATUS_TRIAL = "trial"
STATUS_ACTIVE = "active"
STATUS_LIFETIME = "lifetime"
STATUS_EXPIRED = "expired"

PERIOD_MONTHLY = "monthly"
PERIOD_LIFETIME = "lifetime"


@dataclass(frozen=True)
class SubscriptionRecord:
    status: str = STATUS_NONE
    product_id: str | None = None
    period: str | None = None
    started_at: datetime | None = None
    expires_at: datetime | None = None
    is_premium: bool = False
    trial_started_at: datetime | None = None
    trial_ends_at: datetime | None = None


class SubscriptionStore:
    def __init__(self, session) -> None:
        self.session = session

    def get_singleton(self) -> SubscriptionRecord | None:
        row = self.session.get(SubscriptionState, SINGLETON_ID)
        if row is None:
            return None
        return SubscriptionRecord(
            status=row.status,
            product_id=row.product_id,
            period=row.period,
            started_at=_utc_or_none(row.started_at),
            expires_at=_utc_or_none(row.expires_at),
            is_premium=bool(row.is_premium),
            trial_started_at=_utc_or_none(row.trial_started_at),
            trial_ends_at=_utc_or_none(row.trial_ends_at),
        )

    def upsert_singleton(self, record: SubscriptionRecord) -> None:
        self.session.merge(
            SubscriptionState(
                id=SINGLETON_ID,
                status=record.status,
                product_id=record.product_id,
                period=record.period,
                started_at=_utc_or_none(record.started_at),
                expires_at=_utc_or_none(record.expires_at),
                is_premium=record.is_premium,
                trial_started_at=_utc_or_none(record.trial_started_at),
                trial_ends_at=_utc_or_none(record.trial_ends_at),
            )
        )
        self.session.flush()


def _utc_or_none(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return ensure_utc(value)
