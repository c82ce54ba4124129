from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
import logging
import math

from packages.clock import ensure_utc
from packages.config.settings import EngineSettings
from packages.db.database import SessionLocal
from packages.db.errors import storage_errors
from packages.entitlements.ledger import LedgerSnapshot, LedgerUnavailable, PurchaseLedger
from packages.stores.subscription import (
    PERIOD_LIFETIME,
    PERIOD_MONTHLY,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_LIFETIME,
    STATUS_NONE,
    STATUS_TRIAL,
    SubscriptionRecord,
    SubscriptionStore,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class TrialInfo:
    has_started_trial: bool
    is_trial_active: bool
    trial_days_remaining: int
    trial_ends_at: datetime | None


def trial_info_for(record: SubscriptionRecord | None, now: datetime) -> TrialInfo:
    if record is None or record.trial_started_at is None or record.trial_ends_at is None:
        return TrialInfo(False, False, 0, None)
    remaining = (record.trial_ends_at - now).total_seconds()
    is_active = remaining > 0
    days = math.ceil(remaining / SECONDS_PER_DAY) if is_active else 0
    return TrialInfo(True, is_active, days, record.trial_ends_at)


def has_premium_access(record: SubscriptionRecord | None, now: datetime) -> bool:
    if record is None:
        return False
    if record.status == STATUS_TRIAL:
        return trial_info_for(record, now).is_trial_active
    return record.is_premium


class EntitlementEngine:
    """Reconciles the local subscription row with the purchase ledger.

    The local row is authoritative whenever the ledger cannot be reached;
    ``enforce_expiry`` is the offline fallback that eventually revokes a
    lapsed subscription after the grace period.
    """

    def __init__(self, clock, settings: EngineSettings, session_factory=SessionLocal) -> None:
        self.clock = clock
        self.settings = settings
        self.session_factory = session_factory

    def is_premium_from_ledger(self, snapshot: LedgerSnapshot) -> bool:
        return self.settings.entitlement_id in snapshot.active_entitlements

    def current(self) -> SubscriptionRecord | None:
        with self.session_factory() as session:
            with storage_errors("Subscription read"):
                return SubscriptionStore(session).get_singleton()

    def sync_from_ledger(self, snapshot: LedgerSnapshot) -> SubscriptionRecord:
        now = self.clock.now()
        with self.session_factory() as session:
            with storage_errors("Subscription sync"):
                store = SubscriptionStore(session)
                existing = store.get_singleton()
                record = self._reconcile(existing, snapshot, now)
                store.upsert_singleton(record)
                session.commit()
        if existing is None or existing.status != record.status:
            logger.info(
                "Subscription status %s -> %s",
                existing.status if existing else STATUS_NONE,
                record.status,
            )
        return record

    def _reconcile(
        self, existing: SubscriptionRecord | None, snapshot: LedgerSnapshot, now: datetime
    ) -> SubscriptionRecord:
        trial_started_at = existing.trial_started_at if existing else None
        trial_ends_at = existing.trial_ends_at if existing else None
        entitlement = snapshot.entitlement(self.settings.entitlement_id)

        if entitlement is not None:
            is_lifetime = self.settings.lifetime_marker in entitlement.product_id
            same_product = existing is not None and existing.product_id == entitlement.product_id
            return SubscriptionRecord(
                status=STATUS_LIFETIME if is_lifetime else STATUS_ACTIVE,
                product_id=entitlement.product_id,
                period=PERIOD_LIFETIME if is_lifetime else PERIOD_MONTHLY,
                started_at=existing.started_at if same_product and existing.started_at else now,
                expires_at=None if is_lifetime else _as_utc(entitlement.expiration),
                is_premium=True,
                trial_started_at=trial_started_at,
                trial_ends_at=trial_ends_at,
            )

        if existing is not None and existing.status in (STATUS_ACTIVE, STATUS_EXPIRED):
            if existing.expires_at is not None and existing.expires_at <= now:
                return replace(existing, status=STATUS_EXPIRED, is_premium=False)

        if existing is not None and existing.status == STATUS_TRIAL:
            if trial_info_for(existing, now).is_trial_active:
                return replace(existing, is_premium=True)

        return SubscriptionRecord(
            status=STATUS_NONE,
            is_premium=False,
            trial_started_at=trial_started_at,
            trial_ends_at=trial_ends_at,
        )

    def start_trial(self) -> SubscriptionRecord:
        now = self.clock.now()
        with self.session_factory() as session:
            with storage_errors("Trial start"):
                store = SubscriptionStore(session)
                existing = store.get_singleton() or SubscriptionRecord()
                record = replace(
                    existing,
                    status=STATUS_TRIAL,
                    is_premium=True,
                    trial_started_at=now,
                    trial_ends_at=now + timedelta(days=self.settings.trial_days),
                )
                store.upsert_singleton(record)
                session.commit()
        logger.info("Trial started, ends %s", record.trial_ends_at.isoformat())
        return record

    def get_trial_info(self) -> TrialInfo:
        return trial_info_for(self.current(), self.clock.now())

    def has_premium_access(self) -> bool:
        return has_premium_access(self.current(), self.clock.now())

    def enforce_expiry(self) -> SubscriptionRecord | None:
        now = self.clock.now()
        with self.session_factory() as session:
            with storage_errors("Expiry enforcement"):
                store = SubscriptionStore(session)
                existing = store.get_singleton()
                if existing is None or existing.status in (STATUS_LIFETIME, STATUS_EXPIRED):
                    return existing
                # Trials carry no expires_at; access is gated on the trial window instead.
                if existing.expires_at is None:
                    return existing
                grace = timedelta(days=self.settings.grace_days)
                if now - existing.expires_at <= grace:
                    return existing
                record = replace(existing, status=STATUS_EXPIRED, is_premium=False)
                store.upsert_singleton(record)
                session.commit()
        logger.info("Subscription expired offline (was %s)", existing.status)
        return record

    def refresh(self, ledger: PurchaseLedger) -> SubscriptionRecord | None:
        try:
            snapshot = ledger.get_snapshot()
        except LedgerUnavailable as exc:
            logger.warning("Ledger refresh failed: %s", exc.__class__.__name__)
        else:
            self.sync_from_ledger(snapshot)
        return self.enforce_expiry()

    def purchase(self, ledger: PurchaseLedger, package_id: str) -> SubscriptionRecord:
        return self.sync_from_ledger(ledger.purchase(package_id))

    def restore(self, ledger: PurchaseLedger) -> SubscriptionRecord:
        return self.sync_from_ledger(ledger.restore())


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return ensure_utc(value)
