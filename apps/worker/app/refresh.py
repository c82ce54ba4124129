from __future__ import annotations

from dataclasses import dataclass
import logging

from packages.catalog.catalog import load_starter_course
from packages.clock import SystemClock
from packages.config.settings import EngineSettings, load_settings
from packages.db.database import SessionLocal
from packages.db.errors import storage_errors
from packages.entitlements.engine import EntitlementEngine, has_premium_access
from packages.entitlements.ledger import PurchaseLedger
from packages.notifications.orchestrator import (
    RescheduleResult,
    build_reminder_context,
    reschedule_all,
)
from packages.notifications.policy import NotificationContent
from packages.notifications.scheduler import NotificationScheduler
from packages.stores.content import ContentStore
from packages.stores.profile import ProfileStore

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    subscription_status: str
    premium: bool
    reminders: RescheduleResult


def log_delivery(reminder_id: str, content: NotificationContent) -> None:
    logger.info("Reminder %s fired: %s", reminder_id, content.title)


def run_foreground_refresh(
    scheduler: NotificationScheduler,
    ledger: PurchaseLedger | None = None,
    clock=None,
    settings: EngineSettings | None = None,
    session_factory=SessionLocal,
    mark_opened: bool = True,
) -> RefreshOutcome:
    """App came to the foreground: reconcile entitlements and rebuild reminders.

    The worker runs the same refresh on a timer with ``mark_opened=False`` so
    that a background pass does not count as the user opening the app.
    """
    current_settings = settings or load_settings()
    current_clock = clock or SystemClock(current_settings.timezone)

    engine = EntitlementEngine(current_clock, current_settings, session_factory=session_factory)
    if ledger is not None:
        record = engine.refresh(ledger)
    else:
        record = engine.enforce_expiry()

    with session_factory() as session:
        with storage_errors("Foreground bookkeeping"):
            ProfileStore(session).get_or_create(created_at=current_clock.now())
            seeded = ContentStore(session, current_clock.timezone).seed_if_empty(
                list(load_starter_course().days)
            )
            if mark_opened:
                ProfileStore(session).mark_opened(current_clock.today_local())
            session.commit()
        if seeded:
            logger.info("Seeded %s starter course days", seeded)
        with storage_errors("Reminder context read"):
            context = build_reminder_context(session, current_clock)

    reminders = reschedule_all(scheduler, context)
    return RefreshOutcome(
        subscription_status=record.status if record else "none",
        premium=has_premium_access(record, current_clock.now()),
        reminders=reminders,
    )


def run_reminder_rebuild(
    scheduler: NotificationScheduler,
    clock=None,
    settings: EngineSettings | None = None,
    session_factory=SessionLocal,
) -> RescheduleResult:
    current_settings = settings or load_settings()
    current_clock = clock or SystemClock(current_settings.timezone)
    with session_factory() as session:
        with storage_errors("Reminder context read"):
            context = build_reminder_context(session, current_clock)
    return reschedule_all(scheduler, context)
