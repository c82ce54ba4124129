from __future__ import annotations

from dataclasses import dataclass, replace
from functools import partial
import logging
import threading

from packages.catalog.catalog import Catalog
from packages.db.database import SessionLocal
from packages.db.errors import storage_errors
from packages.progress.rules import (
    KIND_CHECK,
    KIND_SPEND,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
    OUTCOMES,
    URGE_KINDS,
    calculate_meditation_rank,
    calculate_streak,
    is_day_success,
    should_increment_meditation,
    should_increment_spend_avoided,
)
from packages.reset_protocol.countdown import CountdownHandle, Ticker
from packages.stores.content import ContentStore
from packages.stores.events import EventStore
from packages.stores.progress import ProgressStore

logger = logging.getLogger(__name__)

STATE_SELECT_URGE = "select_urge"
STATE_BREATHING = "breathing"
STATE_SELECT_ACTION = "select_action"
STATE_SPEND_DELAY = "spend_delay"
STATE_LOG_OUTCOME = "log_outcome"
STATE_COMPLETE = "complete"

DEFAULT_BREATHING_SECONDS = 60


class InvalidTransition(RuntimeError):
    pass


@dataclass(frozen=True)
class ResetSession:
    state: str = STATE_SELECT_URGE
    urge_kind: str | None = None
    action_id: str | None = None
    spend_category: str | None = None
    spend_item_type: str | None = None
    breathing_duration: int = DEFAULT_BREATHING_SECONDS
    time_left: int = DEFAULT_BREATHING_SECONDS
    elapsed: int = 0
    outcome: str | None = None
    trigger_tag: str | None = None
    rank_after: int | None = None
    leveled_up: bool = False

    @property
    def is_breathing(self) -> bool:
        return self.state == STATE_BREATHING


@dataclass(frozen=True)
class CommitResult:
    event_id: int
    date_local: str
    outcome: str
    day_success: bool
    streak: int
    meditation_count_total: int
    spend_avoided_count_total: int
    rank_before: int
    rank_after: int

    @property
    def leveled_up(self) -> bool:
        return self.rank_after > self.rank_before


class ResetProtocolMachine:
    """Drives one guided reset session and commits its outcome.

    Transitions come from the UI thread; countdown ticks may arrive from a
    scheduler thread, so every read-modify-write of the session happens under
    ``_state_lock``. ``log_outcome`` is single-flight: a call made while a
    commit is in flight returns ``None`` without touching storage.
    """

    def __init__(
        self,
        catalog: Catalog,
        clock,
        ticker: Ticker,
        session_factory=SessionLocal,
        breathing_seconds: int = DEFAULT_BREATHING_SECONDS,
    ) -> None:
        self.catalog = catalog
        self.clock = clock
        self.ticker = ticker
        self.session_factory = session_factory
        self.breathing_seconds = breathing_seconds
        self._state_lock = threading.RLock()
        self._commit_lock = threading.Lock()
        self._countdown: CountdownHandle | None = None
        self._countdown_token: object | None = None
        self._generation = 0
        self._session = self._fresh_session()

    @property
    def session(self) -> ResetSession:
        with self._state_lock:
            return self._session

    @property
    def state(self) -> str:
        return self.session.state

    def select_urge_kind(self, kind: str) -> None:
        if kind not in URGE_KINDS:
            raise ValueError(f"Unknown urge kind {kind}")
        with self._state_lock:
            self._require(STATE_SELECT_URGE)
            self._session = replace(self._session, urge_kind=kind)

    def start_breathing(self) -> None:
        with self._state_lock:
            self._require(STATE_SELECT_URGE, STATE_BREATHING)
            self._cancel_countdown()
            self._session = replace(
                self._session,
                state=STATE_BREATHING,
                breathing_duration=self.breathing_seconds,
                time_left=self.breathing_seconds,
                elapsed=0,
            )
            token = object()
            self._countdown_token = token
            self._countdown = self.ticker.start(partial(self._on_tick, token))

    def skip_breathing(self) -> None:
        with self._state_lock:
            if self._session.state != STATE_BREATHING:
                logger.debug("Skip ignored outside breathing (state=%s)", self._session.state)
                return
            self._leave_breathing(self._session.time_left)

    def complete_breathing(self) -> None:
        with self._state_lock:
            if self._session.state != STATE_BREATHING:
                logger.debug("Complete ignored outside breathing (state=%s)", self._session.state)
                return
            self._leave_breathing(0)

    def select_action(self, action_id: str) -> None:
        with self._state_lock:
            self._require(STATE_SELECT_ACTION)
            if self.catalog.find_action(action_id) is None:
                logger.warning("Action %s not in catalog %s", action_id, self.catalog.version)
            next_state = (
                STATE_SPEND_DELAY if self._session.urge_kind == KIND_SPEND else STATE_LOG_OUTCOME
            )
            self._session = replace(self._session, action_id=action_id, state=next_state)

    def select_spend_category(self, category: str) -> None:
        if category not in {option.id for option in self.catalog.spend_categories}:
            raise ValueError(f"Unknown spend category {category}")
        with self._state_lock:
            self._session = replace(self._session, spend_category=category)

    def select_spend_item_type(self, item_type: str) -> None:
        if item_type not in {option.id for option in self.catalog.spend_item_types}:
            raise ValueError(f"Unknown spend item type {item_type}")
        with self._state_lock:
            self._session = replace(self._session, spend_item_type=item_type)

    def meditated(self) -> CommitResult | None:
        with self._state_lock:
            self._require(STATE_SPEND_DELAY, STATE_COMPLETE)
        return self._single_flight(OUTCOME_SUCCESS, None, collect_details=False)

    def spent_anyway(self) -> CommitResult | None:
        with self._state_lock:
            self._require(STATE_SPEND_DELAY, STATE_COMPLETE)
        return self._single_flight(OUTCOME_FAIL, None, collect_details=False)

    def log_outcome(self, outcome: str, trigger_tag: str | None = None) -> CommitResult | None:
        if outcome not in OUTCOMES:
            raise ValueError(f"Unknown outcome {outcome}")
        with self._state_lock:
            self._require(STATE_LOG_OUTCOME, STATE_SPEND_DELAY, STATE_COMPLETE)
        return self._single_flight(outcome, trigger_tag, collect_details=True)

    def reset(self) -> None:
        with self._state_lock:
            self._cancel_countdown()
            self._generation += 1
            self._session = self._fresh_session()

    def _single_flight(
        self, outcome: str, trigger_tag: str | None, collect_details: bool
    ) -> CommitResult | None:
        if not self._commit_lock.acquire(blocking=False):
            logger.debug("Outcome commit already in flight; ignoring")
            return None
        try:
            with self._state_lock:
                current = self._session
                generation = self._generation
            if current.state == STATE_COMPLETE:
                logger.debug("Outcome already committed for this session")
                return None
            result = self._commit(current, outcome, trigger_tag, collect_details)
            with self._state_lock:
                if generation != self._generation:
                    logger.debug("Session was reset during commit; leaving new session as is")
                    return result
                self._cancel_countdown()
                self._session = replace(
                    self._session,
                    state=STATE_COMPLETE,
                    outcome=outcome,
                    trigger_tag=trigger_tag,
                    rank_after=result.rank_after,
                    leveled_up=result.leveled_up,
                )
            return result
        finally:
            self._commit_lock.release()

    def _commit(
        self,
        current: ResetSession,
        outcome: str,
        trigger_tag: str | None,
        collect_details: bool,
    ) -> CommitResult:
        tz = self.clock.timezone
        now = self.clock.now()
        today = self.clock.today_local()
        urge_kind = current.urge_kind or KIND_CHECK
        action = self.catalog.find_action(current.action_id)

        with self.session_factory() as session:
            events = EventStore(session, tz)
            with storage_errors("Urge event write"):
                event_id = events.create(
                    started_at=now,
                    urge_kind=urge_kind,
                    outcome=outcome,
                    action_type=action.action_type if action else "general",
                    action_id=current.action_id or "",
                    trigger_tag=trigger_tag if collect_details else None,
                    spend_category=current.spend_category if collect_details else None,
                    spend_item_type=current.spend_item_type if collect_details else None,
                )
                session.commit()

            with storage_errors("Progress update"):
                progress = ProgressStore(session)
                latest = progress.get_latest()
                today_row = progress.get_by_date(today)

                previous_total = latest.meditation_count_total if latest else 0
                previous_spend = latest.spend_avoided_count_total if latest else 0
                meditation_total = previous_total + (1 if should_increment_meditation(outcome) else 0)
                spend_avoided = previous_spend + (
                    1 if should_increment_spend_avoided(urge_kind, outcome) else 0
                )
                rank_before = calculate_meditation_rank(previous_total)
                rank_after = calculate_meditation_rank(meditation_total)

                success_count = events.count_by_date(today, outcome=OUTCOME_SUCCESS)
                content_done = ContentStore(session, tz).has_completed_on(today)
                already_success = today_row is not None and today_row.last_success_date == today
                day_success = already_success or is_day_success(success_count, content_done)

                success_dates = set(progress.list_success_dates())
                if day_success:
                    success_dates.add(today)
                streak = calculate_streak(success_dates, today)

                if day_success:
                    last_success = today
                else:
                    last_success = latest.last_success_date if latest else None

                progress.upsert(
                    date_local=today,
                    streak_current=streak,
                    meditation_count_total=meditation_total,
                    meditation_rank=rank_after,
                    last_success_date=last_success,
                    spend_avoided_count_total=spend_avoided,
                )
                session.commit()

        if rank_after > rank_before:
            logger.info("Meditation rank up %s -> %s", rank_before, rank_after)
        return CommitResult(
            event_id=event_id,
            date_local=today,
            outcome=outcome,
            day_success=day_success,
            streak=streak,
            meditation_count_total=meditation_total,
            spend_avoided_count_total=spend_avoided,
            rank_before=rank_before,
            rank_after=rank_after,
        )

    def _on_tick(self, token: object) -> None:
        with self._state_lock:
            if token is not self._countdown_token or self._session.state != STATE_BREATHING:
                return
            time_left = self._session.time_left - 1
            if time_left <= 0:
                self._leave_breathing(0)
                return
            self._session = replace(
                self._session,
                time_left=time_left,
                elapsed=self._session.breathing_duration - time_left,
            )

    def _leave_breathing(self, time_left: int) -> None:
        self._cancel_countdown()
        self._session = replace(
            self._session,
            state=STATE_SELECT_ACTION,
            time_left=time_left,
            elapsed=self._session.breathing_duration - time_left,
        )

    def _cancel_countdown(self) -> None:
        handle = self._countdown
        self._countdown = None
        self._countdown_token = None
        if handle is not None:
            handle.cancel()

    def _require(self, *states: str) -> None:
        if self._session.state not in states:
            raise InvalidTransition(
                f"Cannot do this from {self._session.state} (expected {', '.join(states)})"
            )

    def _fresh_session(self) -> ResetSession:
        return ResetSession(
            breathing_duration=self.breathing_seconds, time_left=self.breathing_seconds
        )
