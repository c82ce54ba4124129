from datetime import datetime, timedelta
import threading
from zoneinfo import ZoneInfo

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError

from packages.catalog import load_catalog
from packages.clock import FixedClock
from packages.db.database import SessionLocal
from packages.db.errors import StorageError
from packages.db.models import Progress, UrgeEvent
from packages.reset_protocol.countdown import ManualTicker, SchedulerTicker
from packages.reset_protocol.machine import InvalidTransition, ResetProtocolMachine
from packages.stores.content import ContentStore
from packages.stores.events import EventStore
from packages.stores.progress import ProgressStore

TIMEZONE = ZoneInfo("America/New_York")


def _make_machine(clock: FixedClock | None = None) -> tuple[ResetProtocolMachine, ManualTicker]:
    ticker = ManualTicker()
    machine = ResetProtocolMachine(
        catalog=load_catalog(),
        clock=clock or FixedClock(datetime(2026, 2, 16, 15, 0, tzinfo=TIMEZONE), TIMEZONE),
        ticker=ticker,
    )
    return machine, ticker


def _to_log_outcome(machine: ResetProtocolMachine, kind: str = "swipe") -> None:
    machine.select_urge_kind(kind)
    machine.start_breathing()
    machine.skip_breathing()
    machine.select_action("breath_box")


def test_breathing_auto_advances_when_timer_runs_out() -> None:
    machine, ticker = _make_machine()
    machine.select_urge_kind("swipe")
    machine.start_breathing()
    assert machine.state == "breathing"
    assert ticker.active == 1

    ticker.tick(59)
    assert machine.state == "breathing"
    assert machine.session.time_left == 1

    ticker.tick()
    assert machine.state == "select_action"
    assert machine.session.time_left == 0
    assert machine.session.elapsed == 60
    assert ticker.active == 0


def test_skip_breathing_keeps_elapsed_time() -> None:
    machine, ticker = _make_machine()
    machine.select_urge_kind("check")
    machine.start_breathing()
    ticker.tick(10)
    machine.skip_breathing()

    assert machine.state == "select_action"
    assert machine.session.elapsed == 10
    assert machine.session.elapsed < machine.session.breathing_duration
    assert ticker.active == 0

    ticker.tick(5)
    assert machine.session.elapsed == 10


def test_complete_breathing_moves_on() -> None:
    machine, ticker = _make_machine()
    machine.start_breathing()
    machine.complete_breathing()
    assert machine.state == "select_action"
    assert ticker.active == 0


def test_stale_tick_does_not_touch_session() -> None:
    machine, ticker = _make_machine()
    machine.select_urge_kind("swipe")
    machine.start_breathing()
    stale_tick = ticker.handles[0].callback

    machine.reset()
    assert ticker.active == 0
    stale_tick()
    assert machine.state == "select_urge"

    machine.start_breathing()
    stale_tick()
    assert machine.session.time_left == 60


def test_select_action_branches_on_kind() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine, "spend")
    assert machine.state == "spend_delay"

    machine.reset()
    _to_log_outcome(machine, "swipe")
    assert machine.state == "log_outcome"
    assert machine.session.action_id == "breath_box"


def test_invalid_transition_raises() -> None:
    machine, _ticker = _make_machine()
    with pytest.raises(InvalidTransition):
        machine.select_action("breath_box")
    with pytest.raises(ValueError):
        machine.select_urge_kind("scroll")


def test_log_outcome_requires_finished_protocol() -> None:
    machine, _ticker = _make_machine()
    with pytest.raises(InvalidTransition):
        machine.log_outcome("success")

    machine.select_urge_kind("swipe")
    machine.start_breathing()
    with pytest.raises(InvalidTransition):
        machine.log_outcome("success")
    assert machine.state == "breathing"

    with SessionLocal() as session:
        assert session.query(UrgeEvent).count() == 0
        assert session.query(Progress).count() == 0


def test_log_outcome_persists_event_and_progress() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine)
    result = machine.log_outcome("success", trigger_tag="bored")

    assert result is not None
    assert machine.state == "complete"
    assert machine.session.outcome == "success"
    assert machine.session.rank_after == 1
    assert result.day_success is True
    assert result.streak == 1

    with SessionLocal() as session:
        event = session.query(UrgeEvent).one()
        assert event.urge_kind == "swipe"
        assert event.action_id == "breath_box"
        assert event.action_type == "breathing"
        assert event.trigger_tag == "bored"
        assert event.date_local == "2026-02-16"
        progress = session.get(Progress, "2026-02-16")
        assert progress.meditation_count_total == 1
        assert progress.last_success_date == "2026-02-16"


def test_spend_delay_exits_skip_details() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine, "spend")
    machine.select_spend_category("iap")
    machine.select_spend_item_type("boost")
    result = machine.meditated()

    assert result is not None
    assert result.outcome == "success"
    assert result.spend_avoided_count_total == 1

    machine.reset()
    _to_log_outcome(machine, "spend")
    machine.select_spend_category("date")
    fail_result = machine.spent_anyway()
    assert fail_result.outcome == "fail"
    assert fail_result.spend_avoided_count_total == 1

    with SessionLocal() as session:
        events = session.query(UrgeEvent).order_by(UrgeEvent.id.asc()).all()
        assert [event.outcome for event in events] == ["success", "fail"]
        for event in events:
            assert event.trigger_tag is None
            assert event.spend_category is None
            assert event.spend_item_type is None


def test_full_log_outcome_keeps_spend_details() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine, "spend")
    machine.select_spend_category("iap")
    machine.select_spend_item_type("like_pack")
    machine.log_outcome("fail", trigger_tag="lonely")

    with SessionLocal() as session:
        event = session.query(UrgeEvent).one()
        assert event.spend_category == "iap"
        assert event.spend_item_type == "like_pack"
        assert event.trigger_tag == "lonely"


def test_second_commit_after_complete_is_ignored() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine)
    assert machine.log_outcome("success") is not None
    assert machine.log_outcome("success") is None

    with SessionLocal() as session:
        assert session.query(UrgeEvent).count() == 1


def test_concurrent_log_outcome_commits_once(monkeypatch) -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine)

    entered = threading.Event()
    release = threading.Event()
    original_create = EventStore.create
    original_upsert = ProgressStore.upsert
    upserts: list[str] = []

    def slow_create(self, *args, **kwargs):
        entered.set()
        release.wait(timeout=5)
        return original_create(self, *args, **kwargs)

    def counting_upsert(self, *args, **kwargs):
        upserts.append(kwargs["date_local"])
        return original_upsert(self, *args, **kwargs)

    monkeypatch.setattr(EventStore, "create", slow_create)
    monkeypatch.setattr(ProgressStore, "upsert", counting_upsert)

    results = []
    worker = threading.Thread(target=lambda: results.append(machine.log_outcome("success")))
    worker.start()
    assert entered.wait(timeout=5)

    assert machine.log_outcome("success") is None
    release.set()
    worker.join(timeout=5)

    assert results[0] is not None
    assert upserts == ["2026-02-16"]
    with SessionLocal() as session:
        assert session.query(UrgeEvent).count() == 1


def test_reset_during_commit_keeps_new_session_fresh(monkeypatch) -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine)

    entered = threading.Event()
    release = threading.Event()
    original_create = EventStore.create

    def slow_create(self, *args, **kwargs):
        entered.set()
        release.wait(timeout=5)
        return original_create(self, *args, **kwargs)

    monkeypatch.setattr(EventStore, "create", slow_create)

    results = []
    worker = threading.Thread(target=lambda: results.append(machine.log_outcome("success")))
    worker.start()
    assert entered.wait(timeout=5)

    machine.reset()
    release.set()
    worker.join(timeout=5)

    assert results[0] is not None
    assert machine.state == "select_urge"
    assert machine.session.outcome is None
    assert machine.session.rank_after is None
    with SessionLocal() as session:
        assert session.query(UrgeEvent).count() == 1


def test_storage_failure_leaves_session_retryable(monkeypatch) -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine)

    def broken_create(self, *args, **kwargs):
        raise SQLAlchemyError("disk I/O error")

    original_create = EventStore.create
    monkeypatch.setattr(EventStore, "create", broken_create)
    with pytest.raises(StorageError):
        machine.log_outcome("success")
    assert machine.state == "log_outcome"

    monkeypatch.setattr(EventStore, "create", original_create)
    assert machine.log_outcome("success") is not None
    assert machine.state == "complete"


def test_success_day_is_not_undone_by_later_fail() -> None:
    clock = FixedClock(datetime(2026, 2, 16, 9, 0, tzinfo=TIMEZONE), TIMEZONE)
    machine, _ticker = _make_machine(clock)
    _to_log_outcome(machine)
    machine.log_outcome("success")

    clock.advance(timedelta(hours=3))
    machine.reset()
    _to_log_outcome(machine)
    result = machine.log_outcome("fail")

    assert result.day_success is True
    assert result.streak == 1
    with SessionLocal() as session:
        progress = session.get(Progress, "2026-02-16")
        assert progress.last_success_date == "2026-02-16"
        assert progress.meditation_count_total == 1


def test_fail_day_breaks_streak() -> None:
    clock = FixedClock(datetime(2026, 2, 16, 9, 0, tzinfo=TIMEZONE), TIMEZONE)
    machine, _ticker = _make_machine(clock)
    _to_log_outcome(machine)
    machine.log_outcome("success")

    clock.advance(timedelta(days=1))
    machine.reset()
    _to_log_outcome(machine)
    result = machine.log_outcome("fail")

    assert result.day_success is False
    assert result.streak == 0
    with SessionLocal() as session:
        progress = session.get(Progress, "2026-02-17")
        assert progress.last_success_date == "2026-02-16"
        assert progress.meditation_count_total == 1


def test_completed_lesson_counts_as_day_success() -> None:
    clock = FixedClock(datetime(2026, 2, 16, 9, 0, tzinfo=TIMEZONE), TIMEZONE)
    with SessionLocal() as session:
        ContentStore(session, TIMEZONE).mark_completed("starter_d1", clock.now())
        session.commit()

    machine, _ticker = _make_machine(clock)
    _to_log_outcome(machine)
    result = machine.log_outcome("fail")
    assert result.day_success is True
    assert result.streak == 1


def test_five_successful_days_in_a_row() -> None:
    clock = FixedClock(datetime(2026, 2, 16, 15, 0, tzinfo=TIMEZONE), TIMEZONE)
    machine, _ticker = _make_machine(clock)
    results = []
    for _ in range(5):
        machine.reset()
        _to_log_outcome(machine)
        results.append(machine.log_outcome("success"))
        clock.advance(timedelta(days=1))

    assert [result.rank_after for result in results] == [1, 1, 1, 1, 2]
    assert [result.leveled_up for result in results] == [False, False, False, False, True]
    assert machine.session.leveled_up is True

    with SessionLocal() as session:
        latest = ProgressStore(session).get_latest()
        assert latest.date_local == "2026-02-20"
        assert latest.meditation_count_total == 5
        assert latest.meditation_rank == 2
        assert latest.streak_current == 5
        assert latest.spend_avoided_count_total == 0


def test_spend_delay_exit_twice_commits_once() -> None:
    machine, _ticker = _make_machine()
    _to_log_outcome(machine, "spend")
    assert machine.meditated() is not None
    assert machine.meditated() is None
    assert machine.spent_anyway() is None

    with SessionLocal() as session:
        assert session.query(UrgeEvent).count() == 1


def test_scheduler_ticker_owns_a_removable_job() -> None:
    background = BackgroundScheduler()
    ticker = SchedulerTicker(background)
    try:
        handle = ticker.start(lambda: None)
        assert background.running
        assert background.get_job(handle.job_id) is not None

        handle.cancel()
        assert background.get_job(handle.job_id) is None
        handle.cancel()
    finally:
        ticker.shutdown()


def test_machine_with_scheduler_ticker_cancels_on_skip() -> None:
    background = BackgroundScheduler()
    ticker = SchedulerTicker(background)
    machine = ResetProtocolMachine(
        catalog=load_catalog(),
        clock=FixedClock(datetime(2026, 2, 16, 15, 0, tzinfo=TIMEZONE), TIMEZONE),
        ticker=ticker,
    )
    try:
        machine.select_urge_kind("swipe")
        machine.start_breathing()
        assert len(background.get_jobs()) == 1
        machine.skip_breathing()
        assert background.get_jobs() == []
        assert machine.state == "select_action"
    finally:
        ticker.shutdown()
