import pytest

from domain.models import TimerSet
from services.history_service import HistoryService
from services.settings_service import SettingsService
from services.timer_service import TimerService
from services.timer_set_service import TimerSetService, make_timer

from conftest import FakeClock, FakeNotifier, FakeScheduler, FakeSoundPlayer


@pytest.fixture
def app(db):
    clock = FakeClock()
    scheduler = FakeScheduler(clock)
    sound = FakeSoundPlayer()
    sets = TimerSetService(db)
    history = HistoryService(db)
    settings = SettingsService(db)
    svc = TimerService(
        sets,
        history,
        settings,
        scheduler=scheduler,
        sound_player=sound,
        notifier=FakeNotifier(),
        clock=clock,
    )
    svc.scheduler = scheduler
    svc.sound = sound
    return svc


def test_select_unknown_set(app):
    with pytest.raises(ValueError, match="not found"):
        app.select("missing")


def test_full_run_is_logged(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 2), make_timer("Off", 3)])
    finished = []
    app.set_on_finish(finished.append)
    app.select(ts.id)
    app.start()
    app.scheduler.advance(5000)

    assert len(finished) == 1
    assert finished[0].run_count == 2
    assert finished[0].total_elapsed_sec == 5
    entries = app.history.list_entries(timer_set_id=ts.id)
    assert len(entries) == 1
    assert entries[0].timers_run == 2
    assert entries[0].total_duration_sec == 5
    assert entries[0].completed_at is not None
    assert not entries[0].cancelled


def test_cancel_is_logged(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 2), make_timer("Off", 3)])
    cancelled = []
    app.set_on_cancel(cancelled.append)
    app.select(ts.id)
    app.start()
    app.scheduler.advance(3000)
    app.cancel()

    assert len(cancelled) == 1
    entry = app.history.list_entries()[0]
    assert entry.cancelled is True
    assert entry.timers_run == 1
    assert entry.total_duration_sec == 2


def test_shutdown_closes_open_run(app):
    ts = app.timer_sets.create_set("Long", [make_timer("On", 600)])
    app.select(ts.id)
    app.start()
    app.shutdown()
    assert app.history.list_entries()[0].cancelled is True


def test_settings_change_reaches_engine(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 2)])
    app.select(ts.id)
    app.settings.update(notification_volume=0.4)
    assert app.engine.settings.notification_volume == 0.4
    assert ("volume", "normal", 0.4) in app.sound.events


def test_edits_apply_when_idle(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 2)])
    app.select(ts.id)
    app.timer_sets.update_set(TimerSet(id=ts.id, name="Intervals", timers=(make_timer("On", 45),)))
    app.timer_set_changed(ts.id)
    assert app.get_snapshot().remaining_sec == 45


def test_edits_wait_while_running(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 30)])
    app.select(ts.id)
    app.start()
    app.timer_sets.update_set(TimerSet(id=ts.id, name="Renamed", timers=(make_timer("On", 45),)))
    app.timer_set_changed(ts.id)

    snap = app.get_snapshot()
    assert snap.running
    assert snap.set_name == "Intervals"
    assert snap.remaining_sec == 30


def test_quick_timer(app):
    assert app.select_quick("130") == 90
    snap = app.get_snapshot()
    assert snap.is_quick
    assert snap.remaining_sec == 90
    assert app.selected_set is None

    app.start()
    app.scheduler.advance(90_000)
    assert not app.get_snapshot().running
    assert app.history.list_entries() == []


def test_edits_wait_while_paused_mid_run(app):
    ts = app.timer_sets.create_set("Intervals", [make_timer("On", 30)])
    app.select(ts.id)
    app.start()
    app.pause()
    app.timer_sets.update_set(TimerSet(id=ts.id, name="Renamed", timers=(make_timer("On", 45),)))
    app.timer_set_changed(ts.id)
    assert app.get_snapshot().set_name == "Intervals"
