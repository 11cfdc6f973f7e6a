import math
import sqlite3

import pytest

from domain.models import NotificationConfig, NotificationRepeat, SubTimer, TimerSet
from services.history_service import HistoryService
from services.timer_set_service import TimerSetService, make_timer
from storage.db import Database


def _basic(svc, name="Workout"):
    return svc.create_set(
        name,
        [make_timer("Focus", 1500), make_timer("Break", 300, notify=False, note="stretch")],
        sound="chime",
        description="  focus then rest  ",
    )


def test_create_and_get_keeps_order(db):
    svc = TimerSetService(db)
    ts = _basic(svc)

    loaded = svc.get_set(ts.id)
    assert loaded.name == "Workout"
    assert loaded.sound == "chime"
    assert loaded.description == "focus then rest"
    assert [t.label for t in loaded.timers] == ["Focus", "Break"]
    assert [t.duration_sec for t in loaded.timers] == [1500, 300]
    assert loaded.timers[1].notify is False
    assert loaded.timers[1].note == "stretch"
    assert loaded.created_at > 0


def test_durations_are_coerced(db):
    svc = TimerSetService(db)
    timers = [
        SubTimer(id="", label="a", duration_sec=-5),
        SubTimer(id="", label="b", duration_sec="90"),
        SubTimer(id="", label="c", duration_sec=math.nan),
        SubTimer(id="", label="d", duration_sec=12.7),
    ]
    ts = svc.create_set("Odd", timers)
    assert [t.duration_sec for t in ts.timers] == [0, 90, 0, 12]
    assert all(t.id for t in ts.timers)


def test_create_validation(db):
    svc = TimerSetService(db)
    with pytest.raises(ValueError, match="name cannot be empty"):
        svc.create_set("   ", [make_timer("a", 10)])
    with pytest.raises(ValueError, match="label cannot be empty"):
        svc.create_set("Set", [make_timer("  ", 10)])
    with pytest.raises(ValueError, match="Unknown sound"):
        svc.create_set("Set", [make_timer("a", 10)], sound="kazoo")


def test_empty_set_is_allowed(db):
    ts = TimerSetService(db).create_set("Nothing yet", [])
    assert ts.timers == ()


def test_notification_config_round_trips(db):
    svc = TimerSetService(db)
    cfg = NotificationConfig(
        enabled=True,
        date="2026-10-20",
        time="07:30",
        repeat=NotificationRepeat(mode="weekday", weekdays=(1, 3, 5), interval_weeks=2),
    )
    ts = svc.create_set("Morning", [make_timer("Run", 600)], notifications=cfg)
    assert svc.get_set(ts.id).notifications == cfg
    assert svc.get_set(ts.id).notifications_enabled


def test_update_replaces_timers_and_renames_history(db):
    svc = TimerSetService(db)
    history = HistoryService(db)
    ts = _basic(svc)
    entry_id = history.log_start(ts.id, ts.name)

    updated = svc.update_set(
        TimerSet(
            id=ts.id,
            name="Deep work",
            timers=(make_timer("Focus", 3000),),
            sound="bird",
        )
    )
    assert updated.name == "Deep work"
    assert [t.duration_sec for t in updated.timers] == [3000]
    assert history.get_entry(entry_id).timer_set_name == "Deep work"


def test_update_unknown_set(db):
    svc = TimerSetService(db)
    ts = _basic(svc)
    svc.delete_set(ts.id)
    with pytest.raises(ValueError, match="not found"):
        svc.update_set(ts)


def test_delete_keeps_history_by_default(db):
    svc = TimerSetService(db)
    history = HistoryService(db)
    ts = _basic(svc)
    history.log_start(ts.id, None)
    svc.delete_set(ts.id)

    assert svc.get_set(ts.id) is None
    entries = history.list_entries(timer_set_id=ts.id)
    assert len(entries) == 1
    assert entries[0].timer_set_name == "Workout"
    rows = db.conn.execute("SELECT COUNT(1) AS c FROM sub_timers WHERE set_id=?", (ts.id,)).fetchone()
    assert rows["c"] == 0


def test_delete_with_history(db):
    svc = TimerSetService(db)
    history = HistoryService(db)
    ts = _basic(svc)
    history.log_start(ts.id, ts.name)
    svc.delete_set(ts.id, with_history=True)
    assert history.list_entries() == []


def test_duplicate_gets_new_ids(db):
    svc = TimerSetService(db)
    ts = _basic(svc)
    dup = svc.duplicate_set(ts.id)

    assert dup.id != ts.id
    assert dup.name == "Workout (copy)"
    assert [t.duration_sec for t in dup.timers] == [1500, 300]
    assert not {t.id for t in dup.timers} & {t.id for t in ts.timers}
    assert len(svc.list_sets()) == 2


def test_hidden_sets(db):
    svc = TimerSetService(db)
    a = _basic(svc, "A")
    b = _basic(svc, "B")
    svc.set_hidden([a.id, a.id])

    assert svc.hidden_ids() == [a.id]
    assert [s.id for s in svc.list_sets(include_hidden=False)] == [b.id]
    assert len(svc.list_sets()) == 2

    svc.delete_set(a.id)
    assert svc.hidden_ids() == []


def test_seed_runs_once(db):
    svc = TimerSetService(db)
    seeded = svc.ensure_seed()
    assert seeded.name == "Pomodoro (25-5 x2)"
    assert [t.duration_sec for t in seeded.timers] == [1500, 300, 1500, 300]

    svc.delete_set(seeded.id)
    assert svc.ensure_seed() is None
    assert svc.list_sets() == []


def test_seed_skipped_when_sets_exist(db):
    svc = TimerSetService(db)
    _basic(svc)
    assert svc.ensure_seed() is None
    assert len(svc.list_sets()) == 1


def test_schema_adds_note_column_to_old_databases(tmp_path):
    path = str(tmp_path / "old.db")
    conn = sqlite3.connect(path)
    conn.execute(
        """
        CREATE TABLE sub_timers (
            id TEXT NOT NULL,
            set_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            label TEXT NOT NULL,
            duration_sec INTEGER NOT NULL DEFAULT 0,
            notify INTEGER NOT NULL DEFAULT 1,
            PRIMARY KEY (set_id, position)
        )
        """
    )
    conn.commit()
    conn.close()

    database = Database(db_path=path)
    database.init_schema()
    assert "note" in database._cols("sub_timers")
    database.close()
