import itertools

import pytest

from core.ports import HistoryLedger, NotificationScheduler, Scheduler, SoundPlayer
from core.run_engine import RunEngine
from domain.models import NotificationConfig, Settings, SubTimer, TimerSet
from storage.db import Database


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        # time passes with no callbacks firing (process suspended)
        self.now += ms


class FakeScheduler(Scheduler):
    """Manual event loop: jobs run only when advance() moves time past them."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self._jobs = {}
        self._ids = itertools.count(1)

    def call_later(self, delay_ms, callback):
        jid = next(self._ids)
        self._jobs[jid] = (self.clock.now + int(delay_ms), jid, callback)
        return jid

    def cancel(self, handle):
        self._jobs.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, ms: int) -> None:
        target = self.clock.now + ms
        while True:
            due = [j for j in self._jobs.values() if j[0] <= target]
            if not due:
                break
            when, jid, callback = min(due, key=lambda j: (j[0], j[1]))
            del self._jobs[jid]
            self.clock.now = max(self.clock.now, when)
            callback()
        self.clock.now = target


class FakeSoundPlayer(SoundPlayer):
    def __init__(self, beep_ms: int = 0):
        self.beep_ms = beep_ms
        self.events = []
        self.fail = False
        self.on_play = None

    def load(self, sound_id):
        self.events.append(("load", sound_id))
        return sound_id

    def play(self, handle):
        if self.fail:
            raise RuntimeError("audio device busy")
        self.events.append(("play", handle))
        if self.on_play:
            self.on_play(handle)

    def stop(self, handle):
        if self.fail:
            raise RuntimeError("audio device busy")
        self.events.append(("stop", handle))

    def unload(self, handle):
        self.events.append(("unload", handle))

    def get_playback_duration_ms(self, handle):
        return self.beep_ms if handle == "beep" else 0

    def set_volume(self, handle, volume):
        self.events.append(("volume", handle, volume))

    def played(self):
        return [e[1] for e in self.events if e[0] == "play"]

    def count(self, kind):
        return sum(1 for e in self.events if e[0] == kind)


class FakeNotifier(NotificationScheduler):
    def __init__(self):
        self.alerts = []
        self.cancelled = []
        self.statuses = []
        self.cleared = 0
        self.reminders = []
        self.fail = False
        self._ids = itertools.count(1)

    def schedule_end_alert(self, after_sec, label, is_last):
        if self.fail:
            raise RuntimeError("notification daemon not running")
        alert_id = f"a{next(self._ids)}"
        self.alerts.append((alert_id, after_sec, label, is_last))
        return alert_id

    def cancel_alerts(self, alert_ids):
        self.cancelled.extend(alert_ids)

    def update_persistent_status(self, set_name, timer_label, remaining_sec):
        self.statuses.append((set_name, timer_label, remaining_sec))

    def clear_persistent_status(self):
        self.cleared += 1

    def schedule_reminder(self, at_epoch_sec, title, body):
        rid = f"r{next(self._ids)}"
        self.reminders.append((rid, at_epoch_sec, title, body))
        return rid


class FakeLedger(HistoryLedger):
    def __init__(self):
        self.entries = {}
        self._ids = itertools.count(1)

    def log_start(self, timer_set_id, timer_set_name=None):
        entry_id = f"h{next(self._ids)}"
        self.entries[entry_id] = {"set_id": timer_set_id, "name": timer_set_name, "done": False}
        return entry_id

    def log_complete(self, entry_id, cancelled=False, total_duration_sec=0, timers_run=0):
        entry = self.entries[entry_id]
        if entry["done"]:
            raise ValueError("History entry already completed.")
        entry.update(
            done=True,
            cancelled=cancelled,
            total_duration_sec=total_duration_sec,
            timers_run=timers_run,
        )

    def only(self):
        assert len(self.entries) == 1
        return next(iter(self.entries.values()))


def make_set(*timers, sound="normal", notifications=True, set_id="set-1", name="Workout") -> TimerSet:
    """timers: ints (seconds) or (seconds, notify) tuples."""
    subs = []
    for i, t in enumerate(timers):
        duration, notify = (t if isinstance(t, tuple) else (t, True))
        subs.append(SubTimer(id=f"t{i}", label=f"T{i}", duration_sec=duration, notify=notify))
    return TimerSet(
        id=set_id,
        name=name,
        timers=tuple(subs),
        sound=sound,
        notifications=NotificationConfig(enabled=True) if notifications else None,
    )


class Harness:
    def __init__(self, beep_ms: int = 0, settings: Settings = None):
        self.clock = FakeClock()
        self.scheduler = FakeScheduler(self.clock)
        self.sound = FakeSoundPlayer(beep_ms=beep_ms)
        self.notifier = FakeNotifier()
        self.ledger = FakeLedger()
        self.finished = 0
        self.cancelled = 0
        self.engine = RunEngine(
            scheduler=self.scheduler,
            sound_player=self.sound,
            notifier=self.notifier,
            ledger=self.ledger,
            settings=settings or Settings(),
            clock=self.clock,
        )
        self.engine.set_on_finish(self._finished)
        self.engine.set_on_cancel(self._cancelled)

    def _finished(self):
        self.finished += 1

    def _cancelled(self):
        self.cancelled += 1

    def seconds(self, n: float) -> None:
        self.scheduler.advance(int(n * 1000))


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def db(tmp_path):
    database = Database(db_path=str(tmp_path / "timers.db"))
    database.init_schema()
    yield database
    database.close()
