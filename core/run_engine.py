# -*- coding: utf-8 -*-

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from core.catch_up import catch_up
from core.duration import coerce_duration, elapsed_in_set, total_duration
from core.ports import (
    HistoryLedger,
    NotificationScheduler,
    NullNotificationScheduler,
    NullSoundPlayer,
    Scheduler,
    SoundPlayer,
)
from core.sounds import DEFAULT_SOUND, NO_SOUND, TRANSITION_SOUND, resolve_sound
from domain.models import Settings, SubTimer, TimerSet

logger = logging.getLogger(__name__)

TICK_MS = 1000
QUICK_TIMER_NAME = "Quick timer"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _whole_seconds(ms) -> int:
    # half-up, so 2.5s left shows as 3
    return max(0, int(math.floor(ms / 1000 + 0.5)))


@dataclass
class RunSnapshot:
    set_id: Optional[str]
    set_name: str
    label: str
    current_index: int
    timer_count: int
    remaining_sec: int
    running: bool
    end_at_ms: Optional[int]
    history_entry_id: Optional[str]
    run_count: int
    total_elapsed_sec: int
    is_quick: bool
    run_open: bool = False
    set_elapsed_sec: int = 0
    set_total_sec: int = 0


class RunEngine:
    """
    Sequential sub-timer runner.

    Remaining time is derived from an absolute end timestamp (end_at_ms), so a
    refresh after the process was suspended recomputes it from the clock
    instead of trusting how many ticks happened to fire.

    Every scheduled continuation captures the run token and does nothing once
    the token has moved on (pause, cancel, reselect, teardown).
    """

    def __init__(
        self,
        scheduler: Scheduler,
        sound_player: Optional[SoundPlayer] = None,
        notifier: Optional[NotificationScheduler] = None,
        ledger: Optional[HistoryLedger] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.scheduler = scheduler
        self.sound_player = sound_player or NullSoundPlayer()
        self.notifier = notifier or NullNotificationScheduler()
        self.ledger = ledger
        self.settings = settings or Settings()
        self.clock = clock

        self.timer_set: Optional[TimerSet] = None
        self.quick_duration = 0
        self.quick_sound = DEFAULT_SOUND

        # run state
        self.current_index = 0
        self.remaining_sec = 0
        self.running = False
        self.end_at_ms: Optional[int] = None
        self.history_entry_id: Optional[str] = None
        self.run_count = 0
        self.total_elapsed_sec = 0

        self._run_open = False
        self._token = 0
        self._refresh_job: Any = None
        self._next_job: Any = None
        self._alert_ids: List[str] = []

        self._loaded_sound_id: Optional[str] = None
        self._end_sound: Any = None
        self._beep_sound: Any = None

        self._on_finish: Optional[Callable[[], None]] = None
        self._on_cancel: Optional[Callable[[], None]] = None
        self._on_tick: Optional[Callable[[RunSnapshot], None]] = None

    # ----- Callbacks -----
    def set_on_finish(self, fn: Optional[Callable[[], None]]) -> None:
        self._on_finish = fn

    def set_on_cancel(self, fn: Optional[Callable[[], None]]) -> None:
        self._on_cancel = fn

    def set_on_tick(self, fn: Optional[Callable[[RunSnapshot], None]]) -> None:
        self._on_tick = fn

    def _emit_tick(self) -> None:
        if self._on_tick:
            self._on_tick(self.snapshot())

    # ----- Queries -----
    @property
    def is_quick(self) -> bool:
        return self.timer_set is None

    @property
    def token(self) -> int:
        return self._token

    @property
    def run_open(self) -> bool:
        """A run was started and has not finished or been cancelled yet."""
        return self._run_open

    def durations(self) -> List[int]:
        if self.timer_set is None:
            return [self.quick_duration]
        return [coerce_duration(t.duration_sec) for t in self.timer_set.timers]

    def current_timer(self) -> Optional[SubTimer]:
        if self.timer_set is None:
            return None
        if 0 <= self.current_index < len(self.timer_set.timers):
            return self.timer_set.timers[self.current_index]
        return None

    def snapshot(self) -> RunSnapshot:
        current = self.current_timer()
        if self.timer_set is None:
            set_name = QUICK_TIMER_NAME
            label = QUICK_TIMER_NAME
            count = 1
            set_total = self.quick_duration
            set_elapsed = max(0, set_total - coerce_duration(self.remaining_sec))
        else:
            set_name = self.timer_set.name
            label = current.label if current else ""
            count = len(self.timer_set.timers)
            set_total = total_duration(self.timer_set.timers)
            set_elapsed = elapsed_in_set(
                self.timer_set.timers, self.current_index, self.remaining_sec
            )
        return RunSnapshot(
            set_id=self.timer_set.id if self.timer_set else None,
            set_name=set_name,
            label=label,
            current_index=self.current_index,
            timer_count=count,
            remaining_sec=self.remaining_sec,
            running=self.running,
            end_at_ms=self.end_at_ms,
            history_entry_id=self.history_entry_id,
            run_count=self.run_count,
            total_elapsed_sec=self.total_elapsed_sec,
            is_quick=self.is_quick,
            run_open=self._run_open,
            set_elapsed_sec=set_elapsed,
            set_total_sec=set_total,
        )

    def _duration_at(self, index: int) -> int:
        ds = self.durations()
        return ds[index] if 0 <= index < len(ds) else 0

    def _has_selection(self) -> bool:
        if self.timer_set is None:
            return self.remaining_sec > 0 or self.running
        return len(self.timer_set.timers) > 0

    # ----- Selection -----
    def select_timer_set(self, timer_set: Optional[TimerSet]) -> None:
        self._abandon_run()
        self.timer_set = timer_set
        self.quick_duration = 0
        self._reload_sounds(timer_set.sound if timer_set else self.quick_sound)
        self.current_index = 0
        self.remaining_sec = self._duration_at(0)
        self.run_count = 0
        self.total_elapsed_sec = 0
        logger.debug("selected %s", timer_set.name if timer_set else QUICK_TIMER_NAME)
        self._emit_tick()

    def select_quick_timer(self, duration_sec, sound: str = DEFAULT_SOUND) -> None:
        self._abandon_run()
        self.timer_set = None
        self.quick_sound = sound
        self.quick_duration = coerce_duration(duration_sec)
        self._reload_sounds(sound)
        self.current_index = 0
        self.remaining_sec = self.quick_duration
        self.run_count = 0
        self.total_elapsed_sec = 0
        self._emit_tick()

    def apply_settings(self, settings: Settings) -> None:
        self.settings = settings
        self._apply_volume()

    # ----- Commands -----
    def start(self) -> None:
        if self.running:
            return
        if not self._has_selection():
            return
        self._begin()

    def pause(self) -> None:
        self._stop_sounds()
        if not self.running:
            return
        if self.end_at_ms is not None:
            self.remaining_sec = _whole_seconds(self.end_at_ms - self.clock())
        self._invalidate()
        self._cancel_alerts()
        self.running = False
        self.end_at_ms = None
        self._update_status()
        logger.debug("paused at index %s with %ss left", self.current_index, self.remaining_sec)
        self._emit_tick()

    def reset_current(self) -> None:
        if not self.durations():
            return
        self.remaining_sec = self._duration_at(self.current_index)
        if self.running:
            self._invalidate()
            self._cancel_alerts()
            self._begin()
            return
        self.end_at_ms = None
        self._emit_tick()

    def skip(self) -> None:
        if not self._has_selection():
            return
        durations = self.durations()
        nxt = self.current_index + 1
        self._invalidate()
        self._cancel_alerts()

        if nxt < len(durations):
            was_running = self.running
            self.current_index = nxt
            self.remaining_sec = durations[nxt]
            self.end_at_ms = None
            if was_running:
                self.running = False
                self._begin()
            else:
                self._emit_tick()
            return

        # the completion path only proceeds for an active run
        self.running = True
        self._end_one()

    def cancel(self) -> None:
        self._abandon_run()
        logger.info("run cancelled at index %s", self.current_index)
        self._emit_tick()
        if self._on_cancel:
            self._on_cancel()

    def reset(self) -> None:
        self._abandon_run()
        self.current_index = 0
        if self.timer_set is None:
            self.quick_duration = 0
            self.remaining_sec = 0
        else:
            self.remaining_sec = self._duration_at(0)
        self._emit_tick()

    def refresh(self) -> None:
        """
        Recompute remaining time from the clock. Also the foreground-resume
        hook: transitions missed while suspended are processed here.
        """
        if not self.running or self.end_at_ms is None:
            return
        self._cancel_job("_refresh_job")
        self._sync(self.clock())

    def resume_from_background(self) -> None:
        self.refresh()

    def close(self) -> None:
        self._abandon_run()
        self._unload_sounds()

    # ----- Run internals -----
    def _begin(self) -> None:
        self._cancel_job("_next_job")
        self._cancel_job("_refresh_job")
        self._sound_call("stop", self.sound_player.stop, self._end_sound)

        if not self._run_open:
            self._open_history()

        rem = coerce_duration(self.remaining_sec)
        if rem <= 0:
            self.remaining_sec = 0
            self.end_at_ms = None
            self.running = True
            self._end_one()
            return

        self.remaining_sec = rem
        self.end_at_ms = self.clock() + rem * 1000
        self.running = True
        self._arm_refresh()
        self._schedule_end_alert()
        self._update_status()
        self._emit_tick()

    def _open_history(self) -> None:
        self._run_open = True
        self.run_count = 0
        self.total_elapsed_sec = 0
        # a fresh run always begins at the first sub-timer
        self.current_index = 0
        self.remaining_sec = self._duration_at(0)
        if self.timer_set is None or self.ledger is None:
            return
        self.history_entry_id = self.ledger.log_start(
            self.timer_set.id, self.timer_set.name
        )
        logger.info("run started for %s (%s)", self.timer_set.name, self.history_entry_id)

    def _close_history(self, cancelled: bool) -> None:
        entry_id = self.history_entry_id
        if not entry_id:
            return
        try:
            self.ledger.log_complete(
                entry_id,
                cancelled=cancelled,
                total_duration_sec=self.total_elapsed_sec,
                timers_run=self.run_count,
            )
        finally:
            self.history_entry_id = None

    def _arm_refresh(self) -> None:
        token = self._token
        self._refresh_job = self.scheduler.call_later(
            TICK_MS, lambda: self._on_refresh(token)
        )

    def _on_refresh(self, token: int) -> None:
        if token != self._token:
            return
        self._refresh_job = None
        if not self.running or self.end_at_ms is None:
            return
        self._sync(self.clock())

    def _sync(self, now: int) -> None:
        remaining_ms = self.end_at_ms - now
        self.remaining_sec = _whole_seconds(remaining_ms)
        if self.remaining_sec > 0:
            self._update_status()
            self._emit_tick()
            self._arm_refresh()
            return

        overshoot = now - self.end_at_ms
        self.end_at_ms = None
        if overshoot > TICK_MS:
            self._catch_up(overshoot)
        else:
            self._end_one()

    def _end_one(self) -> None:
        token = self._token
        durations = self.durations()
        idx = self.current_index
        current = self.current_timer()
        is_last = idx + 1 >= len(durations)

        delay_ms = 0
        if is_last:
            # finishing a run is always audible, whatever the per-timer flag
            self._play(self._end_sound)
        elif current is None or current.notify is not False:
            delay_ms = self._play(self._beep_sound)

        if token != self._token or not self.running:
            logger.debug("stale end of index %s dropped", idx)
            return

        self.run_count += 1
        self.total_elapsed_sec += durations[idx] if idx < len(durations) else 0
        # the alert for this sub-timer has fired by now
        self._alert_ids = []

        if is_last:
            self._finish()
            return

        nxt = idx + 1
        self.current_index = nxt
        self.remaining_sec = durations[nxt]
        self.end_at_ms = None
        self._emit_tick()

        if delay_ms > 0:
            self._next_job = self.scheduler.call_later(
                delay_ms, lambda: self._start_next(token)
            )
        else:
            self._begin()

    def _start_next(self, token: int) -> None:
        if token != self._token or not self.running:
            return
        self._next_job = None
        self._begin()

    def _catch_up(self, overshoot_ms: int) -> None:
        durations = self.durations()
        result = catch_up(durations, self.current_index, overshoot_ms)
        for i in result.completed:
            self.run_count += 1
            self.total_elapsed_sec += durations[i]
        self._alert_ids = []
        logger.info(
            "caught up %s sub-timer(s) after %sms in background",
            len(result.completed),
            overshoot_ms,
        )

        self.current_index = result.index
        if result.finished:
            self._play(self._end_sound)
            self._finish()
            return

        self.end_at_ms = self.clock() + result.remaining_ms
        self.remaining_sec = _whole_seconds(result.remaining_ms)
        self._arm_refresh()
        self._schedule_end_alert()
        self._update_status()
        self._emit_tick()

    def _finish(self) -> None:
        self._invalidate()
        self._run_open = False
        self.running = False
        self.end_at_ms = None
        self.remaining_sec = 0
        try:
            self._close_history(cancelled=False)
        finally:
            self._clear_status()
        logger.info("run finished: %s timer(s), %ss", self.run_count, self.total_elapsed_sec)
        self._emit_tick()
        if self._on_finish:
            self._on_finish()

    def _abandon_run(self) -> None:
        self._invalidate()
        self._run_open = False
        self._cancel_alerts()
        self.running = False
        self.end_at_ms = None
        self._stop_sounds()
        try:
            self._close_history(cancelled=True)
        finally:
            self._clear_status()

    def _invalidate(self) -> None:
        self._token += 1
        self._cancel_job("_refresh_job")
        self._cancel_job("_next_job")

    def _cancel_job(self, attr: str) -> None:
        job = getattr(self, attr)
        if job is not None:
            self.scheduler.cancel(job)
            setattr(self, attr, None)

    # ----- Sound -----
    def _sound_call(self, what: str, fn: Callable, handle: Any, *args):
        if handle is None:
            return None
        try:
            return fn(handle, *args)
        except Exception as e:
            logger.warning("sound %s failed: %s", what, e)
            return None

    def _play(self, handle: Any) -> int:
        """Play and return the clip length in ms (0 if unknown)."""
        if handle is None:
            return 0
        self._sound_call("play", self.sound_player.play, handle)
        return coerce_duration(
            self._sound_call(
                "duration", self.sound_player.get_playback_duration_ms, handle
            )
        )

    def _stop_sounds(self) -> None:
        self._sound_call("stop", self.sound_player.stop, self._end_sound)
        self._sound_call("stop", self.sound_player.stop, self._beep_sound)

    def _load(self, sound_id: str) -> Any:
        try:
            return self.sound_player.load(sound_id)
        except Exception as e:
            logger.warning("failed to load sound %r: %s", sound_id, e)
            return None

    def _reload_sounds(self, sound_id: Optional[str]) -> None:
        sid = resolve_sound(sound_id)
        if sid == self._loaded_sound_id:
            return
        self._unload_sounds()
        self._loaded_sound_id = sid
        self._end_sound = None if sid == NO_SOUND else self._load(sid)
        self._beep_sound = self._load(TRANSITION_SOUND)
        self._apply_volume()

    def _unload_sounds(self) -> None:
        self._sound_call("unload", self.sound_player.unload, self._end_sound)
        self._sound_call("unload", self.sound_player.unload, self._beep_sound)
        self._end_sound = None
        self._beep_sound = None
        self._loaded_sound_id = None

    def _apply_volume(self) -> None:
        volume = self.settings.notification_volume
        self._sound_call("volume", self.sound_player.set_volume, self._end_sound, volume)
        self._sound_call("volume", self.sound_player.set_volume, self._beep_sound, volume)

    # ----- Notifications -----
    def _schedule_end_alert(self) -> None:
        if self.timer_set is None:
            return
        current = self.current_timer()
        if current is None or current.notify is False:
            return
        if not (self.settings.enable_notifications and self.timer_set.notifications_enabled):
            return
        is_last = self.current_index + 1 >= len(self.timer_set.timers)
        try:
            alert_id = self.notifier.schedule_end_alert(
                self.remaining_sec, current.label, is_last
            )
        except Exception as e:
            logger.warning("end alert for %r not scheduled: %s", current.label, e)
            return
        if alert_id:
            self._alert_ids.append(alert_id)

    def _cancel_alerts(self) -> None:
        ids, self._alert_ids = self._alert_ids, []
        if not ids:
            return
        try:
            self.notifier.cancel_alerts(ids)
        except Exception as e:
            logger.warning("failed to cancel alerts %s: %s", ids, e)

    def _update_status(self) -> None:
        snap = self.snapshot()
        try:
            self.notifier.update_persistent_status(
                snap.set_name, snap.label, self.remaining_sec
            )
        except Exception as e:
            logger.warning("status update failed: %s", e)

    def _clear_status(self) -> None:
        try:
            self.notifier.clear_persistent_status()
        except Exception as e:
            logger.warning("status clear failed: %s", e)
