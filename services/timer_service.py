# -*- coding: utf-8 -*-

import logging
from typing import Callable, Optional

from core.duration import parse_quick_digits
from core.ports import NotificationScheduler, Scheduler, SoundPlayer
from core.run_engine import RunEngine, RunSnapshot
from core.sounds import DEFAULT_SOUND
from domain.models import Settings, TimerSet
from services.history_service import HistoryService
from services.settings_service import SettingsService
from services.timer_set_service import TimerSetService

logger = logging.getLogger(__name__)


class TimerService:
    """
    Orchestrates:
    - RunEngine state
    - timer set selection (by id, from storage)
    - history logging through the ledger
    - settings changes pushed into the engine
    - callbacks for UI
    """

    def __init__(
        self,
        timer_sets: TimerSetService,
        history: HistoryService,
        settings: SettingsService,
        scheduler: Scheduler,
        sound_player: Optional[SoundPlayer] = None,
        notifier: Optional[NotificationScheduler] = None,
        **engine_kwargs,
    ):
        self.timer_sets = timer_sets
        self.history = history
        self.settings = settings

        self.engine = RunEngine(
            scheduler=scheduler,
            sound_player=sound_player,
            notifier=notifier,
            ledger=history,
            settings=settings.get(),
            **engine_kwargs,
        )
        self.settings.add_listener(self._on_settings_changed)

        self._on_tick: Optional[Callable[[RunSnapshot], None]] = None
        self._on_finish: Optional[Callable[[RunSnapshot], None]] = None
        self._on_cancel: Optional[Callable[[RunSnapshot], None]] = None

        self.engine.set_on_tick(self._emit_tick)
        self.engine.set_on_finish(self._emit_finish)
        self.engine.set_on_cancel(self._emit_cancel)

    # ----- Callbacks -----
    def set_on_tick(self, fn: Callable[[RunSnapshot], None]) -> None:
        self._on_tick = fn

    def set_on_finish(self, fn: Callable[[RunSnapshot], None]) -> None:
        self._on_finish = fn

    def set_on_cancel(self, fn: Callable[[RunSnapshot], None]) -> None:
        self._on_cancel = fn

    def _emit_tick(self, snap: RunSnapshot) -> None:
        if self._on_tick:
            self._on_tick(snap)

    def _emit_finish(self) -> None:
        if self._on_finish:
            self._on_finish(self.engine.snapshot())

    def _emit_cancel(self) -> None:
        if self._on_cancel:
            self._on_cancel(self.engine.snapshot())

    def _on_settings_changed(self, settings: Settings) -> None:
        self.engine.apply_settings(settings)

    # ----- Public API -----
    def get_snapshot(self) -> RunSnapshot:
        return self.engine.snapshot()

    @property
    def selected_set(self) -> Optional[TimerSet]:
        return self.engine.timer_set

    def select(self, set_id: Optional[str]) -> None:
        if not set_id:
            self.engine.select_timer_set(None)
            return
        ts = self.timer_sets.get_set(set_id)
        if ts is None:
            raise ValueError("Selected timer set not found.")
        self.engine.select_timer_set(ts)

    def select_quick(self, digits: str, sound: str = DEFAULT_SOUND) -> int:
        seconds = parse_quick_digits(digits)
        self.engine.select_quick_timer(seconds, sound=sound)
        return seconds

    def timer_set_changed(self, set_id: str) -> None:
        """
        Pick up edits to the selected set, unless a run is in progress
        (the run keeps the snapshot it started with).
        """
        current = self.engine.timer_set
        if current is None or current.id != set_id:
            return
        if self.engine.run_open:
            logger.debug("set %s edited mid-run; keeping the running snapshot", set_id)
            return
        ts = self.timer_sets.get_set(set_id)
        self.engine.select_timer_set(ts)

    def start(self) -> None:
        self.engine.start()

    def pause(self) -> None:
        self.engine.pause()

    def reset_current(self) -> None:
        self.engine.reset_current()

    def skip(self) -> None:
        self.engine.skip()

    def cancel(self) -> None:
        self.engine.cancel()

    def reset(self) -> None:
        self.engine.reset()

    def resume_from_background(self) -> None:
        self.engine.resume_from_background()

    def shutdown(self) -> None:
        self.engine.close()
