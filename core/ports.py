# -*- coding: utf-8 -*-

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional


class Scheduler(ABC):
    """
    Single-threaded event loop hook (Tk after/after_cancel, or a fake in tests).
    """

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        ...


class SoundPlayer(ABC):
    @abstractmethod
    def load(self, sound_id: str) -> Any:
        ...

    @abstractmethod
    def play(self, handle: Any) -> None:
        ...

    @abstractmethod
    def stop(self, handle: Any) -> None:
        ...

    @abstractmethod
    def unload(self, handle: Any) -> None:
        ...

    @abstractmethod
    def get_playback_duration_ms(self, handle: Any) -> int:
        ...

    def set_volume(self, handle: Any, volume: float) -> None:
        pass


class NotificationScheduler(ABC):
    @abstractmethod
    def schedule_end_alert(self, after_sec: int, label: str, is_last: bool) -> Optional[str]:
        ...

    @abstractmethod
    def cancel_alerts(self, alert_ids: Iterable[str]) -> None:
        ...

    @abstractmethod
    def update_persistent_status(self, set_name: str, timer_label: str, remaining_sec: int) -> None:
        ...

    @abstractmethod
    def clear_persistent_status(self) -> None:
        ...

    def schedule_reminder(self, at_epoch_sec: int, title: str, body: str) -> Optional[str]:
        return None


class HistoryLedger(ABC):
    @abstractmethod
    def log_start(self, timer_set_id: Optional[str], timer_set_name: Optional[str] = None) -> str:
        ...

    @abstractmethod
    def log_complete(
        self,
        entry_id: str,
        cancelled: bool = False,
        total_duration_sec: int = 0,
        timers_run: int = 0,
    ) -> None:
        ...


class NullSoundPlayer(SoundPlayer):
    def load(self, sound_id: str) -> Any:
        return None

    def play(self, handle: Any) -> None:
        pass

    def stop(self, handle: Any) -> None:
        pass

    def unload(self, handle: Any) -> None:
        pass

    def get_playback_duration_ms(self, handle: Any) -> int:
        return 0


class NullNotificationScheduler(NotificationScheduler):
    def schedule_end_alert(self, after_sec: int, label: str, is_last: bool) -> Optional[str]:
        return None

    def cancel_alerts(self, alert_ids: Iterable[str]) -> None:
        pass

    def update_persistent_status(self, set_name: str, timer_label: str, remaining_sec: int) -> None:
        pass

    def clear_persistent_status(self) -> None:
        pass
