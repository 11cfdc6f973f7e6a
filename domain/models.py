# -*- coding: utf-8 -*-

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class SubTimer:
    id: str
    label: str
    duration_sec: int
    notify: bool = True
    note: Optional[str] = None


@dataclass(frozen=True)
class NotificationRepeat:
    mode: str  # interval | weekday | monthly
    every: int = 1
    unit: str = "day"  # minute | hour | day | week | year
    weekdays: Tuple[int, ...] = ()  # 0=Sunday .. 6=Saturday
    interval_weeks: int = 1
    nth_week: int = 1  # 1..5, 5 = last
    weekday: int = 0


@dataclass(frozen=True)
class NotificationConfig:
    enabled: bool
    date: Optional[str] = None  # yyyy-mm-dd
    time: Optional[str] = None  # HH:MM
    repeat: Optional[NotificationRepeat] = None
    ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TimerSet:
    id: str
    name: str
    timers: Tuple[SubTimer, ...] = ()
    sound: str = "normal"
    description: Optional[str] = None
    notifications: Optional[NotificationConfig] = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.notifications and self.notifications.enabled)


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    timer_set_id: Optional[str]
    timer_set_name: Optional[str]
    timers_run: int
    total_duration_sec: int
    started_at: int
    completed_at: Optional[int] = None
    cancelled: Optional[bool] = None


@dataclass(frozen=True)
class Settings:
    enable_notifications: bool = True
    notification_volume: float = 1.0
    theme: str = "light"  # light | dark | system
