# -*- coding: utf-8 -*-

import datetime as dt
import logging
from dataclasses import replace
from typing import Callable, List

from core.ports import NotificationScheduler
from core.recurrence import next_occurrence
from domain.models import TimerSet
from services.timer_set_service import TimerSetService

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Start-of-set reminders ("time for <set>!") driven by a set's NotificationConfig.
    Only the next occurrence is scheduled; the host reschedules after it fires.
    """

    def __init__(
        self,
        timer_sets: TimerSetService,
        notifier: NotificationScheduler,
        now: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.timer_sets = timer_sets
        self.notifier = notifier
        self.now = now

    def schedule(self, timer_set: TimerSet) -> List[str]:
        cfg = timer_set.notifications
        if cfg is None:
            return []
        self.unschedule(timer_set)

        ids: List[str] = []
        try:
            when = next_occurrence(cfg, self.now())
        except ValueError as e:
            logger.warning("reminder for %r has an invalid schedule: %s", timer_set.name, e)
            when = None

        if when is not None:
            try:
                rid = self.notifier.schedule_reminder(
                    int(when.timestamp()),
                    "Timer reminder",
                    f"Time for {timer_set.name}!",
                )
            except Exception as e:
                logger.warning("reminder for %r not scheduled: %s", timer_set.name, e)
                rid = None
            if rid:
                ids.append(rid)
                logger.info("reminder for %r at %s", timer_set.name, when.isoformat())

        self.timer_sets.update_set(
            replace(timer_set, notifications=replace(cfg, ids=tuple(ids)))
        )
        return ids

    def unschedule(self, timer_set: TimerSet) -> None:
        cfg = timer_set.notifications
        if cfg is None or not cfg.ids:
            return
        try:
            self.notifier.cancel_alerts(list(cfg.ids))
        except Exception as e:
            logger.warning("failed to cancel reminders for %r: %s", timer_set.name, e)

    def schedule_all(self) -> int:
        n = 0
        for ts in self.timer_sets.list_sets():
            if ts.notifications_enabled and self.schedule(ts):
                n += 1
        return n
