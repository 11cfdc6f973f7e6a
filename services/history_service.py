# -*- coding: utf-8 -*-

import logging
from typing import List, Optional

from core.ports import HistoryLedger
from domain.models import HistoryEntry
from storage.db import Database
from storage.repos import HistoryRepo

logger = logging.getLogger(__name__)


class HistoryService(HistoryLedger):
    """
    Append-only run log.
    One entry per run attempt; it is closed exactly once (completed or cancelled).
    """

    def __init__(self, db: Database):
        self.db = db
        self.history = HistoryRepo(db)

    def log_start(self, timer_set_id: Optional[str], timer_set_name: Optional[str] = None) -> str:
        entry = self.history.start(timer_set_id, timer_set_name)
        logger.debug("history %s opened for set %s", entry.id, timer_set_id)
        return entry.id

    def log_complete(
        self,
        entry_id: str,
        cancelled: bool = False,
        total_duration_sec: int = 0,
        timers_run: int = 0,
    ) -> None:
        if not self.history.get(entry_id):
            raise ValueError("History entry not found.")
        updated = self.history.complete(
            entry_id,
            cancelled=cancelled,
            total_duration_sec=max(0, int(total_duration_sec)),
            timers_run=max(0, int(timers_run)),
        )
        if not updated:
            raise ValueError("History entry already completed.")
        logger.debug(
            "history %s closed (cancelled=%s, %s timer(s), %ss)",
            entry_id,
            cancelled,
            timers_run,
            total_duration_sec,
        )

    def get_entry(self, entry_id: str) -> Optional[HistoryEntry]:
        return self.history.get(entry_id)

    def list_entries(self, timer_set_id: Optional[str] = None, limit: Optional[int] = None) -> List[HistoryEntry]:
        return self.history.list(timer_set_id=timer_set_id, limit=limit)

    def delete_for_set(self, timer_set_id: str) -> None:
        self.history.delete_for_set(timer_set_id)
