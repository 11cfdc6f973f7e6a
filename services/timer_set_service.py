#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from core.duration import coerce_duration
from core.sounds import DEFAULT_SOUND, is_known_sound
from domain.models import NotificationConfig, SubTimer, TimerSet
from storage.db import Database
from storage.repos import AppStateRepo, HistoryRepo, TimerSetRepo, new_id

HIDDEN_KEY = "hidden_timer_set_ids"
SEEDED_KEY = "seeded"


def make_timer(label: str, duration_sec, notify: bool = True, note: Optional[str] = None) -> SubTimer:
    return SubTimer(
        id=new_id(),
        label=(label or "").strip(),
        duration_sec=coerce_duration(duration_sec),
        notify=bool(notify),
        note=note,
    )


class TimerSetService:
    def __init__(self, db: Database):
        self.db = db
        self.sets = TimerSetRepo(db)
        self.history = HistoryRepo(db)
        self.state = AppStateRepo(db)

    def _clean_timers(self, timers: Sequence[SubTimer]) -> tuple:
        out = []
        for t in timers:
            label = (t.label or "").strip()
            if not label:
                raise ValueError("Timer label cannot be empty.")
            out.append(
                replace(
                    t,
                    id=t.id or new_id(),
                    label=label,
                    duration_sec=coerce_duration(t.duration_sec),
                )
            )
        return tuple(out)

    def _check_sound(self, sound: str) -> str:
        sound = (sound or DEFAULT_SOUND).strip()
        if not is_known_sound(sound):
            raise ValueError(f"Unknown sound: {sound}")
        return sound

    # ---- sets ----
    def create_set(
        self,
        name: str,
        timers: Sequence[SubTimer],
        sound: str = DEFAULT_SOUND,
        description: Optional[str] = None,
        notifications: Optional[NotificationConfig] = None,
    ) -> TimerSet:
        name = (name or "").strip()
        if not name:
            raise ValueError("Timer set name cannot be empty.")
        ts = TimerSet(
            id=new_id(),
            name=name,
            description=(description or "").strip() or None,
            timers=self._clean_timers(timers),
            sound=self._check_sound(sound),
            notifications=notifications,
        )
        return self.sets.insert(ts)

    def get_set(self, set_id: str) -> Optional[TimerSet]:
        return self.sets.get(set_id)

    def list_sets(self, include_hidden: bool = True) -> List[TimerSet]:
        sets = self.sets.list()
        if include_hidden:
            return sets
        hidden = set(self.hidden_ids())
        return [s for s in sets if s.id not in hidden]

    def update_set(self, timer_set: TimerSet) -> TimerSet:
        if not self.sets.get(timer_set.id):
            raise ValueError("Timer set not found.")
        name = (timer_set.name or "").strip()
        if not name:
            raise ValueError("Timer set name cannot be empty.")
        cleaned = replace(
            timer_set,
            name=name,
            timers=self._clean_timers(timer_set.timers),
            sound=self._check_sound(timer_set.sound),
        )
        updated = self.sets.update(cleaned)
        # keep the denormalized name in history in step
        self.history.rename_set(updated.id, updated.name)
        return updated

    def delete_set(self, set_id: str, with_history: bool = False) -> None:
        removed = self.sets.get(set_id)
        if not removed:
            raise ValueError("Timer set not found.")
        if with_history:
            self.history.delete_for_set(set_id)
        else:
            self.history.fill_missing_name(set_id, removed.name)
        self.sets.delete(set_id)
        self.set_hidden([i for i in self.hidden_ids() if i != set_id])

    def duplicate_set(self, set_id: str) -> TimerSet:
        src = self.sets.get(set_id)
        if not src:
            raise ValueError("Timer set not found.")
        dup = replace(
            src,
            id=new_id(),
            name=f"{src.name} (copy)",
            timers=tuple(replace(t, id=new_id()) for t in src.timers),
            created_at=0,
            updated_at=0,
        )
        return self.sets.insert(dup)

    # ---- visibility ----
    def hidden_ids(self) -> List[str]:
        raw = self.state.get(HIDDEN_KEY)
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except ValueError:
            return []
        return [str(i) for i in ids] if isinstance(ids, list) else []

    def set_hidden(self, ids: Iterable[str]) -> None:
        self.state.set(HIDDEN_KEY, json.dumps(list(dict.fromkeys(ids))))

    # ---- first run ----
    def ensure_seed(self) -> Optional[TimerSet]:
        if self.state.get(SEEDED_KEY) or self.sets.count() > 0:
            return None
        self.state.set(SEEDED_KEY, "1")
        return self.create_set(
            "Pomodoro (25-5 x2)",
            [
                make_timer("Focus 1", 25 * 60),
                make_timer("Break 1", 5 * 60),
                make_timer("Focus 2", 25 * 60),
                make_timer("Break 2", 5 * 60),
            ],
            sound="normal",
            description="25 minutes of focus + 5 minutes of rest, twice.",
        )
