# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import time
import uuid
from typing import List, Optional, Sequence

from domain.models import (
    HistoryEntry,
    NotificationConfig,
    NotificationRepeat,
    SubTimer,
    TimerSet,
)
from storage.db import Database


def _now_ts() -> int:
    return int(time.time())


def new_id() -> str:
    return str(uuid.uuid4())


# ---- notification config <-> json ----
def notifications_to_json(cfg: Optional[NotificationConfig]) -> Optional[str]:
    if cfg is None:
        return None
    data = {
        "enabled": cfg.enabled,
        "date": cfg.date,
        "time": cfg.time,
        "ids": list(cfg.ids),
    }
    if cfg.repeat is not None:
        r = cfg.repeat
        data["repeat"] = {
            "mode": r.mode,
            "every": r.every,
            "unit": r.unit,
            "weekdays": list(r.weekdays),
            "interval_weeks": r.interval_weeks,
            "nth_week": r.nth_week,
            "weekday": r.weekday,
        }
    return json.dumps(data)


def notifications_from_json(raw: Optional[str]) -> Optional[NotificationConfig]:
    if not raw:
        return None
    data = json.loads(raw)
    repeat = None
    rd = data.get("repeat")
    if rd:
        repeat = NotificationRepeat(
            mode=rd.get("mode", "interval"),
            every=int(rd.get("every", 1)),
            unit=rd.get("unit", "day"),
            weekdays=tuple(rd.get("weekdays") or ()),
            interval_weeks=int(rd.get("interval_weeks", 1)),
            nth_week=int(rd.get("nth_week", 1)),
            weekday=int(rd.get("weekday", 0)),
        )
    return NotificationConfig(
        enabled=bool(data.get("enabled")),
        date=data.get("date"),
        time=data.get("time"),
        repeat=repeat,
        ids=tuple(data.get("ids") or ()),
    )


class AppStateRepo:
    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        row = self.db.conn.execute(
            "SELECT value FROM app_state WHERE key=?",
            (key,),
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.db.conn.execute(
            """
            INSERT INTO app_state(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )
        self.db.conn.commit()

    def delete(self, key: str) -> None:
        self.db.conn.execute("DELETE FROM app_state WHERE key=?", (key,))
        self.db.conn.commit()


class TimerSetRepo:
    def __init__(self, db: Database):
        self.db = db

    def _timers_for(self, set_id: str) -> tuple:
        rows = self.db.conn.execute(
            """
            SELECT id, label, duration_sec, notify, note
            FROM sub_timers WHERE set_id=? ORDER BY position ASC
            """,
            (set_id,),
        ).fetchall()
        return tuple(
            SubTimer(
                id=r["id"],
                label=r["label"],
                duration_sec=int(r["duration_sec"] or 0),
                notify=bool(r["notify"]),
                note=r["note"],
            )
            for r in rows
        )

    def _row_to_set(self, r) -> TimerSet:
        return TimerSet(
            id=r["id"],
            name=r["name"],
            description=r["description"],
            sound=r["sound"] or "normal",
            notifications=notifications_from_json(r["notifications_json"]),
            timers=self._timers_for(r["id"]),
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )

    def _write_timers(self, set_id: str, timers: Sequence[SubTimer]) -> None:
        self.db.conn.execute("DELETE FROM sub_timers WHERE set_id=?", (set_id,))
        self.db.conn.executemany(
            """
            INSERT INTO sub_timers(id, set_id, position, label, duration_sec, notify, note)
            VALUES(?,?,?,?,?,?,?)
            """,
            [
                (t.id, set_id, pos, t.label, int(t.duration_sec), 1 if t.notify else 0, t.note)
                for pos, t in enumerate(timers)
            ],
        )

    def insert(self, ts: TimerSet) -> TimerSet:
        now = _now_ts()
        self.db.conn.execute(
            """
            INSERT INTO timer_sets(
                id, name, description, sound, notifications_json,
                created_at, updated_at
            )
            VALUES(?,?,?,?,?,?,?)
            """,
            (
                ts.id,
                ts.name,
                ts.description,
                ts.sound,
                notifications_to_json(ts.notifications),
                ts.created_at or now,
                ts.updated_at or now,
            ),
        )
        self._write_timers(ts.id, ts.timers)
        self.db.conn.commit()
        return self.get(ts.id)

    def update(self, ts: TimerSet) -> TimerSet:
        self.db.conn.execute(
            """
            UPDATE timer_sets
            SET name=?, description=?, sound=?, notifications_json=?, updated_at=?
            WHERE id=?
            """,
            (
                ts.name,
                ts.description,
                ts.sound,
                notifications_to_json(ts.notifications),
                _now_ts(),
                ts.id,
            ),
        )
        self._write_timers(ts.id, ts.timers)
        self.db.conn.commit()
        return self.get(ts.id)

    def get(self, set_id: str) -> Optional[TimerSet]:
        r = self.db.conn.execute(
            """
            SELECT id, name, description, sound, notifications_json,
                   created_at, updated_at
            FROM timer_sets WHERE id=?
            """,
            (set_id,),
        ).fetchone()
        return self._row_to_set(r) if r else None

    def list(self) -> List[TimerSet]:
        rows = self.db.conn.execute(
            """
            SELECT id, name, description, sound, notifications_json,
                   created_at, updated_at
            FROM timer_sets ORDER BY created_at DESC, rowid DESC
            """
        ).fetchall()
        return [self._row_to_set(r) for r in rows]

    def count(self) -> int:
        return self.db.conn.execute("SELECT COUNT(1) AS c FROM timer_sets").fetchone()["c"]

    def delete(self, set_id: str) -> None:
        # sub_timers go with it (FK ON DELETE CASCADE)
        self.db.conn.execute("DELETE FROM timer_sets WHERE id=?", (set_id,))
        self.db.conn.commit()


class HistoryRepo:
    def __init__(self, db: Database):
        self.db = db

    def _row_to_entry(self, r) -> HistoryEntry:
        return HistoryEntry(
            id=r["id"],
            timer_set_id=r["timer_set_id"],
            timer_set_name=r["timer_set_name"],
            timers_run=int(r["timers_run"] or 0),
            total_duration_sec=int(r["total_duration_sec"] or 0),
            started_at=r["started_at"],
            completed_at=r["completed_at"],
            cancelled=None if r["cancelled"] is None else bool(r["cancelled"]),
        )

    def start(self, timer_set_id: Optional[str], timer_set_name: Optional[str]) -> HistoryEntry:
        hid = new_id()
        self.db.conn.execute(
            """
            INSERT INTO history(id, timer_set_id, timer_set_name, timers_run,
                                total_duration_sec, started_at)
            VALUES(?,?,?,0,0,?)
            """,
            (hid, timer_set_id, timer_set_name, _now_ts()),
        )
        self.db.conn.commit()
        return self.get(hid)

    def complete(
        self,
        entry_id: str,
        cancelled: bool,
        total_duration_sec: int,
        timers_run: int,
    ) -> int:
        # only open entries are touched
        cur = self.db.conn.execute(
            """
            UPDATE history
            SET completed_at=?, cancelled=?, total_duration_sec=?, timers_run=?
            WHERE id=? AND completed_at IS NULL
            """,
            (
                _now_ts(),
                1 if cancelled else None,
                int(total_duration_sec),
                int(timers_run),
                entry_id,
            ),
        )
        self.db.conn.commit()
        return cur.rowcount

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        r = self.db.conn.execute(
            "SELECT * FROM history WHERE id=?",
            (entry_id,),
        ).fetchone()
        return self._row_to_entry(r) if r else None

    def list(self, timer_set_id: Optional[str] = None, limit: Optional[int] = None) -> List[HistoryEntry]:
        sql = "SELECT * FROM history"
        params: list = []
        if timer_set_id:
            sql += " WHERE timer_set_id=?"
            params.append(timer_set_id)
        sql += " ORDER BY started_at DESC, rowid DESC"
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))
        rows = self.db.conn.execute(sql, params).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def rename_set(self, timer_set_id: str, name: str) -> None:
        self.db.conn.execute(
            "UPDATE history SET timer_set_name=? WHERE timer_set_id=?",
            (name, timer_set_id),
        )
        self.db.conn.commit()

    def fill_missing_name(self, timer_set_id: str, name: str) -> None:
        self.db.conn.execute(
            """
            UPDATE history SET timer_set_name=?
            WHERE timer_set_id=? AND (timer_set_name IS NULL OR timer_set_name='')
            """,
            (name, timer_set_id),
        )
        self.db.conn.commit()

    def delete_for_set(self, timer_set_id: str) -> None:
        self.db.conn.execute("DELETE FROM history WHERE timer_set_id=?", (timer_set_id,))
        self.db.conn.commit()
