#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sqlite3


class Database:
    def __init__(self, db_path: str = "timers.db"):
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON;")

    def _cols(self, table: str):
        try:
            return [
                r["name"]
                for r in self.conn.execute(f"PRAGMA table_info({table});").fetchall()
            ]
        except Exception:
            return []

    def init_schema(self):
        cur = self.conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

        cur.execute("""
            CREATE TABLE IF NOT EXISTS timer_sets (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                sound TEXT NOT NULL DEFAULT 'normal',
                notifications_json TEXT,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL
            );
        """)

        cur.execute("""
            CREATE TABLE IF NOT EXISTS sub_timers (
                id TEXT NOT NULL,
                set_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                label TEXT NOT NULL,
                duration_sec INTEGER NOT NULL DEFAULT 0,
                notify INTEGER NOT NULL DEFAULT 1,
                PRIMARY KEY (set_id, position),
                FOREIGN KEY(set_id) REFERENCES timer_sets(id) ON DELETE CASCADE
            );
        """)

        # sub_timers migrations
        cols = self._cols("sub_timers")
        if "note" not in cols:
            cur.execute("ALTER TABLE sub_timers ADD COLUMN note TEXT;")

        # history has no FK: entries outlive their set
        cur.execute("""
            CREATE TABLE IF NOT EXISTS history (
                id TEXT PRIMARY KEY,
                timer_set_id TEXT,
                timer_set_name TEXT,
                timers_run INTEGER NOT NULL DEFAULT 0,
                total_duration_sec INTEGER NOT NULL DEFAULT 0,
                started_at INTEGER NOT NULL,
                completed_at INTEGER,
                cancelled INTEGER
            );
        """)

        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_sub_timers_set ON sub_timers(set_id);"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_set ON history(timer_set_id);"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_started ON history(started_at);"
        )

        self.conn.commit()

    def close(self):
        try:
            self.conn.close()
        except Exception:
            pass
