#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import logging
import sys
import tkinter as tk
from typing import Iterable, Optional

from services.desktop import NotifySendScheduler, PaplaySoundPlayer
from services.history_service import HistoryService
from services.reminder_service import ReminderService
from services.settings_service import SettingsService
from services.timer_service import TimerService
from services.timer_set_service import TimerSetService
from storage.db import Database
from ui.main_window import MainWindow
from ui.tk_scheduler import TkScheduler


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run timer sets back-to-back with sound cues.")
    parser.add_argument("--db", default="timers.db", help="SQLite database file")
    parser.add_argument("--sounds-dir", default="assets/sounds", help="directory with the WAV sound assets")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, WARNING...)")
    return parser.parse_args(list(argv))


def main(argv: Optional[Iterable[str]] = None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = Database(db_path=args.db)
    db.init_schema()

    timer_set_service = TimerSetService(db)
    timer_set_service.ensure_seed()
    history_service = HistoryService(db)
    settings_service = SettingsService(db)

    root = tk.Tk()
    scheduler = TkScheduler(root)
    notifier = NotifySendScheduler(scheduler)

    timer_service = TimerService(
        timer_set_service,
        history_service,
        settings_service,
        scheduler=scheduler,
        sound_player=PaplaySoundPlayer(args.sounds_dir),
        notifier=notifier,
    )
    ReminderService(timer_set_service, notifier).schedule_all()

    sets = timer_set_service.list_sets(include_hidden=False)
    if sets:
        timer_service.select(sets[0].id)

    app = MainWindow(
        root,
        timer_set_service,
        timer_service,
        history_service,
        settings_service,
        initial_set_id=sets[0].id if sets else None,
    )
    try:
        app.run()
    finally:
        db.close()


if __name__ == "__main__":
    main()
