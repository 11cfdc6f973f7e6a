# -*- coding: utf-8 -*-

import json
import logging
from dataclasses import asdict, fields, replace
from typing import Callable, List

from domain.models import Settings
from storage.db import Database
from storage.repos import AppStateRepo

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
THEMES = ("light", "dark", "system")


class SettingsService:
    def __init__(self, db: Database):
        self.db = db
        self.state = AppStateRepo(db)
        self._listeners: List[Callable[[Settings], None]] = []

    def add_listener(self, fn: Callable[[Settings], None]) -> None:
        self._listeners.append(fn)

    def get(self) -> Settings:
        raw = self.state.get(SETTINGS_KEY)
        if not raw:
            return Settings()
        try:
            stored = json.loads(raw)
        except ValueError:
            logger.warning("stored settings are not valid JSON, using defaults")
            return Settings()
        known = {f.name for f in fields(Settings)}
        return replace(Settings(), **{k: v for k, v in stored.items() if k in known})

    def update(self, **changes) -> Settings:
        known = {f.name for f in fields(Settings)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown setting: {', '.join(sorted(unknown))}")

        if "notification_volume" in changes:
            try:
                vol = float(changes["notification_volume"])
            except (TypeError, ValueError):
                raise ValueError("Volume must be a number between 0 and 1.")
            changes["notification_volume"] = min(1.0, max(0.0, vol))
        if "theme" in changes and changes["theme"] not in THEMES:
            raise ValueError("Invalid theme. Use light/dark/system.")
        if "enable_notifications" in changes:
            changes["enable_notifications"] = bool(changes["enable_notifications"])

        settings = replace(self.get(), **changes)
        self.state.set(SETTINGS_KEY, json.dumps(asdict(settings)))

        for fn in list(self._listeners):
            fn(settings)
        return settings
