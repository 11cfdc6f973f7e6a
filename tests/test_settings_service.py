import pytest

from domain.models import Settings
from services.settings_service import SettingsService


def test_defaults(db):
    assert SettingsService(db).get() == Settings()


def test_update_persists(db):
    SettingsService(db).update(enable_notifications=False, theme="dark")
    settings = SettingsService(db).get()
    assert settings.enable_notifications is False
    assert settings.theme == "dark"
    assert settings.notification_volume == 1.0


def test_volume_is_clamped(db):
    svc = SettingsService(db)
    assert svc.update(notification_volume=1.7).notification_volume == 1.0
    assert svc.update(notification_volume=-2).notification_volume == 0.0
    assert svc.update(notification_volume="0.25").notification_volume == 0.25
    with pytest.raises(ValueError):
        svc.update(notification_volume="loud")


def test_invalid_updates_rejected(db):
    svc = SettingsService(db)
    with pytest.raises(ValueError, match="Invalid theme"):
        svc.update(theme="neon")
    with pytest.raises(ValueError, match="Unknown setting"):
        svc.update(font_size=12)
    assert svc.get() == Settings()


def test_listeners_get_new_settings(db):
    svc = SettingsService(db)
    seen = []
    svc.add_listener(seen.append)
    svc.update(notification_volume=0.5)
    assert seen == [Settings(notification_volume=0.5)]


def test_unknown_stored_keys_ignored(db):
    svc = SettingsService(db)
    svc.state.set("settings", '{"theme": "dark", "legacy_flag": true}')
    assert svc.get() == Settings(theme="dark")


def test_corrupt_settings_fall_back_to_defaults(db):
    svc = SettingsService(db)
    svc.state.set("settings", "{not json")
    assert svc.get() == Settings()
