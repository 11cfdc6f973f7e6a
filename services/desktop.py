# -*- coding: utf-8 -*-

import itertools
import logging
import math
import os
import struct
import subprocess
import tempfile
import time
import wave
from typing import Any, Dict, Iterable, List, Optional

from core.duration import format_hms
from core.ports import NotificationScheduler, Scheduler, SoundPlayer
from core.sounds import SOUND_FILES, TRANSITION_SOUND

logger = logging.getLogger(__name__)


def _run(cmd: List[str]) -> Optional[str]:
    try:
        out = subprocess.run(cmd, capture_output=True, text=True, timeout=5, check=True)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("%s failed: %s", cmd[0], e)
        return None
    return out.stdout.strip()


def write_tone(path: str, freq: float = 880.0, duration_s: float = 0.5, volume: float = 0.5, samplerate: int = 44100) -> None:
    """Write a short mono 16-bit PCM sine tone."""
    n_samples = int(samplerate * duration_s)
    amplitude = int(32767 * volume)
    with wave.open(path, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(samplerate)
        frames = bytearray()
        for i in range(n_samples):
            t = i / samplerate
            frames += struct.pack("<h", int(amplitude * math.sin(2 * math.pi * freq * t)))
        wf.writeframes(bytes(frames))


class _Clip:
    def __init__(self, path: str, duration_ms: int):
        self.path = path
        self.duration_ms = duration_ms
        self.volume = 1.0
        self.proc: Optional[subprocess.Popen] = None


class PaplaySoundPlayer(SoundPlayer):
    """
    PulseAudio/PipeWire playback of the bundled WAV assets.
    Missing assets are replaced by a generated tone.
    """

    def __init__(self, sounds_dir: str, cache_dir: Optional[str] = None):
        self.sounds_dir = sounds_dir
        self.cache_dir = cache_dir or os.path.join(tempfile.gettempdir(), "interval-timer-sounds")

    def _fallback(self, sound_id: str, name: str) -> str:
        os.makedirs(self.cache_dir, exist_ok=True)
        path = os.path.join(self.cache_dir, name)
        if not os.path.exists(path):
            # the between-timers cue is short and high, end sounds longer
            if sound_id == TRANSITION_SOUND:
                write_tone(path, freq=1320.0, duration_s=0.25)
            else:
                write_tone(path, freq=880.0, duration_s=1.0)
            logger.info("generated fallback tone for %r at %s", sound_id, path)
        return path

    def load(self, sound_id: str) -> Any:
        name = SOUND_FILES.get(sound_id)
        if not name:
            return None
        path = os.path.join(self.sounds_dir, name)
        if not os.path.exists(path):
            path = self._fallback(sound_id, name)
        with wave.open(path, "rb") as wf:
            duration_ms = int(wf.getnframes() * 1000 / max(1, wf.getframerate()))
        return _Clip(path, duration_ms)

    def play(self, handle: _Clip) -> None:
        self.stop(handle)
        # paplay volume: 65536 = 100%
        handle.proc = subprocess.Popen(
            ["paplay", f"--volume={int(handle.volume * 65536)}", handle.path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def stop(self, handle: _Clip) -> None:
        proc, handle.proc = handle.proc, None
        if proc is not None and proc.poll() is None:
            proc.terminate()

    def unload(self, handle: _Clip) -> None:
        self.stop(handle)

    def get_playback_duration_ms(self, handle: _Clip) -> int:
        return handle.duration_ms

    def set_volume(self, handle: _Clip, volume: float) -> None:
        handle.volume = min(1.0, max(0.0, float(volume)))


class NotifySendScheduler(NotificationScheduler):
    """
    Desktop notifications through notify-send.

    Alerts are delivered by the app's own event loop, so they only fire while
    the app is open. The "now running" status is one notification that gets
    replaced in place.
    """

    def __init__(self, scheduler: Scheduler, app_name: str = "Interval Timer"):
        self.scheduler = scheduler
        self.app_name = app_name
        self._ids = itertools.count(1)
        self._pending: Dict[str, Any] = {}
        self._status_id: Optional[str] = None
        self._status_key: Optional[tuple] = None

    def _send(self, title: str, body: str, urgency: str = "normal", replace_id: Optional[str] = None) -> Optional[str]:
        cmd = ["notify-send", "-p", "-a", self.app_name, "-u", urgency]
        if replace_id:
            cmd += ["-r", replace_id]
        return _run(cmd + [title, body])

    def _schedule(self, delay_sec: int, title: str, body: str, urgency: str) -> str:
        alert_id = f"alert-{next(self._ids)}"

        def fire():
            self._pending.pop(alert_id, None)
            self._send(title, body, urgency)

        self._pending[alert_id] = self.scheduler.call_later(max(0, int(delay_sec)) * 1000, fire)
        return alert_id

    def schedule_end_alert(self, after_sec: int, label: str, is_last: bool) -> Optional[str]:
        return self._schedule(
            after_sec,
            "Timer finished",
            f"{label or 'Timer'} has finished",
            "critical" if is_last else "normal",
        )

    def schedule_reminder(self, at_epoch_sec: int, title: str, body: str) -> Optional[str]:
        return self._schedule(at_epoch_sec - int(time.time()), title, body, "normal")

    def cancel_alerts(self, alert_ids: Iterable[str]) -> None:
        for alert_id in alert_ids:
            handle = self._pending.pop(alert_id, None)
            if handle is not None:
                self.scheduler.cancel(handle)

    def update_persistent_status(self, set_name: str, timer_label: str, remaining_sec: int) -> None:
        # redraw on label change and once a minute, not every second
        key = (set_name, timer_label)
        if key == self._status_key and remaining_sec % 60 != 0:
            return
        self._status_key = key
        new_id = self._send(
            set_name,
            f"{timer_label} {format_hms(remaining_sec)} left",
            "low",
            replace_id=self._status_id,
        )
        if new_id:
            self._status_id = new_id

    def clear_persistent_status(self) -> None:
        status_id, self._status_id = self._status_id, None
        self._status_key = None
        if not status_id:
            return
        _run(
            [
                "gdbus", "call", "--session",
                "--dest", "org.freedesktop.Notifications",
                "--object-path", "/org/freedesktop/Notifications",
                "--method", "org.freedesktop.Notifications.CloseNotification",
                status_id,
            ]
        )
