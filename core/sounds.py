# -*- coding: utf-8 -*-

from typing import Dict, Optional

NO_SOUND = "none"
DEFAULT_SOUND = "normal"
TRANSITION_SOUND = "beep"  # short cue between sub-timers

# id -> (display label, asset file name)
SOUND_OPTIONS: Dict[str, tuple] = {
    "none": ("None", None),
    "normal": ("Normal", "normal.wav"),
    "normal(high)": ("Normal (high)", "normal(high).wav"),
    "simple": ("Simple", "simple.wav"),
    "slow": ("Slow", "slow.wav"),
    "speed": ("Speed", "speed.wav"),
    "step": ("Step", "step.wav"),
    "taiko": ("Taiko drum", "taiko.wav"),
    "telephone": ("Telephone", "telephone.wav"),
    "bird": ("Bird", "bird.wav"),
    "chicken": ("Chicken", "chicken.wav"),
    "chime": ("Chime", "chime.wav"),
}

SOUND_FILES: Dict[str, str] = {k: v[1] for k, v in SOUND_OPTIONS.items() if v[1]}
SOUND_FILES[TRANSITION_SOUND] = "beep.wav"


def resolve_sound(sound_id: Optional[str]) -> str:
    """Unknown or empty ids fall back to the default end sound."""
    sid = (sound_id or DEFAULT_SOUND).strip()
    if sid == NO_SOUND:
        return NO_SOUND
    if sid not in SOUND_FILES:
        return DEFAULT_SOUND
    return sid


def is_known_sound(sound_id: str) -> bool:
    return sound_id in SOUND_OPTIONS
