# -*- coding: utf-8 -*-

import math
from typing import Iterable, Sequence

from domain.models import SubTimer


def coerce_duration(value) -> int:
    """
    Whole non-negative seconds.
    Anything unparsable, non-finite or negative becomes 0 (never raises).
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(f) or f <= 0:
        return 0
    return int(math.floor(f))


def pad2(n) -> str:
    try:
        f = float(n)
    except (TypeError, ValueError):
        return "00"
    if not math.isfinite(f):
        return "00"
    return f"{int(f):02d}"


def format_hms(sec) -> str:
    s = coerce_duration(sec)
    h = s // 3600
    m = (s % 3600) // 60
    r = s % 60
    if h > 0:
        return f"{pad2(h)}:{pad2(m)}:{pad2(r)}"
    return f"{pad2(m)}:{pad2(r)}"


def parse_quick_digits(digits: str) -> int:
    # keypad entry: "130" -> 1:30, "5" -> 0:05
    d = "".join(c for c in (digits or "") if c.isdigit())[:6]
    if not d:
        return 0
    minutes = int(d[:-2] or "0")
    seconds = int(d[-2:])
    return max(0, minutes * 60 + seconds)


def total_duration(timers: Iterable[SubTimer]) -> int:
    return sum(coerce_duration(t.duration_sec) for t in timers)


def elapsed_in_set(timers: Sequence[SubTimer], index: int, remaining_sec: int) -> int:
    past = total_duration(timers[:index])
    if 0 <= index < len(timers):
        current = coerce_duration(timers[index].duration_sec)
    else:
        current = 0
    return past + max(0, current - coerce_duration(remaining_sec))
