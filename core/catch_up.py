# -*- coding: utf-8 -*-

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class CatchUp:
    index: int
    remaining_ms: int
    completed: List[int]
    finished: bool


def catch_up(durations: Sequence[int], index: int, overshoot_ms: int) -> CatchUp:
    """
    Map time that passed after the end of sub-timer `index` onto the rest of
    the set.

    `overshoot_ms` is how long ago sub-timer `index` should have ended. That
    sub-timer always counts as completed. Following sub-timers are consumed
    while the overshoot covers their full duration; the first one it doesn't
    cover becomes current, with the partial progress taken off its remaining
    time.
    """
    overshoot = max(0, int(overshoot_ms))
    completed = [index]
    j = index + 1
    while j < len(durations):
        d_ms = max(0, int(durations[j])) * 1000
        if overshoot < d_ms:
            return CatchUp(
                index=j,
                remaining_ms=d_ms - overshoot,
                completed=completed,
                finished=False,
            )
        overshoot -= d_ms
        completed.append(j)
        j += 1

    return CatchUp(
        index=max(0, len(durations) - 1),
        remaining_ms=0,
        completed=completed,
        finished=True,
    )
