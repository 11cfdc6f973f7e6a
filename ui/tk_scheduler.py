# -*- coding: utf-8 -*-

from typing import Any, Callable

from core.ports import Scheduler


class TkScheduler(Scheduler):
    """Scheduler on top of the Tk event loop (after / after_cancel)."""

    def __init__(self, widget):
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self.widget.after(max(0, int(delay_ms)), callback)

    def cancel(self, handle: Any) -> None:
        try:
            self.widget.after_cancel(handle)
        except Exception:
            pass
