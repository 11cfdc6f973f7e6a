# -*- coding: utf-8 -*-

import tkinter as tk
from tkinter import ttk
from typing import Callable

from core.duration import format_hms
from core.run_engine import RunSnapshot
from services.timer_service import TimerService


def set_progress(snap: RunSnapshot) -> float:
    """Fraction of the whole set already elapsed (0..1)."""
    if snap.set_total_sec <= 0:
        return 0.0
    return min(1.0, snap.set_elapsed_sec / snap.set_total_sec)


class RunnerWidget(ttk.Frame):
    def __init__(
        self,
        master,
        timer_service: TimerService,
        on_request_refresh: Callable[[], None],
    ):
        super().__init__(master)

        self.timer_service = timer_service
        self.on_request_refresh = on_request_refresh

        self._build_ui()

        # wire callbacks from service -> widget UI
        self.timer_service.set_on_tick(self._on_tick)
        self.timer_service.set_on_finish(self._on_finish)
        self.timer_service.set_on_cancel(self._on_cancel)

        # window shown / focused again: recompute from the wall clock
        top = self.winfo_toplevel()
        for ev in ("<Map>", "<FocusIn>"):
            top.bind(ev, lambda e: self.timer_service.resume_from_background(), add="+")

        self._render(self.timer_service.get_snapshot())

    def _build_ui(self):
        self.columnconfigure(0, weight=1)

        self.set_var = tk.StringVar(value="")
        self.label_var = tk.StringVar(value="")
        self.time_var = tk.StringVar(value="00:00")
        self.info_var = tk.StringVar(value="Select a timer set to start")

        ttk.Label(self, textvariable=self.set_var, font=("Sans", 12, "bold")).grid(
            row=0, column=0, sticky="w", pady=(0, 6)
        )
        ttk.Label(self, textvariable=self.label_var).grid(row=1, column=0, sticky="w")

        self.time_label = ttk.Label(
            self, textvariable=self.time_var, font=("Sans", 32, "bold")
        )
        self.time_label.grid(row=2, column=0, sticky="w", pady=(8, 4))

        self.info_label = ttk.Label(self, textvariable=self.info_var)
        self.info_label.grid(row=3, column=0, sticky="w", pady=(0, 6))

        # whole-set progress
        self.progress = ttk.Progressbar(self, orient="horizontal", mode="determinate", maximum=1.0)
        self.progress.grid(row=4, column=0, sticky="ew", pady=(0, 10))

        btns = ttk.Frame(self)
        btns.grid(row=5, column=0, sticky="w")

        self.start_btn = ttk.Button(btns, text="Start", command=self._start)
        self.pause_btn = ttk.Button(btns, text="Pause", command=self._pause)
        self.again_btn = ttk.Button(btns, text="Restart timer", command=self._reset_current)
        self.skip_btn = ttk.Button(btns, text="Skip", command=self._skip)
        self.cancel_btn = ttk.Button(btns, text="Cancel", command=self._cancel)

        for col, b in enumerate(
            (self.start_btn, self.pause_btn, self.again_btn, self.skip_btn, self.cancel_btn)
        ):
            b.grid(row=0, column=col, padx=(0, 6))

    def _update_buttons(self, snap: RunSnapshot):
        runnable = snap.timer_count > 0 and (snap.remaining_sec > 0 or not snap.is_quick)

        if snap.running or not runnable:
            self.start_btn.state(["disabled"])
        else:
            self.start_btn.state(["!disabled"])

        if snap.running:
            self.pause_btn.state(["!disabled"])
        else:
            self.pause_btn.state(["disabled"])

        if snap.running or snap.run_open:
            self.cancel_btn.state(["!disabled"])
        else:
            self.cancel_btn.state(["disabled"])

    def _start(self):
        self.timer_service.start()
        self.on_request_refresh()

    def _pause(self):
        self.timer_service.pause()

    def _reset_current(self):
        self.timer_service.reset_current()

    def _skip(self):
        self.timer_service.skip()
        self.on_request_refresh()

    def _cancel(self):
        self.timer_service.cancel()

    # ---- Service callbacks ----
    def _on_tick(self, snap: RunSnapshot):
        self._render(snap)

    def _on_finish(self, snap: RunSnapshot):
        self._render(snap)
        self.info_var.set("Finished.")
        self.on_request_refresh()

    def _on_cancel(self, snap: RunSnapshot):
        self._render(snap)
        self.info_var.set("Cancelled.")
        self.on_request_refresh()

    def _render(self, snap: RunSnapshot):
        self.set_var.set(snap.set_name)
        self.label_var.set(snap.label)
        self.time_var.set(format_hms(snap.remaining_sec))
        self.progress["value"] = set_progress(snap)

        if snap.timer_count == 0:
            self.info_var.set("This set has no timers")
        elif snap.running:
            self.info_var.set(f"Running {snap.current_index + 1} / {snap.timer_count}")
        elif snap.run_open:
            self.info_var.set(f"Paused {snap.current_index + 1} / {snap.timer_count}")
        else:
            self.info_var.set("Ready")
        self._update_buttons(snap)
