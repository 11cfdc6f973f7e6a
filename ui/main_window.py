# -*- coding: utf-8 -*-

import datetime as dt
import tkinter as tk
from tkinter import ttk
from typing import Dict, Optional

from tkinterweb import HtmlFrame

from core.duration import total_duration
from core.sounds import DEFAULT_SOUND, SOUND_OPTIONS
from services.history_service import HistoryService
from services.settings_service import SettingsService
from services.timer_service import TimerService
from services.timer_set_service import TimerSetService
from ui.markdown_renderer import DARK_THEME, MarkdownRenderer
from ui.runner_widget import RunnerWidget

QUICK_ROW = "▶ Quick timer"


def _fmt_hms(sec: int) -> str:
    sec = max(0, int(sec))
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    if h > 0:
        return f"{h}h {m:02d}m"
    return f"{m}m {s:02d}s"


class MainWindow:
    def __init__(
        self,
        root: tk.Tk,
        timer_set_service: TimerSetService,
        timer_service: TimerService,
        history_service: HistoryService,
        settings_service: SettingsService,
        initial_set_id: Optional[str] = None,
    ):
        self.root = root
        self.timer_set_service = timer_set_service
        self.timer_service = timer_service
        self.history_service = history_service
        self.settings_service = settings_service

        self.root.title("Interval Timer")
        self.root.geometry("900x520")
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self.active_set_id: Optional[str] = initial_set_id
        self._list_index_to_set_id: Dict[int, Optional[str]] = {}

        settings = self.settings_service.get()
        self._md = MarkdownRenderer(DARK_THEME if settings.theme == "dark" else None)

        self._build_ui()
        self._refresh_all()

    def _build_ui(self):
        root = self.root

        outer = ttk.Frame(root, padding=10)
        outer.pack(fill="both", expand=True)

        outer.columnconfigure(0, weight=1)
        outer.columnconfigure(1, weight=2)
        outer.rowconfigure(0, weight=1)

        # LEFT: timer sets
        left = ttk.Labelframe(outer, text="Timer sets", padding=10)
        left.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        left.columnconfigure(0, weight=1)
        left.rowconfigure(1, weight=1)

        self.err_var = tk.StringVar(value="")
        ttk.Label(left, textvariable=self.err_var, foreground="red").grid(
            row=0, column=0, sticky="w", pady=(0, 6)
        )

        self.set_list = tk.Listbox(left, height=12, exportselection=False)
        self.set_list.grid(row=1, column=0, sticky="nsew")
        self.set_list.bind("<<ListboxSelect>>", self._on_select_set)

        # quick timer row
        quick = ttk.Frame(left)
        quick.grid(row=2, column=0, sticky="ew", pady=(8, 0))
        quick.columnconfigure(0, weight=1)

        self.quick_var = tk.StringVar()
        ttk.Entry(quick, textvariable=self.quick_var, width=8).grid(row=0, column=0, sticky="ew")
        self.quick_sound_var = tk.StringVar(value=DEFAULT_SOUND)
        ttk.Combobox(
            quick,
            textvariable=self.quick_sound_var,
            values=list(SOUND_OPTIONS),
            state="readonly",
            width=12,
        ).grid(row=0, column=1, padx=(6, 0))
        ttk.Button(quick, text="Set (mmss)", command=self._set_quick).grid(
            row=0, column=2, padx=(6, 0)
        )

        actions = ttk.Frame(left)
        actions.grid(row=3, column=0, sticky="ew", pady=(8, 0))
        ttk.Button(actions, text="Duplicate", command=self._duplicate).pack(side="left")
        ttk.Button(actions, text="Refresh", command=self._refresh_all).pack(side="right")

        # RIGHT: runner + description + settings + history
        right = ttk.Frame(outer)
        right.grid(row=0, column=1, sticky="nsew")
        right.columnconfigure(0, weight=1)
        right.rowconfigure(1, weight=1)
        right.rowconfigure(3, weight=1)

        self.runner = RunnerWidget(
            right,
            timer_service=self.timer_service,
            on_request_refresh=self._refresh_history_only,
        )
        self.runner.grid(row=0, column=0, sticky="ew")

        desc = ttk.Labelframe(right, text="Description", padding=4)
        desc.grid(row=1, column=0, sticky="nsew", pady=(10, 0))
        self.desc_view = HtmlFrame(desc, horizontal_scrollbar="auto")
        self.desc_view.pack(fill="both", expand=True)

        prefs = ttk.Frame(right)
        prefs.grid(row=2, column=0, sticky="ew", pady=(10, 0))
        settings = self.settings_service.get()
        self.notify_var = tk.BooleanVar(value=settings.enable_notifications)
        ttk.Checkbutton(
            prefs,
            text="Notifications",
            variable=self.notify_var,
            command=self._on_notify_toggle,
        ).pack(side="left")
        ttk.Label(prefs, text="Volume").pack(side="left", padx=(12, 4))
        self.volume_var = tk.DoubleVar(value=settings.notification_volume)
        ttk.Scale(
            prefs,
            from_=0.0,
            to=1.0,
            variable=self.volume_var,
            command=lambda _v: self._on_volume_change(),
        ).pack(side="left", fill="x", expand=True)

        hist = ttk.Labelframe(right, text="Recent runs", padding=10)
        hist.grid(row=3, column=0, sticky="nsew", pady=(10, 0))
        hist.columnconfigure(0, weight=1)
        self.history_list = tk.Listbox(hist, height=6)
        self.history_list.grid(row=0, column=0, sticky="nsew")

    def run(self):
        self.root.mainloop()

    def _on_close(self):
        # closes an open run as cancelled and releases sounds
        self.timer_service.shutdown()
        self.root.destroy()

    # ----- Selection -----
    def _on_select_set(self, event=None):
        try:
            sel = self.set_list.curselection()
            if not sel:
                return
            set_id = self._list_index_to_set_id.get(int(sel[0]))
            self.timer_service.select(set_id)
            self.active_set_id = set_id
            self.err_var.set("")
        except ValueError as e:
            self.err_var.set(str(e))
        self._render_description()

    def _set_quick(self):
        self.set_list.selection_clear(0, tk.END)
        self.active_set_id = None
        seconds = self.timer_service.select_quick(
            self.quick_var.get(), sound=self.quick_sound_var.get()
        )
        self.quick_var.set("")
        if seconds <= 0:
            self.err_var.set("Enter a duration like 130 for 1:30.")
        else:
            self.err_var.set("")
        self._render_description()

    def _duplicate(self):
        if not self.active_set_id:
            return
        try:
            self.timer_set_service.duplicate_set(self.active_set_id)
            self.err_var.set("")
        except ValueError as e:
            self.err_var.set(str(e))
        self._refresh_sets_only()

    # ----- Settings -----
    def _on_notify_toggle(self):
        self.settings_service.update(enable_notifications=self.notify_var.get())

    def _on_volume_change(self):
        self.settings_service.update(notification_volume=self.volume_var.get())

    # ----- Refresh -----
    def _refresh_all(self):
        self._refresh_sets_only()
        self._refresh_history_only()
        self._render_description()

    def _refresh_sets_only(self):
        sets = self.timer_set_service.list_sets(include_hidden=False)

        self.set_list.delete(0, tk.END)
        self._list_index_to_set_id.clear()

        self.set_list.insert(tk.END, QUICK_ROW)
        self._list_index_to_set_id[0] = None

        selected_index = None
        for i, s in enumerate(sets, start=1):
            total = total_duration(s.timers)
            self.set_list.insert(tk.END, f"{s.name}  ({len(s.timers)} ×, {_fmt_hms(total)})")
            self._list_index_to_set_id[i] = s.id
            if self.active_set_id and s.id == self.active_set_id:
                selected_index = i

        if selected_index is not None:
            self.set_list.selection_set(selected_index)
            self.set_list.activate(selected_index)

    def _refresh_history_only(self):
        self.history_list.delete(0, tk.END)
        for h in self.history_service.list_entries(limit=10):
            when = dt.datetime.fromtimestamp(h.started_at).strftime("%m-%d %H:%M")
            if h.completed_at is None:
                status = "running"
            elif h.cancelled:
                status = "cancelled"
            else:
                status = "done"
            name = h.timer_set_name or "(deleted set)"
            self.history_list.insert(
                tk.END,
                f"{when}  {name}  {h.timers_run} timer(s)  {_fmt_hms(h.total_duration_sec)}  [{status}]",
            )

    def _render_description(self):
        ts = self.timer_service.selected_set
        if ts is None:
            md_text = "_Quick timer: type minutes and seconds, then **Set**._"
        else:
            md_text = ts.description or "_No description._"
        html = self._md.to_html(md_text)
        try:
            self.desc_view.load_html(html)
        except Exception:
            try:
                self.desc_view.set_content(html)
            except Exception:
                pass
