"""
scankey.window
==============
The on-screen keyboard (tkinter): text bar, prediction chips, key grid
and the settings list, with the scan highlight drawn on top.
"""

from __future__ import annotations

import tkinter as tk

from .engine import MAX_PREDICTIONS
from .keyboard import FIRST_KEY_ROW, KEY_ROWS, PREDICTION_ROW

BG = "#0b0f14"
FG = "#e9eef5"
KEY_BG = "#1a1a2e"
CTRL_BG = "#2a2a4e"
TEXT_BG = "#ADD8E6"


class KeyboardWindow:
    """
    Full keyboard window.  Implements the drawing half of the scanner
    (``ScanView``) and of the settings list (``SettingsView``).
    """

    def __init__(self, root: tk.Tk, window_cfg: dict) -> None:
        self.root = root
        self.cfg = window_cfg
        self.highlight_bg = window_cfg.get("highlight", "#FFD64D")
        self._chips: list[tk.Label] = []
        self._keys: list[list[tk.Label]] = []
        self._settings_rows: list[tk.Label] = []
        self._build()

    # ── Construction ─────────────────────────────────────────────────────────

    def _font(self, size_key: str, weight: str = "bold") -> tuple:
        return (self.cfg.get("font_family", "Helvetica"), self.cfg.get(size_key, 28), weight)

    def _build(self) -> None:
        self.root.title("scankey")
        self.root.configure(bg=BG)
        if self.cfg.get("fullscreen", False):
            self.root.attributes("-fullscreen", True)

        self.main = tk.Frame(self.root, bg=BG, padx=6, pady=6)
        self.main.pack(fill="both", expand=True)

        # Row 0: text bar
        self.text_label = tk.Label(
            self.main,
            text="|",
            bg=TEXT_BG,
            fg="#000000",
            font=self._font("text_font_size"),
            anchor="w",
            padx=12,
            pady=8,
            highlightthickness=4,
            highlightbackground=BG,
        )
        self.text_label.pack(fill="x", pady=(0, 6))

        # Row 1: prediction chips
        self.chip_frame = tk.Frame(self.main, bg=BG)
        self.chip_frame.pack(fill="x", pady=(0, 6))
        for i in range(MAX_PREDICTIONS):
            self.chip_frame.columnconfigure(i, weight=1, uniform="chip")
            chip = self._cell(self.chip_frame, "", KEY_BG)
            chip.grid(row=0, column=i, sticky="nsew", padx=2)
            self._chips.append(chip)

        # Rows 2+: keys
        self.key_frame = tk.Frame(self.main, bg=BG)
        self.key_frame.pack(fill="both", expand=True)
        for r, keys in enumerate(KEY_ROWS):
            self.key_frame.rowconfigure(r, weight=1)
            labels: list[tk.Label] = []
            for c, key in enumerate(keys):
                self.key_frame.columnconfigure(c, weight=1, uniform="key")
                lbl = self._cell(self.key_frame, key, CTRL_BG if r == 0 else KEY_BG)
                lbl.grid(row=r, column=c, sticky="nsew", padx=2, pady=2)
                labels.append(lbl)
            self._keys.append(labels)

        # Settings list, swapped in for the keyboard while open
        self.settings_frame = tk.Frame(self.root, bg=BG, padx=6, pady=6)

    def _cell(self, parent: tk.Widget, text: str, bg: str) -> tk.Label:
        return tk.Label(
            parent,
            text=text,
            bg=bg,
            fg=FG,
            font=self._font("key_font_size"),
            padx=6,
            pady=6,
            highlightthickness=4,
            highlightbackground=BG,
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _row_cells(self, row: int) -> list[tk.Label]:
        if row == PREDICTION_ROW:
            return self._chips
        if row >= FIRST_KEY_ROW:
            return self._keys[row - FIRST_KEY_ROW]
        return []

    def _mark(self, widget: tk.Label, on: bool) -> None:
        widget.config(highlightbackground=self.highlight_bg if on else BG)

    # ── ScanView ──────────────────────────────────────────────────────────────

    def render_text(self, text: str) -> None:
        self.text_label.config(text=text + "|")

    def render_predictions(self, words: list[str]) -> None:
        for i, chip in enumerate(self._chips):
            word = words[i] if i < len(words) else ""
            chip.config(text=word, fg=FG if word else "#555577")

    def clear_highlights(self) -> None:
        self._mark(self.text_label, False)
        for cell in self._chips:
            self._mark(cell, False)
        for row in self._keys:
            for cell in row:
                self._mark(cell, False)

    def highlight_text_box(self) -> None:
        self.clear_highlights()
        self._mark(self.text_label, True)

    def highlight_row(self, row: int) -> None:
        self.clear_highlights()
        for cell in self._row_cells(row):
            self._mark(cell, True)

    def highlight_item(self, row: int, item: int) -> None:
        cells = self._row_cells(row)
        for i, cell in enumerate(cells):
            self._mark(cell, i == item)

    def show_settings(self, visible: bool) -> None:
        if visible:
            self.main.pack_forget()
            self.settings_frame.pack(fill="both", expand=True)
        else:
            self.settings_frame.pack_forget()
            self.main.pack(fill="both", expand=True)

    # ── SettingsView ──────────────────────────────────────────────────────────

    def render_settings(self, rows: list[tuple[str, str]]) -> None:
        while len(self._settings_rows) < len(rows):
            lbl = self._cell(self.settings_frame, "", KEY_BG)
            lbl.config(anchor="w", padx=18)
            lbl.pack(fill="x", pady=3)
            self._settings_rows.append(lbl)
        for lbl, (label, value) in zip(self._settings_rows, rows):
            lbl.config(text=f"{label.capitalize()}   {value}" if value else label.capitalize())

    def highlight_setting(self, index: int) -> None:
        for i, lbl in enumerate(self._settings_rows):
            self._mark(lbl, i == index)
