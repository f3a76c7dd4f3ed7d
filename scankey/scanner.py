"""
scankey.scanner
===============
Two-switch scan/select state machine.

The primary switch ("scan") moves the highlight: a short press steps
forward, holding it past the long-press threshold steps backward on a
repeating timer.  The secondary switch ("select") enters a row, picks an
item, or (held for three seconds) jumps to the prediction row / backs out
of a row.

No UI toolkit is imported here.  Drawing goes through a :class:`ScanView`,
speech through a plain ``speak(text)`` callable and timers through a
:class:`Scheduler`, so the whole machine runs under a fake clock in tests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol

from .buffer import InputBuffer
from .config import SpeedProfile, speed_profile
from .engine import PredictionEngine
from .keyboard import (
    FIRST_KEY_ROW,
    KEY_ROWS,
    PREDICTION_ROW,
    PREDICTION_TITLE,
    TEXT_ROW,
    Control,
    key_label,
    row_title,
)


class Mode(Enum):
    ROW_SELECT = "rows"
    ITEM_SELECT = "items"
    SETTINGS = "settings"


@dataclass
class ScanState:
    mode: Mode = Mode.ROW_SELECT
    row_index: int = TEXT_ROW
    item_index: int = 0
    settings_index: int = 0


@dataclass
class PressState:
    is_down: bool = False
    down_at: float | None = None
    long_press_fired: bool = False
    # Bumped on every press; timers scheduled for an older press are inert.
    cycle: int = 0
    timer: Any = None


# ─── Collaborators ────────────────────────────────────────────────────────────

class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ScanView(Protocol):
    def render_text(self, text: str) -> None: ...

    def render_predictions(self, words: list[str]) -> None: ...

    def clear_highlights(self) -> None: ...

    def highlight_text_box(self) -> None: ...

    def highlight_row(self, row: int) -> None: ...

    def highlight_item(self, row: int, item: int) -> None: ...

    def show_settings(self, visible: bool) -> None: ...


class SettingsList(Protocol):
    def count(self) -> int: ...

    def label(self, index: int) -> str: ...

    def highlight(self, index: int) -> None: ...

    def activate(self, index: int) -> None: ...


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


# ─── Controller ───────────────────────────────────────────────────────────────

class ScanController:
    """
    Owns the scan state, the text buffer and the current prediction row.

    Feed it ``on_primary_down/up`` and ``on_secondary_down/up`` as the
    switches change; everything else is driven from those four calls and
    the timers they schedule.
    """

    def __init__(
        self,
        config: dict,
        engine: PredictionEngine,
        view: ScanView,
        speak: Callable[[str], None],
        scheduler: Scheduler,
        on_exit: Callable[[], None] | None = None,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self.config = config
        self.engine = engine
        self.view = view
        self.speak = speak
        self.scheduler = scheduler
        self.on_exit = on_exit
        self.clock = clock
        self.settings: SettingsList | None = None

        self.profile: SpeedProfile = speed_profile(config)
        self.min_primary_ms = int(config.get("min_primary_ms", 250))
        self.min_secondary_ms = int(config.get("min_secondary_ms", 100))
        self.jump_hold_ms = int(config.get("jump_hold_ms", 3000))
        self.reinforce_after = int(config.get("reinforce_after", 3))

        self.state = ScanState()
        self.primary = PressState()
        self.secondary = PressState()
        self.candidates: list[str] = []
        self.speak_count = 0

        self.buffer = InputBuffer(
            autocap_i=bool(config.get("autocap_i", True)),
            on_change=self._on_buffer_change,
            on_word=self._on_word_typed,
        )

    # ── Setup ─────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Draw the empty buffer, the first prediction row and the text-box highlight."""
        self.view.render_text(self.buffer.text)
        self.refresh_predictions()
        self._show_row(announce=False)

    def set_speed(self, name: str) -> SpeedProfile:
        self.profile = speed_profile(self.config, name)
        self.config["scan_speed"] = name
        return self.profile

    @property
    def row_count(self) -> int:
        return len(KEY_ROWS) + FIRST_KEY_ROW

    # ── Primary switch: scan ──────────────────────────────────────────────────

    def on_primary_down(self) -> None:
        press = self.primary
        if press.is_down:
            return   # key auto-repeat
        press.is_down = True
        press.down_at = self.clock()
        press.long_press_fired = False
        press.cycle += 1
        cycle = press.cycle
        press.timer = self.scheduler.call_later(
            self.profile.long_press_ms, lambda: self._on_primary_held(cycle)
        )

    def _on_primary_held(self, cycle: int) -> None:
        press = self.primary
        if not press.is_down or press.cycle != cycle:
            return
        press.long_press_fired = True
        self._schedule_backward(cycle)

    def _schedule_backward(self, cycle: int) -> None:
        self.primary.timer = self.scheduler.call_later(
            self.profile.backward_ms, lambda: self._on_backward_tick(cycle)
        )

    def _on_backward_tick(self, cycle: int) -> None:
        press = self.primary
        if not press.is_down or press.cycle != cycle:
            return
        self.scan(-1)
        self._schedule_backward(cycle)

    def on_primary_up(self) -> None:
        press = self.primary
        if not press.is_down:
            return
        duration = self.clock() - (press.down_at or 0.0)
        held = press.long_press_fired
        self._release(press)
        if not held and self.min_primary_ms <= duration <= self.profile.long_press_ms:
            self.scan(+1)

    # ── Secondary switch: select ──────────────────────────────────────────────

    def on_secondary_down(self) -> None:
        press = self.secondary
        if press.is_down:
            return
        press.is_down = True
        press.down_at = self.clock()
        press.long_press_fired = False
        press.cycle += 1
        cycle = press.cycle
        press.timer = self.scheduler.call_later(
            self.jump_hold_ms, lambda: self._on_secondary_held(cycle)
        )

    def _on_secondary_held(self, cycle: int) -> None:
        press = self.secondary
        if not press.is_down or press.cycle != cycle:
            return
        press.long_press_fired = True
        self.jump()

    def on_secondary_up(self) -> None:
        press = self.secondary
        if not press.is_down:
            return
        duration = self.clock() - (press.down_at or 0.0)
        held = press.long_press_fired
        self._release(press)
        if not held and duration >= self.min_secondary_ms:
            self.select()

    def _release(self, press: PressState) -> None:
        if press.timer is not None:
            self.scheduler.cancel(press.timer)
        press.timer = None
        press.is_down = False
        press.down_at = None
        press.long_press_fired = False

    # ── Navigation ────────────────────────────────────────────────────────────

    def _items(self, row: int) -> list[str]:
        if row == PREDICTION_ROW:
            return self.candidates
        if row >= FIRST_KEY_ROW:
            return KEY_ROWS[row - FIRST_KEY_ROW]
        return []

    def _show_row(self, announce: bool = True) -> None:
        row = self.state.row_index
        self.view.clear_highlights()
        if row == TEXT_ROW:
            self.view.highlight_text_box()
            return
        self.view.highlight_row(row)
        if announce:
            if row == PREDICTION_ROW:
                self.speak(PREDICTION_TITLE)
            else:
                self.speak(row_title(KEY_ROWS[row - FIRST_KEY_ROW]))

    def _show_item(self) -> None:
        row = self.state.row_index
        items = self._items(row)
        if not items:
            return
        item = self.state.item_index = self.state.item_index % len(items)
        self.view.highlight_item(row, item)
        label = items[item]
        if label:
            self.speak(label if row == PREDICTION_ROW else key_label(label))

    def _show_setting(self) -> None:
        if self.settings is None:
            return
        index = self.state.settings_index
        self.settings.highlight(index)
        self.speak(self.settings.label(index))

    def scan(self, step: int) -> None:
        """Move the highlight ``step`` places along the current axis, wrapping."""
        state = self.state
        if state.mode is Mode.SETTINGS:
            count = self.settings.count() if self.settings else 0
            if count == 0:
                return
            state.settings_index = (state.settings_index + step) % count
            self._show_setting()
        elif state.mode is Mode.ROW_SELECT:
            state.row_index = (state.row_index + step) % self.row_count
            self._show_row()
        else:
            items = self._items(state.row_index)
            if not items:
                return
            state.item_index = (state.item_index + step) % len(items)
            self._show_item()

    def jump(self) -> None:
        """Long-press gesture: to the prediction row, or back out of a row."""
        state = self.state
        if state.mode is Mode.ROW_SELECT:
            state.row_index = PREDICTION_ROW
            self._show_row(announce=False)
        elif state.mode is Mode.ITEM_SELECT:
            state.mode = Mode.ROW_SELECT
            self._show_row()

    # ── Selection ─────────────────────────────────────────────────────────────

    def select(self) -> None:
        state = self.state
        if state.mode is Mode.SETTINGS:
            count = self.settings.count() if self.settings else 0
            if count:
                self.settings.activate(state.settings_index % count)
        elif state.mode is Mode.ROW_SELECT:
            if state.row_index == TEXT_ROW:
                self._speak_buffer()
            else:
                state.mode = Mode.ITEM_SELECT
                state.item_index = 0
                self.view.clear_highlights()
                self._show_item()
        else:
            self._select_item()

    def _select_item(self) -> None:
        state = self.state
        row = state.row_index
        items = self._items(row)
        if items:
            item = items[state.item_index % len(items)]
            if row == PREDICTION_ROW:
                self._commit_prediction(item)
            elif row == FIRST_KEY_ROW:
                self._dispatch_control(Control(item))
            else:
                self.buffer.insert(item)
        if state.mode is Mode.ITEM_SELECT:
            state.mode = Mode.ROW_SELECT
            self._show_row(announce=False)

    def _commit_prediction(self, word: str) -> None:
        if not word:
            return
        context = self.buffer.context
        self.engine.record_word(word)
        if context:
            self.engine.record_ngram(context, word)
        self.buffer.commit_word(word)

    def _dispatch_control(self, control: Control) -> None:
        if control is Control.SPACE:
            self.buffer.space()
        elif control is Control.DELETE_LETTER:
            self.buffer.delete_letter()
        elif control is Control.DELETE_WORD:
            self.buffer.delete_word()
        elif control is Control.CLEAR:
            self.buffer.clear()
        elif control is Control.SETTINGS:
            self.open_settings()
        elif control is Control.EXIT:
            print("[Scan] Exit selected")
            if self.on_exit:
                self.on_exit()

    def _speak_buffer(self) -> None:
        text = self.buffer.text.strip()
        if not text:
            return
        self.speak(text)
        self.speak_count += 1
        if self.speak_count >= self.reinforce_after:
            self.engine.record_phrase(text)
            self.speak_count = 0

    # ── Settings mode ─────────────────────────────────────────────────────────

    def open_settings(self) -> None:
        if self.settings is None:
            return
        self.state.mode = Mode.SETTINGS
        self.state.settings_index = 0
        self.view.clear_highlights()
        self.view.show_settings(True)
        self._show_setting()

    def close_settings(self) -> None:
        self.view.show_settings(False)
        self.state.mode = Mode.ROW_SELECT
        self.state.row_index = TEXT_ROW
        self._show_row()

    # ── Buffer & predictions ──────────────────────────────────────────────────

    def _on_buffer_change(self, text: str) -> None:
        self.speak_count = 0
        self.view.render_text(text)
        self.refresh_predictions()

    def _on_word_typed(self, word: str, context: str) -> None:
        if not self.config.get("auto_learn", True):
            return
        self.engine.record_word(word)
        if context:
            self.engine.record_ngram(context, word)

    def refresh_predictions(self) -> None:
        self.candidates = self.engine.get_predictions(self.buffer.text)
        self.view.render_predictions(self.candidates)
        state = self.state
        if state.mode is Mode.ROW_SELECT and state.row_index == PREDICTION_ROW:
            self.view.highlight_row(PREDICTION_ROW)
