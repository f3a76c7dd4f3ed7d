from __future__ import annotations

import copy
from datetime import datetime, timezone

import pytest

from scankey.config import DEFAULTS
from scankey.engine import PredictionEngine
from scankey.ngrams import NgramStore, WordStat
from scankey.scanner import ScanController
from scankey.storage import Storage

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class ManualScheduler:
    """Scheduler driven by hand: time only moves on :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._pending: dict[int, tuple[float, object]] = {}

    def call_later(self, delay_ms, callback):
        self._seq += 1
        self._pending[self._seq] = (self.now + delay_ms, callback)
        return self._seq

    def cancel(self, handle) -> None:
        self._pending.pop(handle, None)

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while True:
            due = [(at, h) for h, (at, _) in self._pending.items() if at <= target]
            if not due:
                break
            at, handle = min(due)
            _, callback = self._pending.pop(handle)
            self.now = at
            callback()
        self.now = target

    @property
    def pending(self) -> int:
        return len(self._pending)


class RecordingView:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.text = ""
        self.predictions: list[str] = []
        self.settings_visible = False
        self.settings_rows: list[tuple[str, str]] = []
        self.setting_highlight: int | None = None

    def render_text(self, text):
        self.text = text

    def render_predictions(self, words):
        self.predictions = list(words)

    def clear_highlights(self):
        self.calls.append(("clear",))

    def highlight_text_box(self):
        self.calls.append(("text_box",))

    def highlight_row(self, row):
        self.calls.append(("row", row))

    def highlight_item(self, row, item):
        self.calls.append(("item", row, item))

    def show_settings(self, visible):
        self.settings_visible = visible

    def render_settings(self, rows):
        self.settings_rows = list(rows)

    def highlight_setting(self, index):
        self.setting_highlight = index

    @property
    def last_highlight(self):
        marks = [c for c in self.calls if c[0] != "clear"]
        return marks[-1] if marks else None


class FakeSpeaker:
    def __init__(self) -> None:
        self.enabled = True


@pytest.fixture
def config():
    return copy.deepcopy(DEFAULTS)


@pytest.fixture
def storage(tmp_path):
    return Storage(tmp_path / "data")


@pytest.fixture
def engine(config, storage):
    return PredictionEngine(config, storage, clock=lambda: NOW)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def spoken():
    return []


@pytest.fixture
def exits():
    return []


@pytest.fixture
def controller(config, engine, view, spoken, scheduler, exits):
    ctl = ScanController(
        config,
        engine,
        view,
        spoken.append,
        scheduler,
        on_exit=lambda: exits.append(True),
        clock=lambda: scheduler.now,
    )
    ctl.start()
    return ctl


def make_store(words=None, bigrams=None, trigrams=None) -> NgramStore:
    """Build a store from ``{key: count}`` dicts with no timestamps."""
    return NgramStore(
        {k: WordStat(count=c) for k, c in (words or {}).items()},
        {k: WordStat(count=c) for k, c in (bigrams or {}).items()},
        {k: WordStat(count=c) for k, c in (trigrams or {}).items()},
    )
