"""
scankey.app
===========
Main application class: wires together the switch listener, the scan
controller, the prediction engine, speech and the keyboard window.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Any, Callable

try:
    from pynput import keyboard
    from pynput.keyboard import Key, KeyCode
except ImportError as exc:
    raise ImportError(
        "pynput is required.\n"
        "Install it with:  pip install pynput\n"
        "Or, from the repo:  pip install -e ."
    ) from exc

from .config import data_dir
from .engine import PredictionEngine
from .ngrams import NgramStore
from .scanner import ScanController
from .settings import SettingsMenu, apply_saved_settings
from .speech import Speaker
from .storage import Storage
from .window import KeyboardWindow


def resolve_key(name: str) -> Key | KeyCode:
    """Map a config key name ("space", "enter", "f8", "a") to a pynput key."""
    if len(name) == 1:
        return KeyCode.from_char(name)
    try:
        return Key[name]
    except KeyError:
        raise ValueError(f"unknown key name {name!r}") from None


class TkScheduler:
    """:class:`~scankey.scanner.Scheduler` on top of ``after``/``after_cancel``."""

    def __init__(self, root: tk.Misc) -> None:
        self.root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self.root.after(int(delay_ms), callback)

    def cancel(self, handle: Any) -> None:
        try:
            self.root.after_cancel(handle)
        except tk.TclError:
            pass   # already fired


class ScanKeyApp:
    """
    Full application.  Instantiate then call :meth:`run`.

    Example::

        from scankey import load_config
        from scankey.app import ScanKeyApp
        app = ScanKeyApp(load_config())
        app.run()
    """

    def __init__(self, config: dict) -> None:
        self.config = config
        self.storage = Storage(data_dir(config))
        self._stop = False
        apply_saved_settings(config, self.storage)

        speech_cfg = config.get("speech", {})
        self.speaker = Speaker(
            enabled=bool(speech_cfg.get("enabled", True)),
            rate=speech_cfg.get("rate"),
        )
        self.engine = PredictionEngine(config, self.storage)

        # ── Tkinter root ──────────────────────────────────────────────────────
        self.root = tk.Tk()
        self.window = KeyboardWindow(self.root, config.get("window", {}))

        self.controller = ScanController(
            config,
            self.engine,
            self.window,
            self.speaker.speak,
            TkScheduler(self.root),
            on_exit=self.stop,
        )
        self.controller.settings = SettingsMenu(
            self.controller, self.window, self.storage, self.speaker
        )

        keys = config.get("keys", {})
        self._primary = resolve_key(keys.get("primary", "space"))
        self._secondary = resolve_key(keys.get("secondary", "enter"))

        # ── Global keyboard listener ──────────────────────────────────────────
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
            suppress=False,
        )

    # ── Switch dispatch (listener thread → Tk main thread) ────────────────────

    def _on_press(self, key: Key | KeyCode | None) -> None:
        if key == self._primary:
            self.root.after(0, self.controller.on_primary_down)
        elif key == self._secondary:
            self.root.after(0, self.controller.on_secondary_down)

    def _on_release(self, key: Key | KeyCode | None) -> None:
        if key == self._primary:
            self.root.after(0, self.controller.on_primary_up)
        elif key == self._secondary:
            self.root.after(0, self.controller.on_secondary_up)

    # ── Baseline loading (worker thread → Tk main thread) ─────────────────────

    def _load_baseline(self) -> None:
        store = self.engine.fetch_baseline()
        self.root.after(0, self._baseline_ready, store)

    def _baseline_ready(self, store: NgramStore) -> None:
        self.engine.use_baseline(store)
        self.controller.refresh_predictions()

    # ── Run ───────────────────────────────────────────────────────────────────

    def _poll_signals(self) -> None:
        """
        Called every 200ms on the Tk main thread.
        Tkinter's mainloop() blocks Python-level signal delivery entirely,
        so Ctrl+C never fires without this periodic re-entry into Python.
        """
        if self._stop:
            self.root.destroy()
            return
        self.root.after(200, self._poll_signals)

    def stop(self) -> None:
        self._stop = True

    def run(self) -> None:
        """Start the listener, speech and baseline load, then enter the Tk event loop."""
        import signal

        self._stop = False

        def _sigint_handler(sig, frame):
            self._stop = True

        signal.signal(signal.SIGINT, _sigint_handler)

        self.speaker.start()
        self.controller.start()
        threading.Thread(target=self._load_baseline, name="scankey-baseline", daemon=True).start()

        self._listener.start()
        self.root.after(200, self._poll_signals)
        self.root.mainloop()
        self._listener.stop()
        self.speaker.stop()
        print("\n[Scan] Stopped.")
