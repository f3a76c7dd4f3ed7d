"""
scankey.settings
================
The settings list shown in settings mode.  Each entry has a stable id,
a spoken label, a current value for display and a select handler.
The scanner only ever sees ``count/label/highlight/activate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

from .config import SPEED_NAMES
from .storage import SETTINGS_KEY, Storage

if TYPE_CHECKING:
    from .scanner import ScanController
    from .speech import Speaker


class SettingsView(Protocol):
    def render_settings(self, rows: list[tuple[str, str]]) -> None: ...

    def highlight_setting(self, index: int) -> None: ...


@dataclass
class SettingEntry:
    id: str
    label: str
    value: Callable[[], str]
    on_select: Callable[[], None]


def apply_saved_settings(config: dict, storage: Storage) -> dict:
    """Overlay persisted user choices onto ``config`` (in place). Bad values are ignored."""
    saved = storage.get(SETTINGS_KEY, {})
    if not isinstance(saved, dict):
        return config
    if saved.get("scan_speed") in config.get("scan_speeds", {}):
        config["scan_speed"] = saved["scan_speed"]
    if isinstance(saved.get("autocap_i"), bool):
        config["autocap_i"] = saved["autocap_i"]
    if isinstance(saved.get("speech_enabled"), bool):
        config.setdefault("speech", {})["enabled"] = saved["speech_enabled"]
    return config


class SettingsMenu:
    def __init__(
        self,
        controller: ScanController,
        view: SettingsView,
        storage: Storage,
        speaker: Speaker,
    ) -> None:
        self.controller = controller
        self.view = view
        self.storage = storage
        self.speaker = speaker
        self.entries: list[SettingEntry] = [
            SettingEntry("scan-speed", "scan speed", self._speed_value, self._cycle_speed),
            SettingEntry("autocap", "capital I", self._autocap_value, self._toggle_autocap),
            SettingEntry("speech", "speech", self._speech_value, self._toggle_speech),
            SettingEntry("forget", "forget learned words", lambda: "", self._forget),
            SettingEntry("close", "close settings", lambda: "", self._close),
        ]

    # ── Scanner-facing ────────────────────────────────────────────────────────

    def count(self) -> int:
        return len(self.entries)

    def label(self, index: int) -> str:
        return self.entries[index].label

    def highlight(self, index: int) -> None:
        self.render()
        self.view.highlight_setting(index)

    def activate(self, index: int) -> None:
        entry = self.entries[index]
        entry.on_select()
        if entry.id != "close":
            self.highlight(index)

    def render(self) -> None:
        self.view.render_settings([(e.label, e.value()) for e in self.entries])

    # ── Handlers ──────────────────────────────────────────────────────────────

    def _speed_value(self) -> str:
        return self.controller.profile.name.capitalize()

    def _autocap_value(self) -> str:
        return "On" if self.controller.buffer.autocap_i else "Off"

    def _speech_value(self) -> str:
        return "On" if self.speaker.enabled else "Off"

    def _save(self) -> None:
        self.storage.set(SETTINGS_KEY, {
            "scan_speed": self.controller.profile.name,
            "autocap_i": self.controller.buffer.autocap_i,
            "speech_enabled": self.speaker.enabled,
        })

    def _cycle_speed(self) -> None:
        current = self.controller.profile.name
        index = SPEED_NAMES.index(current) if current in SPEED_NAMES else -1
        name = SPEED_NAMES[(index + 1) % len(SPEED_NAMES)]
        self.controller.set_speed(name)
        self._save()
        self.controller.speak(name)

    def _toggle_autocap(self) -> None:
        buffer = self.controller.buffer
        buffer.autocap_i = not buffer.autocap_i
        self._save()
        self.controller.speak("on" if buffer.autocap_i else "off")

    def _toggle_speech(self) -> None:
        # "speech off" is queued before muting.
        if self.speaker.enabled:
            self.controller.speak("speech off")
            self.speaker.enabled = False
        else:
            self.speaker.enabled = True
            self.controller.speak("speech on")
        self._save()

    def _forget(self) -> None:
        self.controller.engine.clear_user_data()
        self.controller.refresh_predictions()
        self.controller.speak("learned words cleared")

    def _close(self) -> None:
        self.controller.close_settings()
        self.controller.speak("settings closed")
