"""
scankey.keyboard
================
On-screen layout: the control row, the character rows, and what gets
spoken for each of them.
"""

from __future__ import annotations

from enum import Enum


class Control(str, Enum):
    SPACE = "Space"
    DELETE_LETTER = "Del Letter"
    DELETE_WORD = "Del Word"
    CLEAR = "Clear"
    SETTINGS = "Settings"
    EXIT = "Exit"


CONTROL_ROW: list[str] = [c.value for c in Control]

KEY_ROWS: list[list[str]] = [
    CONTROL_ROW,
    ["A", "B", "C", "D", "E", "F"],
    ["G", "H", "I", "J", "K", "L"],
    ["M", "N", "O", "P", "Q", "R"],
    ["S", "T", "U", "V", "W", "X"],
    ["Y", "Z", "0", "1", "2", "3"],
    ["4", "5", "6", "7", "8", "9"],
]

# Scan rows ahead of the keyboard rows.
TEXT_ROW = 0
PREDICTION_ROW = 1
FIRST_KEY_ROW = 2

PREDICTION_TITLE = "predictive text"

_SPOKEN = {
    Control.DELETE_LETTER.value: "delete letter",
    Control.DELETE_WORD.value: "delete word",
}


def row_title(keys: list[str]) -> str:
    """What to announce when a keyboard row is highlighted."""
    if keys == CONTROL_ROW:
        return "controls"
    return " ".join(k.lower() for k in keys)


def key_label(key: str) -> str:
    return _SPOKEN.get(key, key if len(key) == 1 else key.lower())
