"""
scankey.config
==============
Loads and validates config.json.
Falls back to sane defaults if the file is missing or partially specified.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path

# The package ships a default config.json alongside this file.
_PACKAGE_DIR = Path(__file__).parent
_DEFAULT_CONFIG_PATH = _PACKAGE_DIR / "config.json"

# Users can also place a config.json next to their working directory or set
# an environment variable to point to a custom one.
_ENV_VAR = "SCANKEY_CONFIG"

SPEED_NAMES: tuple[str, ...] = ("slow", "medium", "fast")


DEFAULTS: dict = {
    "scan_speed": "medium",
    "scan_speeds": {
        "slow":   {"forward_ms": 1500, "backward_ms": 3000, "long_press_ms": 4000},
        "medium": {"forward_ms": 1000, "backward_ms": 2000, "long_press_ms": 3000},
        "fast":   {"forward_ms": 500,  "backward_ms": 1000, "long_press_ms": 2000},
    },
    # Releases shorter than these are switch bounce.
    "min_primary_ms": 250,
    "min_secondary_ms": 100,
    "jump_hold_ms": 3000,
    # Speaking the same text this many times in a row teaches it.
    "reinforce_after": 3,
    "autocap_i": True,
    "auto_learn": True,
    "keys": {
        "primary": "space",
        "secondary": "enter",
    },
    "speech": {
        "enabled": True,
        "rate": 170,
    },
    "baseline_source": str(_PACKAGE_DIR / "baseline_ngrams.json"),
    "baseline_max_age_hours": 24,
    "data_dir": "~/.config/scankey",
    "user_max_age_days": 90,
    "user_min_count": 3,
    "window": {
        "fullscreen": False,
        "font_family": "Helvetica",
        "key_font_size": 28,
        "text_font_size": 36,
        "highlight": "#FFD64D",
    },
}


@dataclass(frozen=True)
class SpeedProfile:
    """Timing for one scan speed preset, all in milliseconds."""

    name: str
    forward_ms: int
    backward_ms: int
    long_press_ms: int


def speed_profile(config: dict, name: str | None = None) -> SpeedProfile:
    """
    Return the :class:`SpeedProfile` for ``name`` (or ``config["scan_speed"]``).

    Raises ``ValueError`` for an unknown preset name.
    """
    name = name or config.get("scan_speed", "medium")
    speeds = config.get("scan_speeds", DEFAULTS["scan_speeds"])
    if name not in speeds:
        raise ValueError(f"unknown scan speed {name!r}; expected one of {sorted(speeds)}")
    raw = speeds[name]
    return SpeedProfile(
        name=name,
        forward_ms=int(raw["forward_ms"]),
        backward_ms=int(raw["backward_ms"]),
        long_press_ms=int(raw["long_press_ms"]),
    )


def data_dir(config: dict) -> Path:
    return Path(os.path.expanduser(config.get("data_dir", DEFAULTS["data_dir"])))


def load_config(path: str | Path | None = None) -> dict:
    """
    Load configuration from a JSON file and merge with defaults.

    Resolution order (first found wins):
        1. Explicit ``path`` argument
        2. ``SCANKEY_CONFIG`` environment variable
        3. ``config.json`` in the current working directory
        4. Packaged default ``scankey/config.json``

    Returns a fully-populated config dict.
    """
    cfg = copy.deepcopy(DEFAULTS)

    candidates: list[Path] = []
    if path:
        candidates.append(Path(path))
    env_path = os.environ.get(_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path.cwd() / "config.json")
    candidates.append(_DEFAULT_CONFIG_PATH)

    for candidate in candidates:
        if candidate.exists():
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    user = json.load(f)
                # Strip comment keys (keys starting with _)
                user = {k: v for k, v in user.items() if not k.startswith("_")}
                # Deep-merge one level for dict-valued sections
                for key, value in list(user.items()):
                    if isinstance(value, dict) and isinstance(cfg.get(key), dict):
                        cfg[key].update(user.pop(key))
                cfg.update(user)
                # Resolve a relative baseline path against the config file's location
                source = str(cfg["baseline_source"])
                if "://" not in source and not Path(source).is_absolute():
                    cfg["baseline_source"] = str(candidate.parent / source)
            except (OSError, ValueError, AttributeError) as e:
                print(f"[Scan] Warning: could not parse {candidate}: {e}")
            break   # stop at first found

    if cfg.get("scan_speed") not in cfg["scan_speeds"]:
        print(f"[Scan] Warning: unknown scan_speed {cfg.get('scan_speed')!r}, using 'medium'")
        cfg["scan_speed"] = "medium"

    return cfg
