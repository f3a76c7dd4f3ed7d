"""
scankey.storage
===============
Small key → JSON blob store backed by one file per key in the data
directory, plus the baseline n-gram fetch with its 24-hour cache.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable

import requests

from .ngrams import NgramStore

USER_KEY = "user_ngrams"
BASELINE_KEY = "baseline_ngrams"
SETTINGS_KEY = "settings"

FETCH_TIMEOUT = 5  # seconds


class Storage:
    """
    Persist JSON-serialisable values under string keys.

    ``get`` never raises: a missing or unreadable blob returns ``default``.
    ``set`` writes atomically so a crash mid-save cannot corrupt the old value.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(os.path.expanduser(str(directory)))

    def path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path(key)
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            print(f"[Storage] Warning: could not read {path}: {e}")
            return default

    def set(self, key: str, value: Any) -> bool:
        path = self.path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, indent=2, ensure_ascii=False)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            print(f"[Storage] Could not save {path}: {e}")
            return False
        return True

    def remove(self, key: str) -> None:
        try:
            self.path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            print(f"[Storage] Could not remove {self.path(key)}: {e}")


# ─── Baseline dataset ─────────────────────────────────────────────────────────

def fetch_json(source: str) -> Any:
    """GET ``source`` if it is a URL, otherwise read it as a local file."""
    if source.startswith(("http://", "https://")):
        response = requests.get(source, headers={"Accept": "application/json"}, timeout=FETCH_TIMEOUT)
        response.raise_for_status()
        return response.json()
    with open(os.path.expanduser(source), "r", encoding="utf-8") as f:
        return json.load(f)


def load_baseline(
    source: str,
    storage: Storage,
    max_age_hours: float = 24,
    clock: Callable[[], float] = time.time,
) -> NgramStore:
    """
    Return the baseline store, preferring a cached copy of ``source`` younger
    than ``max_age_hours``.  A failed fetch falls back to any cached copy at all,
    and finally to an empty store.
    """
    cached = storage.get(BASELINE_KEY)
    if not isinstance(cached, dict):
        cached = None

    if cached is not None:
        fetched_at = cached.get("fetched_at")
        fresh = isinstance(fetched_at, (int, float)) and clock() - fetched_at < max_age_hours * 3600
        if fresh and cached.get("source") == source:
            print("[Predict] Using cached baseline data")
            return NgramStore.from_dict(cached.get("data"))

    try:
        raw = fetch_json(source)
    except (requests.RequestException, OSError, ValueError) as e:
        print(f"[Predict] Warning: could not load baseline from {source}: {e}")
        if cached is not None:
            print("[Predict] Using cached baseline data due to fetch error")
            return NgramStore.from_dict(cached.get("data"))
        return NgramStore()

    store = NgramStore.from_dict(raw)
    storage.set(BASELINE_KEY, {"source": source, "fetched_at": clock(), "data": store.to_dict()})
    print(f"[Predict] Loaded fresh baseline data: {len(store.unigrams):,} words")
    return store
