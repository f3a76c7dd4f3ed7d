"""
scankey.ngrams
==============
N-gram statistics: the word / bigram / trigram tables shared by the
baseline corpus, the per-user corpus and their merged view.

Everything here is pure: no I/O, no clocks read implicitly.  Parsing
from JSON always succeeds; anything malformed is dropped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# On-disk section names, in (unigram, bigram, trigram) order.
SECTIONS: tuple[str, str, str] = ("frequent_words", "bigrams", "trigrams")

# User observations count this many times over baseline ones in the merged view.
USER_WEIGHT = 3
USER_PREFERENCE = 5
RECENCY_FLOOR = 0.5


# ─── Timestamps ───────────────────────────────────────────────────────────────

def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime, or ``None``."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        stamp = datetime.fromisoformat(text)
    except ValueError:
        return None
    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=timezone.utc)
    try:
        return stamp.astimezone(timezone.utc)
    except OverflowError:
        return None


def format_timestamp(stamp: datetime) -> str:
    return stamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ─── Records ──────────────────────────────────────────────────────────────────

@dataclass
class WordStat:
    count: int = 0
    last_used: datetime | None = None
    # Only meaningful in the merged view; never persisted.
    user_count: int = 0

    def to_dict(self) -> dict:
        out: dict = {"count": self.count}
        if self.last_used is not None:
            out["last_used"] = format_timestamp(self.last_used)
        return out

    @classmethod
    def from_dict(cls, raw: object) -> WordStat | None:
        """Return a stat for a well-formed record, ``None`` otherwise."""
        if not isinstance(raw, dict):
            return None
        count = raw.get("count", 0)
        if isinstance(count, bool) or not isinstance(count, (int, float)):
            return None
        if isinstance(count, float) and not math.isfinite(count):
            return None
        if count < 0:
            return None
        return cls(count=int(count), last_used=parse_timestamp(raw.get("last_used")))


def normalize_key(key: object, arity: int) -> str | None:
    """Upper-case and re-join ``key``; ``None`` unless it has ``arity`` words."""
    if not isinstance(key, str):
        return None
    parts = key.upper().split(" ")
    if len(parts) != arity or any(not p for p in parts):
        return None
    return " ".join(parts)


@dataclass
class NgramStore:
    unigrams: dict[str, WordStat] = field(default_factory=dict)
    bigrams: dict[str, WordStat] = field(default_factory=dict)
    trigrams: dict[str, WordStat] = field(default_factory=dict)

    def tables(self) -> tuple[dict[str, WordStat], dict[str, WordStat], dict[str, WordStat]]:
        return self.unigrams, self.bigrams, self.trigrams

    def is_empty(self) -> bool:
        return not any(self.tables())

    def bump(self, table: dict[str, WordStat], key: str, now: datetime) -> WordStat:
        """Increment ``table[key]`` and stamp it with ``now``."""
        stat = table.get(key)
        if stat is None:
            stat = table[key] = WordStat()
        stat.count += 1
        stat.last_used = now
        return stat

    def evict_stale(self, now: datetime, max_age_days: int = 90, min_count: int = 3) -> int:
        """Drop rarely used entries not seen for ``max_age_days``. Returns how many went."""
        cutoff = now - timedelta(days=max_age_days)
        removed = 0
        for table in self.tables():
            stale = [
                key for key, stat in table.items()
                if stat.last_used is not None and stat.last_used < cutoff and stat.count < min_count
            ]
            for key in stale:
                del table[key]
            removed += len(stale)
        return removed

    def to_dict(self) -> dict:
        return {
            name: {key: stat.to_dict() for key, stat in table.items()}
            for name, table in zip(SECTIONS, self.tables())
        }

    @classmethod
    def from_dict(cls, raw: object) -> NgramStore:
        """Parse-or-default: a non-dict gives an empty store, bad entries are skipped."""
        store = cls()
        if not isinstance(raw, dict):
            return store
        for arity, (name, table) in enumerate(zip(SECTIONS, store.tables()), start=1):
            section = raw.get(name)
            if not isinstance(section, dict):
                continue
            for key, value in section.items():
                norm = normalize_key(key, arity)
                stat = WordStat.from_dict(value)
                if norm is None or stat is None:
                    continue
                if norm in table:
                    # "the" and "THE" collapse to one entry
                    existing = table[norm]
                    existing.count += stat.count
                    existing.last_used = _latest(existing.last_used, stat.last_used)
                else:
                    table[norm] = stat
        return store


def _latest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


# ─── Merge & score ────────────────────────────────────────────────────────────

def _merge_table(base: dict[str, WordStat], user: dict[str, WordStat]) -> dict[str, WordStat]:
    merged = {key: replace(stat, user_count=0) for key, stat in base.items()}
    for key, ustat in user.items():
        bstat = merged.get(key)
        merged[key] = WordStat(
            count=(bstat.count if bstat else 0) + USER_WEIGHT * ustat.count,
            last_used=ustat.last_used if ustat.last_used is not None else (bstat.last_used if bstat else None),
            user_count=ustat.count,
        )
    return merged


def merge(baseline: NgramStore, user: NgramStore) -> NgramStore:
    """Combine the two stores into a fresh merged view. Inputs are not touched."""
    return NgramStore(
        *(_merge_table(b, u) for b, u in zip(baseline.tables(), user.tables()))
    )


def recency_multiplier(stat: WordStat, now: datetime) -> float:
    last = stat.last_used or EPOCH
    days = (now - last).total_seconds() / 86400.0
    return max(RECENCY_FLOOR, 1.0 - days / 365.0)


def score(stat: WordStat, now: datetime) -> float:
    """Frequency weighted by recency, with a strong boost for user-reinforced entries."""
    user_multiplier = USER_PREFERENCE if stat.user_count > 0 else 1
    return stat.count * recency_multiplier(stat, now) * user_multiplier
