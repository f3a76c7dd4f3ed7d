"""
scankey.engine
==============
Hybrid word-prediction engine: no UI, no keyboard hooks.
Can be imported and used standalone for testing or embedding.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable

from .ngrams import NgramStore, WordStat, merge, score
from .storage import USER_KEY, Storage, load_baseline

MAX_PREDICTIONS = 6
DEFAULT_WORDS: tuple[str, ...] = ("YES", "NO", "HELP", "THE", "YOU", "I")

# Tier weights: each tier dominates every tier below it.
TRIGRAM_WEIGHT = 1_000_000
BIGRAM_WEIGHT = 500_000
COMPLETION_WEIGHT = 100_000
COMMON_WEIGHT = 10_000
COMMON_TOP_N = 20
MIN_WORD_LENGTH = 2


def split_buffer(buffer: str) -> tuple[list[str], str, bool]:
    """
    Split ``buffer`` into ``(context_words, current_word, trailing_space)``.

    With a trailing space every word is context and there is no partial word.
    """
    trailing = buffer[-1:].isspace()
    words = buffer.upper().split()
    if trailing or not words:
        return words, "", trailing
    return words[:-1], words[-1], trailing


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PredictionEngine:
    """
    Word predictor over a read-only baseline corpus plus a learned user corpus.

    Usage::

        engine = PredictionEngine(config, Storage(data_dir(config)))
        engine.load_baseline()
        engine.get_predictions("I AM ")   # ['HAPPY', 'GOING', ...]
        engine.record_ngram("I AM", "HAPPY")
    """

    def __init__(
        self,
        config: dict,
        storage: Storage,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.storage = storage
        self.clock = clock

        self.baseline = NgramStore()
        self.user = self._load_user_store()
        self.merged = merge(self.baseline, self.user)

    # ── Loading ───────────────────────────────────────────────────────────────

    def _load_user_store(self) -> NgramStore:
        store = NgramStore.from_dict(self.storage.get(USER_KEY))
        if not store.is_empty():
            print(f"[Predict] Loaded {len(store.unigrams):,} personal words")
        return store

    def fetch_baseline(self) -> NgramStore:
        """Read the baseline corpus (cached or fresh). Touches no engine state."""
        return load_baseline(
            str(self.config.get("baseline_source", "")),
            self.storage,
            float(self.config.get("baseline_max_age_hours", 24)),
        )

    def use_baseline(self, store: NgramStore) -> None:
        self.baseline = store
        self._remerge()

    def load_baseline(self) -> None:
        self.use_baseline(self.fetch_baseline())

    def _save_user_store(self) -> None:
        self.user.evict_stale(
            self._now(),
            int(self.config.get("user_max_age_days", 90)),
            int(self.config.get("user_min_count", 3)),
        )
        self.storage.set(USER_KEY, self.user.to_dict())

    def _remerge(self) -> None:
        self.merged = merge(self.baseline, self.user)

    def _now(self) -> datetime:
        # Millisecond precision, the same as what is written to disk.
        now = self.clock()
        return now.replace(microsecond=now.microsecond // 1000 * 1000)

    # ── Learning ──────────────────────────────────────────────────────────────

    def _bump_word(self, word: str, now: datetime) -> None:
        self.user.bump(self.user.unigrams, word, now)

    def _bump_ngrams(self, context: list[str], word: str, now: datetime) -> None:
        if context:
            self.user.bump(self.user.bigrams, f"{context[-1]} {word}", now)
        if len(context) >= 2:
            self.user.bump(self.user.trigrams, f"{context[-2]} {context[-1]} {word}", now)

    def record_word(self, word: str) -> None:
        """Count one use of ``word`` in the personal corpus."""
        word = word.strip().upper()
        if not word or " " in word:
            return
        self._bump_word(word, self._now())
        self._save_user_store()
        self._remerge()

    def record_ngram(self, context: str, next_word: str) -> None:
        """Count ``next_word`` following the last one or two words of ``context``."""
        words = context.upper().split()
        next_word = next_word.strip().upper()
        if not words or not next_word or " " in next_word:
            return
        self._bump_ngrams(words, next_word, self._now())
        self._save_user_store()
        self._remerge()

    def record_phrase(self, text: str) -> None:
        """Learn every word of ``text`` and every bigram/trigram inside it."""
        words = text.upper().split()
        if not words:
            return
        now = self._now()
        for i, word in enumerate(words):
            self._bump_word(word, now)
            self._bump_ngrams(words[max(0, i - 2):i], word, now)
        self._save_user_store()
        self._remerge()
        print(f"[Predict] Reinforced phrase: {' '.join(words)}")

    # ── Backup / restore ──────────────────────────────────────────────────────

    def export_user_data(self) -> str:
        return json.dumps(self.user.to_dict(), indent=2, ensure_ascii=False)

    def import_user_data(self, text: str) -> bool:
        """Replace the personal corpus with an export. Malformed input changes nothing."""
        try:
            raw = json.loads(text)
        except ValueError as e:
            print(f"[Predict] Error importing user data: {e}")
            return False
        if not isinstance(raw, dict):
            print("[Predict] Error importing user data: expected a JSON object")
            return False
        self.user = NgramStore.from_dict(raw)
        self._save_user_store()
        self._remerge()
        print("[Predict] User data imported")
        return True

    def clear_user_data(self) -> None:
        self.user = NgramStore()
        self.storage.remove(USER_KEY)
        self._remerge()
        print("[Predict] User data cleared")

    # ── Prediction ────────────────────────────────────────────────────────────

    def _ngram_candidates(self, context: list[str], current: str, now: datetime) -> dict[str, float]:
        found: dict[str, float] = {}

        def scan(table: dict[str, WordStat], prefix: str, weight: int) -> None:
            for key, stat in table.items():
                if not key.startswith(prefix):
                    continue
                nxt = key.rsplit(" ", 1)[-1]
                if (not current or nxt.startswith(current)) and len(nxt) >= MIN_WORD_LENGTH:
                    found[nxt] = found.get(nxt, 0.0) + score(stat, now) * weight

        if len(context) >= 2:
            scan(self.merged.trigrams, f"{context[-2]} {context[-1]} ", TRIGRAM_WEIGHT)
        scan(self.merged.bigrams, f"{context[-1]} ", BIGRAM_WEIGHT)
        return found

    def _completions(self, current: str, now: datetime) -> dict[str, float]:
        return {
            word: score(stat, now) * COMPLETION_WEIGHT
            for word, stat in self.merged.unigrams.items()
            if word.startswith(current) and word != current and len(word) >= MIN_WORD_LENGTH
        }

    def _common_words(self, now: datetime) -> dict[str, float]:
        ranked = sorted(
            (
                (word, score(stat, now))
                for word, stat in self.merged.unigrams.items()
                if len(word) >= MIN_WORD_LENGTH
            ),
            key=lambda item: -item[1],
        )
        return {word: s * COMMON_WEIGHT for word, s in ranked[:COMMON_TOP_N]}

    def get_predictions(self, buffer: str) -> list[str]:
        """Return exactly six upper-case candidates for ``buffer``; blanks pad the tail."""
        context, current, trailing = split_buffer(buffer)
        if not context and not current:
            return list(DEFAULT_WORDS[:MAX_PREDICTIONS])

        now = self.clock()
        tiers: list[dict[str, float]] = []
        if context:
            tiers.append(self._ngram_candidates(context, current, now))
        if current:
            tiers.append(self._completions(current, now))
        if trailing and not current:
            tiers.append(self._common_words(now))

        out: list[str] = []
        for tier in tiers:
            for word in sorted(tier, key=lambda w: -tier[w]):
                if len(out) >= MAX_PREDICTIONS:
                    break
                if word not in out:
                    out.append(word)

        for word in DEFAULT_WORDS:
            if len(out) >= MAX_PREDICTIONS:
                break
            if word not in out and (not current or word.startswith(current)):
                out.append(word)

        out.extend([""] * (MAX_PREDICTIONS - len(out)))
        return out
