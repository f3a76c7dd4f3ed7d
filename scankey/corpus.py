"""
scankey.corpus
==============
Build a baseline n-gram dataset from plain text.
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import datetime
from typing import Iterable

from .ngrams import NgramStore, WordStat

_TOKEN = re.compile(r"[A-Z0-9']+")


def tokenize(line: str) -> list[str]:
    """Upper-cased words of ``line``; punctuation splits words, apostrophes stay."""
    return [t.strip("'") for t in _TOKEN.findall(line.upper()) if t.strip("'")]


def count_ngrams(lines: Iterable[str]) -> tuple[Counter, Counter, Counter]:
    """Count unigrams, bigrams and trigrams. N-grams never span a line break."""
    words: Counter = Counter()
    bigrams: Counter = Counter()
    trigrams: Counter = Counter()
    for line in lines:
        if line.lstrip().startswith("#"):
            continue
        tokens = tokenize(line)
        words.update(tokens)
        bigrams.update(" ".join(p) for p in zip(tokens, tokens[1:]))
        trigrams.update(" ".join(t) for t in zip(tokens, tokens[1:], tokens[2:]))
    return words, bigrams, trigrams


def build_store(
    lines: Iterable[str],
    min_count: int = 1,
    stamp: datetime | None = None,
) -> NgramStore:
    """Count ``lines`` into a store, dropping entries seen fewer than ``min_count`` times."""
    store = NgramStore()
    for table, counts in zip(store.tables(), count_ngrams(lines)):
        for key, count in counts.most_common():
            if count < min_count:
                break
            table[key] = WordStat(count=count, last_used=stamp)
    return store


def add_counts(target: NgramStore, extra: NgramStore) -> NgramStore:
    """Add every count in ``extra`` onto ``target`` (in place) and return it."""
    for table, new in zip(target.tables(), extra.tables()):
        for key, stat in new.items():
            if key in table:
                table[key].count += stat.count
            else:
                table[key] = stat
    return target
