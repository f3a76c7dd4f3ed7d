#!/usr/bin/env python3
"""
build_baseline.py
=================
Helper utility: turn a plain-text corpus into the baseline n-gram JSON
that scankey loads at startup (``frequent_words`` / ``bigrams`` /
``trigrams`` with counts).

Usage:
    python build_baseline.py <corpus.txt> [dest.json] [--min-count N] [--append]

Examples:
    # Replace the packaged baseline
    python build_baseline.py phrases.txt

    # Merge extra counts into an existing dataset
    python build_baseline.py more_phrases.txt scankey/baseline_ngrams.json --append
"""

import argparse
import json
import sys
from pathlib import Path

from scankey.corpus import add_counts, build_store
from scankey.ngrams import NgramStore

DEFAULT_DEST = Path(__file__).parent / "scankey" / "baseline_ngrams.json"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build a scankey baseline n-gram dataset from a text corpus."
    )
    parser.add_argument("source", help="Path to a UTF-8 text file, one phrase or sentence per line")
    parser.add_argument("dest", nargs="?", default=str(DEFAULT_DEST), help="Output JSON path")
    parser.add_argument(
        "--min-count", type=int, default=1,
        help="Drop entries seen fewer than this many times.",
    )
    parser.add_argument(
        "--append", action="store_true",
        help="Add counts to an existing dataset instead of replacing it.",
    )
    args = parser.parse_args()

    source_path = Path(args.source).resolve()
    if not source_path.exists():
        print(f"ERROR: Source file not found: {source_path}")
        sys.exit(1)

    print(f"Source : {source_path}")
    with open(source_path, "r", encoding="utf-8") as f:
        store = build_store(f, min_count=args.min_count)
    print(f"Counted : {len(store.unigrams):,} words, {len(store.bigrams):,} bigrams, "
          f"{len(store.trigrams):,} trigrams")

    dest_path = Path(args.dest)
    if args.append and dest_path.exists():
        with open(dest_path, "r", encoding="utf-8") as f:
            existing = NgramStore.from_dict(json.load(f))
        store = add_counts(existing, store)
        print(f"Merged into existing {dest_path.name}")

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    with open(dest_path, "w", encoding="utf-8") as f:
        json.dump(store.to_dict(), f, indent=1, ensure_ascii=False)

    print(f"Written : {dest_path}")
    print(f"Total   : {len(store.unigrams):,} words")


if __name__ == "__main__":
    main()
