"""
scankey.cli
===========
Command-line entry point.
Registered as the ``scankey`` console script in pyproject.toml.

Usage:
    scankey                          # use config.json in cwd or package default
    scankey --config /my/path.json   # explicit config file
    scankey --speed slow             # override scan speed on the fly
    scankey --predict "I AM "        # print the six candidates and exit
    scankey --export backup.json     # write learned words and exit
    scankey --import backup.json     # restore learned words and exit
    scankey --clear-user-data        # forget learned words and exit
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import SPEED_NAMES, data_dir


def _engine(config: dict, with_baseline: bool = False):
    from .engine import PredictionEngine
    from .storage import Storage

    engine = PredictionEngine(config, Storage(data_dir(config)))
    if with_baseline:
        engine.load_baseline()
    return engine


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="scankey",
        description="Two-switch scanning keyboard with adaptive word prediction.",
    )
    parser.add_argument(
        "--config", "-c",
        metavar="PATH",
        help="Path to a custom config.json (overrides default resolution order).",
    )
    parser.add_argument(
        "--speed", "-s",
        choices=SPEED_NAMES,
        help="Scan speed preset (overrides config and saved settings).",
    )
    parser.add_argument(
        "--baseline", "-b",
        metavar="SOURCE",
        help="URL or file path of the baseline n-gram dataset.",
    )
    parser.add_argument(
        "--predict",
        metavar="TEXT",
        help="Print predictions for TEXT and exit.",
    )
    parser.add_argument("--export", metavar="PATH", help="Export learned words to PATH and exit.")
    parser.add_argument("--import", dest="import_path", metavar="PATH",
                        help="Import learned words from PATH and exit.")
    parser.add_argument("--clear-user-data", action="store_true",
                        help="Forget all learned words and exit.")
    args = parser.parse_args(argv)

    from .config import load_config

    config = load_config(args.config)
    if args.baseline:
        config["baseline_source"] = args.baseline

    if args.predict is not None:
        engine = _engine(config, with_baseline=True)
        for word in engine.get_predictions(args.predict):
            print(word or "-")
        sys.exit(0)

    if args.export:
        Path(args.export).write_text(_engine(config).export_user_data(), encoding="utf-8")
        print(f"Exported learned words to {args.export}")
        sys.exit(0)

    if args.import_path:
        try:
            text = Path(args.import_path).read_text(encoding="utf-8")
        except OSError as e:
            print(f"ERROR: could not read {args.import_path}: {e}")
            sys.exit(1)
        sys.exit(0 if _engine(config).import_user_data(text) else 1)

    if args.clear_user_data:
        _engine(config).clear_user_data()
        sys.exit(0)

    # Import here so the non-interactive commands work without a display
    # or pynput installed.
    from .app import ScanKeyApp

    app = ScanKeyApp(config)
    if args.speed:
        app.controller.set_speed(args.speed)

    keys = config.get("keys", {})
    print("=" * 54)
    print("  scankey — active")
    print("=" * 54)
    print(f"  Scan speed : {app.controller.profile.name}")
    print(f"  Data dir   : {config.get('data_dir')}")
    print("-" * 54)
    print(f"  {keys.get('primary', 'space'):<6}: tap = next, hold = scan backward")
    print(f"  {keys.get('secondary', 'enter'):<6}: tap = select, hold 3s = jump / back")
    print("=" * 54)
    print("  Press Ctrl+C to quit\n")

    app.run()


if __name__ == "__main__":
    main()
