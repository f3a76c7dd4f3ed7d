"""
scankey
=======
Two-switch scanning keyboard with adaptive word prediction.

Public API
----------
    from scankey import PredictionEngine, Storage, load_config, data_dir

    config = load_config()
    engine = PredictionEngine(config, Storage(data_dir(config)))
    engine.load_baseline()
    print(engine.get_predictions("I AM "))   # ['HAPPY', 'GOING', ...]
    engine.record_ngram("I AM", "HAPPY")
"""

from .config import data_dir, load_config, speed_profile
from .engine import PredictionEngine
from .scanner import Mode, ScanController
from .storage import Storage

__all__ = [
    "PredictionEngine",
    "ScanController",
    "Mode",
    "Storage",
    "load_config",
    "data_dir",
    "speed_profile",
]
__version__ = "1.0.0"
