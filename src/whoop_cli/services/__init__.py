"""Application services."""

from whoop_cli.services.history import SleepHistoryStore
from whoop_cli.services.wake import WakeDetector

__all__ = [
    "SleepHistoryStore",
    "WakeDetector",
]
