"""Data models."""

from whoop_cli.models.sleep_history import SleepRecord
from whoop_cli.models.whoop import (
    AuthStatus,
    CombinedOutput,
    DataType,
    ScoreState,
    WhoopBody,
    WhoopCycle,
    WhoopProfile,
    WhoopRecovery,
    WhoopSleep,
    WhoopWorkout,
)

__all__ = [
    "AuthStatus",
    "CombinedOutput",
    "DataType",
    "ScoreState",
    "SleepRecord",
    "WhoopBody",
    "WhoopCycle",
    "WhoopProfile",
    "WhoopRecovery",
    "WhoopSleep",
    "WhoopWorkout",
]
