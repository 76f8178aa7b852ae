"""Pydantic schemas for CLI output."""

from whoop_cli.schemas.wake import (
    Confidence,
    RollingStats,
    SeedResult,
    SleepSnapshot,
    WakeCheck,
    WakeCheckResult,
    WakeThresholds,
)

__all__ = [
    "Confidence",
    "RollingStats",
    "SeedResult",
    "SleepSnapshot",
    "WakeCheck",
    "WakeCheckResult",
    "WakeThresholds",
]
