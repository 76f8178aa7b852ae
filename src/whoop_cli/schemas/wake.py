"""Pydantic schemas for the wake detection result."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either form on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Confidence(str, Enum):
    """How much history backs the adaptive thresholds.

    Informational only: it never changes the awake decision.
    """

    HIGH = "high"  # A full 7-day window
    MEDIUM = "medium"  # 3-6 days
    LOW = "low"  # Fewer than 3 days (or defaults)


class RollingStats(CamelModel):
    """Summary of the recent sleep window driving the thresholds."""

    avg_end_hour: float
    min_end_hour: int
    avg_duration: float
    min_duration: float
    avg_cycles: float
    min_cycles: int
    avg_performance: int
    min_performance: int | float
    sample_size: int = Field(description="Number of history records used (0-7)")


class WakeThresholds(CamelModel):
    """Adaptive pass marks derived from RollingStats."""

    end_hour_min: int
    duration_min: float
    cycles_min: int
    performance_min: int


class SleepSnapshot(CamelModel):
    """The candidate sleep session as it was scored."""

    end_time: str
    end_hour_utc: int
    duration_hours: float
    cycles: int
    performance: int | float


class WakeCheck(BaseModel):
    """One item of the scoring checklist."""

    name: str
    passed: bool
    points: int
    detail: str


class WakeCheckResult(CamelModel):
    """Full, auditable outcome of one wake evaluation."""

    is_awake: bool
    score: int
    max_score: int
    confidence: Confidence
    sleep: SleepSnapshot
    thresholds: WakeThresholds
    checks: list[WakeCheck]
    stats: RollingStats

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class SeedResult(BaseModel):
    """Outcome of bulk-seeding the history."""

    seeded: list[str] = Field(default_factory=list, description="Dates upserted")
    skipped: list[str] = Field(
        default_factory=list, description="Sessions that could not be parsed"
    )
    records: int = Field(default=0, description="History size after seeding")
