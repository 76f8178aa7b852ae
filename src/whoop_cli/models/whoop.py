"""WHOOP API v2 response models.

See https://developer.whoop.com/api. Models allow extra fields so that
anything WHOOP adds is passed through to JSON output untouched.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base for WHOOP payloads."""

    model_config = ConfigDict(extra="allow")


class ScoreState(str, Enum):
    """Scoring state of a sleep/recovery/workout/cycle."""

    SCORED = "SCORED"
    PENDING_SCORE = "PENDING_SCORE"
    UNSCORABLE = "UNSCORABLE"


class DataType(str, Enum):
    """Data types the CLI can fetch."""

    PROFILE = "profile"
    BODY = "body"
    SLEEP = "sleep"
    RECOVERY = "recovery"
    WORKOUT = "workout"
    CYCLE = "cycle"


# =============================================================================
# Profile & Body
# =============================================================================


class WhoopProfile(ApiModel):
    user_id: int
    email: str
    first_name: str
    last_name: str


class WhoopBody(ApiModel):
    height_meter: float
    weight_kilogram: float
    max_heart_rate: int


# =============================================================================
# Sleep
# =============================================================================


class SleepStages(ApiModel):
    total_in_bed_time_milli: int | None = None
    total_awake_time_milli: int | None = None
    total_no_data_time_milli: int | None = None
    total_light_sleep_time_milli: int | None = None
    total_slow_wave_sleep_time_milli: int | None = None
    total_rem_sleep_time_milli: int | None = None
    sleep_cycle_count: int | None = None
    disturbance_count: int | None = None


class SleepNeeded(ApiModel):
    baseline_milli: int | None = None
    need_from_sleep_debt_milli: int | None = None
    need_from_recent_strain_milli: int | None = None
    need_from_recent_nap_milli: int | None = None


class SleepScore(ApiModel):
    """Sleep score block.

    stage_summary is optional here because validation of what wake
    detection needs happens in the wake service, not at parse time.
    """

    stage_summary: SleepStages | None = None
    sleep_needed: SleepNeeded | None = None
    respiratory_rate: float | None = None
    sleep_performance_percentage: float | None = None
    sleep_consistency_percentage: float | None = None
    sleep_efficiency_percentage: float | None = None


class WhoopSleep(ApiModel):
    """A sleep session (or nap)."""

    id: int | str | None = None
    user_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    start: str | None = None
    end: str | None = None
    timezone_offset: str | None = None
    nap: bool = False
    score_state: ScoreState | None = None
    score: SleepScore | None = None


# =============================================================================
# Recovery
# =============================================================================


class RecoveryScore(ApiModel):
    user_calibrating: bool = False
    recovery_score: float
    resting_heart_rate: float
    hrv_rmssd_milli: float
    spo2_percentage: float | None = None
    skin_temp_celsius: float | None = None


class WhoopRecovery(ApiModel):
    cycle_id: int | None = None
    sleep_id: int | str | None = None
    user_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    score_state: ScoreState | None = None
    score: RecoveryScore | None = None


# =============================================================================
# Workout
# =============================================================================


class WorkoutZones(ApiModel):
    zone_zero_milli: int = 0
    zone_one_milli: int = 0
    zone_two_milli: int = 0
    zone_three_milli: int = 0
    zone_four_milli: int = 0
    zone_five_milli: int = 0


class WorkoutScore(ApiModel):
    strain: float
    average_heart_rate: float
    max_heart_rate: float
    kilojoule: float
    percent_recorded: float | None = None
    distance_meter: float | None = None
    altitude_gain_meter: float | None = None
    altitude_change_meter: float | None = None
    zone_duration: WorkoutZones | None = None


class WhoopWorkout(ApiModel):
    id: int | str | None = None
    user_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    start: str
    end: str
    timezone_offset: str | None = None
    sport_id: int | None = None
    score_state: ScoreState | None = None
    score: WorkoutScore | None = None


# =============================================================================
# Cycle
# =============================================================================


class CycleScore(ApiModel):
    strain: float
    kilojoule: float
    average_heart_rate: float
    max_heart_rate: float


class WhoopCycle(ApiModel):
    id: int | None = None
    user_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    start: str | None = None
    end: str | None = None
    timezone_offset: str | None = None
    score_state: ScoreState | None = None
    score: CycleScore | None = None


# =============================================================================
# Combined output
# =============================================================================


class CombinedOutput(BaseModel):
    """Everything fetched for one WHOOP day."""

    date: str
    fetched_at: str
    profile: WhoopProfile | None = None
    body: WhoopBody | None = None
    sleep: list[WhoopSleep] | None = None
    recovery: list[WhoopRecovery] | None = None
    workout: list[WhoopWorkout] | None = None
    cycle: list[WhoopCycle] | None = None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)


class AuthStatus(BaseModel):
    """Result of `whoop auth status`."""

    authenticated: bool
    expires_at: str | None = None
    scopes: list[str] = Field(default_factory=list)
