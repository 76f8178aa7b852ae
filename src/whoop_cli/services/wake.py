"""Adaptive wake detection.

Decides whether the user is actually awake for the day or just had a
mid-sleep wake. Instead of fixed cut-offs, each sleep session is scored
against thresholds derived from the user's own recent sleep (a rolling
7-record window over a 14-record history).

Checklist (max 10 points, awake at >= 6):

    end_hour_minimum  3  ended no more than 2h before the earliest recent wake
    end_hour_typical  2  ended no earlier than the earliest recent wake
    duration          2  at least 70% of the average time in bed
    cycles            2  at least (fewest recent cycles - 1), never below 2
    performance       1  at least 75% of the average sleep performance

Only sessions classified as awake are folded back into the history, so
interrupted nights never drag the baseline down.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from statistics import mean
from typing import Any

import structlog
from pydantic import ValidationError

from whoop_cli.core.errors import InvalidSleepDataError
from whoop_cli.models.sleep_history import SleepRecord
from whoop_cli.models.whoop import WhoopSleep
from whoop_cli.schemas.wake import (
    Confidence,
    RollingStats,
    SeedResult,
    SleepSnapshot,
    WakeCheck,
    WakeCheckResult,
    WakeThresholds,
)
from whoop_cli.services.history import SleepHistoryStore
from whoop_cli.utils.numbers import fmt_number, round_half_up

logger = structlog.get_logger()

ROLLING_WINDOW = 7  # Records used for rolling stats

# Tunable scoring constants (empirically chosen)
END_HOUR_SLACK = 2
DURATION_FACTOR = 0.7
PERFORMANCE_FACTOR = 0.75
MIN_CYCLES_FLOOR = 2

MAX_SCORE = 10
AWAKE_THRESHOLD = 6

# Confidence by number of history records behind the stats
HIGH_CONFIDENCE_SAMPLES = 7
MEDIUM_CONFIDENCE_SAMPLES = 3

# Cold-start stats, roughly a 6 AM Pacific wake
DEFAULT_STATS = RollingStats(
    avg_end_hour=14,
    min_end_hour=13,
    avg_duration=7,
    min_duration=5,
    avg_cycles=4,
    min_cycles=3,
    avg_performance=80,
    min_performance=70,
    sample_size=0,
)

MILLIS_PER_HOUR = 3_600_000


def parse_sleep_record(session: WhoopSleep | Mapping[str, Any]) -> SleepRecord:
    """Reduce a WHOOP sleep session to a SleepRecord.

    Args:
        session: Sleep session from the API (model or raw dict)

    Returns:
        SleepRecord keyed by the calendar date the session started

    Raises:
        InvalidSleepDataError: If the session has no start, end, score or
            stage summary
    """
    if session is None:
        raise InvalidSleepDataError("Invalid sleep data: no session")

    if not isinstance(session, WhoopSleep):
        try:
            session = WhoopSleep.model_validate(session)
        except ValidationError as e:
            raise InvalidSleepDataError(
                f"Invalid sleep data: {e.error_count()} bad field(s)"
            ) from e

    if not session.end:
        raise InvalidSleepDataError("Invalid sleep data: missing end time")
    if not session.start:
        raise InvalidSleepDataError("Invalid sleep data: missing start time")
    if session.score is None:
        raise InvalidSleepDataError("Invalid sleep data: missing score")
    stages = session.score.stage_summary
    if stages is None:
        raise InvalidSleepDataError("Invalid sleep data: missing stage summary")

    try:
        end_time = datetime.fromisoformat(session.end)
    except ValueError as e:
        raise InvalidSleepDataError(f"Invalid sleep data: bad end time {session.end!r}") from e
    if end_time.tzinfo is None:
        end_time = end_time.replace(tzinfo=UTC)

    return SleepRecord(
        date=session.start.split("T")[0],
        end_utc_hour=end_time.astimezone(UTC).hour,
        duration_hours=(stages.total_in_bed_time_milli or 0) / MILLIS_PER_HOUR,
        cycles=stages.sleep_cycle_count or 0,
        performance=session.score.sleep_performance_percentage or 0,
        efficiency=session.score.sleep_efficiency_percentage or 0,
    )


def calculate_rolling_stats(history: Sequence[SleepRecord]) -> RollingStats:
    """Calculate rolling statistics over the most recent records.

    Args:
        history: Records sorted ascending by date, with the date being
            evaluated already excluded (the window is positional)

    Returns:
        Stats over the last ROLLING_WINDOW records, or DEFAULT_STATS when
        there is no history
    """
    recent = list(history)[-ROLLING_WINDOW:]

    if not recent:
        return DEFAULT_STATS.model_copy()

    end_hours = [r.end_utc_hour for r in recent]
    durations = [r.duration_hours for r in recent]
    cycles = [r.cycles for r in recent]
    performances = [r.performance for r in recent]

    return RollingStats(
        avg_end_hour=round_half_up(mean(end_hours), 1),
        min_end_hour=min(end_hours),
        avg_duration=round_half_up(mean(durations), 1),
        min_duration=round_half_up(min(durations), 1),
        avg_cycles=round_half_up(mean(cycles), 1),
        min_cycles=min(cycles),
        avg_performance=int(round_half_up(mean(performances))),
        min_performance=min(performances),
        sample_size=len(recent),
    )


def calculate_thresholds(stats: RollingStats) -> WakeThresholds:
    """Derive adaptive pass marks from rolling stats."""
    return WakeThresholds(
        end_hour_min=stats.min_end_hour - END_HOUR_SLACK,
        duration_min=round_half_up(stats.avg_duration * DURATION_FACTOR, 1),
        cycles_min=max(stats.min_cycles - 1, MIN_CYCLES_FLOOR),
        performance_min=int(round_half_up(stats.avg_performance * PERFORMANCE_FACTOR)),
    )


def _check(name: str, passed: bool, weight: int, pass_detail: str, fail_detail: str) -> WakeCheck:
    return WakeCheck(
        name=name,
        passed=passed,
        points=weight if passed else 0,
        detail=pass_detail if passed else fail_detail,
    )


def score_sleep(
    record: SleepRecord, stats: RollingStats, thresholds: WakeThresholds
) -> list[WakeCheck]:
    """Run the checklist for one sleep record, in fixed order."""
    hour = record.end_utc_hour
    duration = f"{record.duration_hours:.1f}h"
    performance = fmt_number(record.performance)

    return [
        _check(
            "end_hour_minimum",
            hour >= thresholds.end_hour_min,
            3,
            f"{hour} UTC >= {thresholds.end_hour_min} UTC (min - 2h)",
            f"{hour} UTC < {thresholds.end_hour_min} UTC (too early)",
        ),
        _check(
            "end_hour_typical",
            hour >= stats.min_end_hour,
            2,
            f"{hour} UTC >= {stats.min_end_hour} UTC (typical min)",
            f"{hour} UTC < {stats.min_end_hour} UTC (earlier than typical)",
        ),
        _check(
            "duration",
            record.duration_hours >= thresholds.duration_min,
            2,
            f"{duration} >= {fmt_number(thresholds.duration_min)}h (70% of avg)",
            f"{duration} < {fmt_number(thresholds.duration_min)}h (too short)",
        ),
        _check(
            "cycles",
            record.cycles >= thresholds.cycles_min,
            2,
            f"{record.cycles} cycles >= {thresholds.cycles_min} (min - 1)",
            f"{record.cycles} cycles < {thresholds.cycles_min} (incomplete sleep)",
        ),
        _check(
            "performance",
            record.performance >= thresholds.performance_min,
            1,
            f"{performance}% >= {thresholds.performance_min}% (75% of avg)",
            f"{performance}% < {thresholds.performance_min}% (below typical)",
        ),
    ]


def confidence_for(sample_size: int) -> Confidence:
    if sample_size >= HIGH_CONFIDENCE_SAMPLES:
        return Confidence.HIGH
    if sample_size >= MEDIUM_CONFIDENCE_SAMPLES:
        return Confidence.MEDIUM
    return Confidence.LOW


class WakeDetector:
    """Scores sleep sessions against the user's rolling sleep history.

    The history store is injected so callers (and tests) control where the
    history lives.
    """

    def __init__(self, store: SleepHistoryStore) -> None:
        """Initialize wake detector.

        Args:
            store: History store read for stats and updated on awake results
        """
        self.store = store
        self.logger = logger.bind(service="wake")

    def evaluate(
        self,
        session: WhoopSleep | Mapping[str, Any],
        history: Sequence[SleepRecord] | None = None,
    ) -> WakeCheckResult:
        """Decide whether a sleep session means the user is up for the day.

        Args:
            session: Candidate sleep session
            history: History to compute stats from (defaults to the store)

        Returns:
            Full result with thresholds, checklist and stats, whether or not
            the user is awake

        Raises:
            InvalidSleepDataError: If the session lacks end time or score
        """
        record = parse_sleep_record(session)
        end_time = session.end if isinstance(session, WhoopSleep) else session["end"]

        sleep_history = list(history) if history is not None else self.store.load()

        # Exclude the day being evaluated so it cannot vouch for itself
        prior = sorted(
            (h for h in sleep_history if h.date != record.date), key=lambda r: r.date
        )
        stats = calculate_rolling_stats(prior)
        thresholds = calculate_thresholds(stats)

        checks = score_sleep(record, stats, thresholds)
        score = sum(c.points for c in checks)
        is_awake = score >= AWAKE_THRESHOLD
        confidence = confidence_for(stats.sample_size)

        self.logger.info(
            "Wake check complete",
            date=record.date,
            score=score,
            is_awake=is_awake,
            confidence=confidence.value,
            sample_size=stats.sample_size,
        )

        if is_awake:
            self.store.upsert(record)

        return WakeCheckResult(
            is_awake=is_awake,
            score=score,
            max_score=MAX_SCORE,
            confidence=confidence,
            sleep=SleepSnapshot(
                end_time=end_time,
                end_hour_utc=record.end_utc_hour,
                duration_hours=round_half_up(record.duration_hours, 1),
                cycles=record.cycles,
                performance=record.performance,
            ),
            thresholds=thresholds,
            checks=checks,
            stats=stats,
        )

    def seed(self, sessions: Iterable[WhoopSleep | Mapping[str, Any]]) -> SeedResult:
        """Bootstrap history from past sessions without scoring them.

        Sessions that cannot be parsed are skipped and reported; they never
        abort the remaining seeding.
        """
        result = SeedResult()

        for session in sessions:
            try:
                record = parse_sleep_record(session)
            except InvalidSleepDataError as e:
                label = _session_label(session)
                self.logger.warning("Skipping unparsable sleep", session=label, error=e.message)
                result.skipped.append(label)
                continue

            self.store.upsert(record)
            result.seeded.append(record.date)

        result.records = len(self.store.load())
        self.logger.info(
            "History seeded",
            seeded=len(result.seeded),
            skipped=len(result.skipped),
            records=result.records,
        )
        return result


def _session_label(session: WhoopSleep | Mapping[str, Any] | None) -> str:
    """Best-effort identifier for a session that failed to parse."""
    if session is None:
        return "unknown"
    start = session.start if isinstance(session, WhoopSleep) else session.get("start")
    if isinstance(start, str) and start:
        return start.split("T")[0]
    return "unknown"
