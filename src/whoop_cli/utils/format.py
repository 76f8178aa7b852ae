"""Human-readable output formatting."""

from datetime import datetime

from whoop_cli.models.whoop import CombinedOutput, WhoopRecovery, WhoopSleep
from whoop_cli.schemas.wake import WakeCheckResult
from whoop_cli.services.wake import AWAKE_THRESHOLD
from whoop_cli.utils.dates import format_duration
from whoop_cli.utils.numbers import fmt_number, round_half_up

KJ_PER_KCAL = 4.184


def get_recovery_zone(score: float) -> tuple[str, str]:
    """Recovery zone name and marker for a recovery score."""
    if score >= 67:
        return "Green", "🟢"
    if score >= 34:
        return "Yellow", "🟡"
    return "Red", "🔴"


def _format_recovery(recovery: list[WhoopRecovery]) -> list[str]:
    if not recovery:
        return ["🔋 Recovery: No data"]

    score = recovery[0].score
    if score is None:
        return ["🔋 Recovery: Pending"]

    zone, emoji = get_recovery_zone(score.recovery_score)
    lines = [
        f"🔋 Recovery: {fmt_number(score.recovery_score)}% {emoji} ({zone})",
        f"💓 HRV: {int(round_half_up(score.hrv_rmssd_milli))}ms"
        f" | RHR: {fmt_number(score.resting_heart_rate)}bpm",
    ]
    if score.spo2_percentage:
        lines.append(f"🫁 SpO2: {fmt_number(score.spo2_percentage)}%")
    if score.skin_temp_celsius:
        lines.append(f"🌡️  Skin Temp: {score.skin_temp_celsius:.1f}°C")
    return lines


def _format_sleep(sleep: list[WhoopSleep]) -> list[str]:
    main_sleep = [s for s in sleep if not s.nap]
    naps = [s for s in sleep if s.nap]

    if not main_sleep:
        return ["😴 Sleep: No data"]

    score = main_sleep[0].score
    if score is None or score.stage_summary is None:
        return ["😴 Sleep: Pending"]

    stages = score.stage_summary
    light = stages.total_light_sleep_time_milli or 0
    deep = stages.total_slow_wave_sleep_time_milli or 0
    rem = stages.total_rem_sleep_time_milli or 0
    efficiency = score.sleep_efficiency_percentage or 0
    performance = score.sleep_performance_percentage or 0

    lines = [
        f"😴 Sleep: {format_duration(light + deep + rem)}"
        f" ({int(round_half_up(efficiency))}% efficiency)",
        f"   Performance: {int(round_half_up(performance))}%",
        f"   💤 Light: {format_duration(light)}",
        f"   🌊 Deep: {format_duration(deep)}",
        f"   🧠 REM: {format_duration(rem)}",
        f"   👀 Awake: {format_duration(stages.total_awake_time_milli or 0)}",
    ]
    if naps:
        lines.append(f"   💤 Naps: {len(naps)}")
    return lines


def _format_workouts(data: CombinedOutput) -> list[str]:
    workouts = data.workout or []
    if not workouts:
        return ["🏃 Workouts: None"]

    lines = [f"🏃 Workouts: {len(workouts)}"]
    for workout in workouts:
        if workout.score is None:
            continue
        duration_ms = (
            datetime.fromisoformat(workout.end) - datetime.fromisoformat(workout.start)
        ).total_seconds() * 1000
        calories = int(round_half_up(workout.score.kilojoule / KJ_PER_KCAL))
        lines.append(
            f"   🔥 Strain: {workout.score.strain:.1f}"
            f" | {format_duration(duration_ms)} | {calories} cal"
        )
    return lines


def _format_cycle(data: CombinedOutput) -> list[str]:
    cycles = data.cycle or []
    if not cycles or cycles[0].score is None:
        return []
    return [f"🔥 Daily Strain: {cycles[0].score.strain:.1f}"]


def format_pretty(data: CombinedOutput) -> str:
    """Format combined output as human-readable text."""
    lines = [f"💪 WHOOP Data for {data.date}", "━" * 40]

    if data.recovery is not None:
        lines.extend(_format_recovery(data.recovery))
    if data.sleep is not None:
        lines.extend(_format_sleep(data.sleep))
    if data.workout is not None:
        lines.extend(_format_workouts(data))
    if data.cycle is not None:
        lines.extend(_format_cycle(data))

    return "\n".join(lines)


def format_summary(data: CombinedOutput) -> str:
    """Format a one-line health summary."""
    parts: list[str] = []

    recovery = data.recovery[0].score if data.recovery else None
    if recovery is not None:
        parts.append(f"Recovery: {fmt_number(recovery.recovery_score)}%")
        parts.append(f"HRV: {int(round_half_up(recovery.hrv_rmssd_milli))}ms")

    main_sleep = next((s for s in data.sleep or [] if not s.nap), None)
    if main_sleep is not None and main_sleep.score is not None:
        performance = int(round_half_up(main_sleep.score.sleep_performance_percentage or 0))
        parts.append(f"Sleep: {performance}%")

    cycle = data.cycle[0].score if data.cycle else None
    if cycle is not None:
        parts.append(f"Strain: {cycle.strain:.1f}")

    if not parts:
        return "No data available"
    return " | ".join(parts)


def format_wake_result(result: WakeCheckResult) -> str:
    """Format a wake check as a multi-line report."""
    status = "✅ AWAKE" if result.is_awake else "❌ NOT AWAKE (mid-sleep wake detected)"
    sleep = result.sleep
    thresholds = result.thresholds

    lines = [
        "",
        status,
        f"Score: {result.score}/{result.max_score} (threshold: {AWAKE_THRESHOLD})",
        f"Confidence: {result.confidence.value} ({result.stats.sample_size} days of history)",
        "",
        "Current Sleep:",
        f"  End time: {sleep.end_time}",
        f"  Duration: {fmt_number(sleep.duration_hours)}h",
        f"  Cycles: {sleep.cycles}",
        f"  Performance: {fmt_number(sleep.performance)}%",
        "",
        "Adaptive Thresholds (from your history):",
        f"  End hour: >= {thresholds.end_hour_min} UTC",
        f"  Duration: >= {fmt_number(thresholds.duration_min)}h",
        f"  Cycles: >= {thresholds.cycles_min}",
        f"  Performance: >= {thresholds.performance_min}%",
        "",
        "Checks:",
    ]
    for check in result.checks:
        icon = "✓" if check.passed else "✗"
        lines.append(f"  {icon} {check.name}: {check.detail}")

    return "\n".join(lines) + "\n"
