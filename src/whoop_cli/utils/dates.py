"""Date utilities for the WHOOP API.

WHOOP uses a "WHOOP day" that ends at 4am local time rather than midnight,
which matches sleep patterns better.
"""

import re
from datetime import UTC, date, datetime, timedelta

from whoop_cli.core.errors import InvalidDateError

WHOOP_DAY_HOUR_CUTOFF = 4  # 4am

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_date(value: date | datetime) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def get_whoop_day(now: datetime | None = None) -> str:
    """Get the current WHOOP day.

    Before 4am local time this is still yesterday.
    """
    now = now or datetime.now()
    if now.hour < WHOOP_DAY_HOUR_CUTOFF:
        return format_date(now - timedelta(days=1))
    return format_date(now)


def validate_iso_date(value: str) -> bool:
    """Check for a strict YYYY-MM-DD string naming a real calendar day."""
    if not _ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _to_utc_iso(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_date_range(value: str) -> tuple[str, str]:
    """Get UTC start/end timestamps for a WHOOP day.

    The day runs from 4am local on the given date to 4am local the next day.
    """
    day = date.fromisoformat(value)
    start = datetime(day.year, day.month, day.day, WHOOP_DAY_HOUR_CUTOFF).astimezone()
    end = (start.replace(tzinfo=None) + timedelta(days=1)).astimezone()
    return _to_utc_iso(start), _to_utc_iso(end)


def now_iso() -> str:
    """Current time as a UTC ISO timestamp."""
    return _to_utc_iso(datetime.now(UTC))


def format_duration(ms: float) -> str:
    """Format milliseconds as e.g. '7h 30m' or '45m'."""
    hours = int(ms // 3_600_000)
    minutes = int((ms % 3_600_000) // 60_000)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def parse_date_or_default(value: str | None = None) -> str:
    """Validate a date argument, defaulting to today's WHOOP day.

    Raises:
        InvalidDateError: If value is given but not YYYY-MM-DD
    """
    if not value:
        return get_whoop_day()
    if not validate_iso_date(value):
        raise InvalidDateError(f"Invalid date format: {value}. Use YYYY-MM-DD.")
    return value
