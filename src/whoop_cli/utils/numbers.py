"""Numeric helpers."""

from math import floor


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3), unlike Python's round()."""
    factor = 10**digits
    return floor(value * factor + 0.5) / factor


def fmt_number(value: float) -> str:
    """Render a number without a trailing .0."""
    return f"{value:g}"
