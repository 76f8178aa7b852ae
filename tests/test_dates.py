"""Tests for date and number helpers."""

import time
from collections.abc import Iterator
from datetime import date, datetime

import pytest

from whoop_cli.core.errors import InvalidDateError
from whoop_cli.utils.dates import (
    format_date,
    format_duration,
    get_date_range,
    get_whoop_day,
    now_iso,
    parse_date_or_default,
    validate_iso_date,
)
from whoop_cli.utils.numbers import fmt_number, round_half_up


@pytest.fixture
def utc_local_time(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run the test with the local timezone set to UTC."""
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestWhoopDay:
    """Tests for the 4am WHOOP day boundary."""

    def test_before_cutoff_is_previous_day(self):
        """Test 3:59am still belongs to yesterday."""
        assert get_whoop_day(datetime(2026, 1, 12, 3, 59)) == "2026-01-11"

    def test_at_cutoff_is_today(self):
        """Test 4:00am starts the new day."""
        assert get_whoop_day(datetime(2026, 1, 12, 4, 0)) == "2026-01-12"

    def test_crosses_month_boundary(self):
        """Test early hours on the 1st fall back to the previous month."""
        assert get_whoop_day(datetime(2026, 3, 1, 1, 0)) == "2026-02-28"

    def test_default_now(self):
        """Test the default uses the current time and returns an ISO date."""
        assert validate_iso_date(get_whoop_day())

    def test_date_range_spans_whoop_day(self, utc_local_time: None):
        """Test the range runs 4am to 4am in UTC with millisecond precision."""
        start, end = get_date_range("2026-01-12")

        assert start == "2026-01-12T04:00:00.000Z"
        assert end == "2026-01-13T04:00:00.000Z"


class TestDateValidation:
    """Tests for ISO date validation."""

    @pytest.mark.parametrize("value", ["2026-01-12", "2024-02-29"])
    def test_valid_dates(self, value: str):
        assert validate_iso_date(value)

    @pytest.mark.parametrize(
        "value", ["2026-1-12", "2026-02-30", "2025-02-29", "12-01-2026", "today", ""]
    )
    def test_invalid_dates(self, value: str):
        assert not validate_iso_date(value)

    def test_parse_defaults_to_whoop_day(self):
        """Test an omitted date resolves to the current WHOOP day."""
        assert parse_date_or_default(None) == get_whoop_day()

    def test_parse_rejects_bad_date(self):
        """Test an invalid date raises InvalidDateError."""
        with pytest.raises(InvalidDateError, match="YYYY-MM-DD"):
            parse_date_or_default("01/12/2026")


class TestFormatting:
    """Tests for small formatting helpers."""

    def test_format_date(self):
        assert format_date(date(2026, 1, 5)) == "2026-01-05"

    @pytest.mark.parametrize(
        ("ms", "expected"),
        [(27_000_000, "7h 30m"), (2_700_000, "45m"), (3_600_000, "1h 0m"), (0, "0m")],
    )
    def test_format_duration(self, ms: int, expected: str):
        assert format_duration(ms) == expected

    def test_now_iso_is_utc(self):
        assert now_iso().endswith("Z")

    @pytest.mark.parametrize(
        ("value", "digits", "expected"),
        [(2.5, 0, 3), (61.5, 0, 62), (82.4, 0, 82), (0.25, 1, 0.3), (12.44, 1, 12.4)],
    )
    def test_round_half_up(self, value: float, digits: int, expected: float):
        """Test halves round away from zero for positive numbers."""
        assert round_half_up(value, digits) == expected

    @pytest.mark.parametrize(("value", "expected"), [(7.0, "7"), (4.9, "4.9"), (82, "82")])
    def test_fmt_number(self, value: float, expected: str):
        assert fmt_number(value) == expected
