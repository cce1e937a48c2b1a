"""Tests for wall-clock and week helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from slotwise.clock import (
    end_of_month,
    end_of_week,
    format_minutes,
    js_weekday,
    parse_hhmm,
    start_of_week,
    validate_hhmm,
)


class TestTimeLabels:
    """HH:MM parsing and formatting."""

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "0900", "", "12:5"])
    def test_invalid_labels_rejected(self, value) -> None:
        with pytest.raises(ValueError):
            validate_hhmm(value)

    def test_parse_and_format(self) -> None:
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("16:30") == 990
        assert format_minutes(990) == "16:30"
        assert format_minutes(parse_hhmm("23:59")) == "23:59"


class TestWeeks:
    """Monday-start week arithmetic."""

    def test_js_weekday(self) -> None:
        """Sunday is 0 and Saturday is 6."""
        assert js_weekday(dt.date(2025, 1, 5)) == 0
        assert js_weekday(dt.date(2025, 1, 6)) == 1
        assert js_weekday(dt.date(2025, 1, 11)) == 6

    def test_sunday_belongs_to_previous_monday(self) -> None:
        assert start_of_week(dt.date(2025, 1, 12)) == dt.date(2025, 1, 6)
        assert end_of_week(dt.date(2025, 1, 6)) == dt.date(2025, 1, 12)

    def test_end_of_month_leap_year(self) -> None:
        assert end_of_month(dt.date(2024, 2, 10)) == dt.date(2024, 2, 29)
        assert end_of_month(dt.date(2025, 12, 1)) == dt.date(2025, 12, 31)
