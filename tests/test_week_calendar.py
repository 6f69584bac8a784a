"""Tests for the week calendar and date label helpers."""

from datetime import date

import pytest

from dutyroster.domain.week_calendar import (
    format_date_label,
    format_schedule_title,
    parse_date_label,
    week_dates,
)


class TestWeekDates:
    """Tests for week_dates."""

    def test_saturdays_in_january_2026(self):
        """Every Saturday of January 2026 is listed."""
        dates = week_dates(1, 2026, 1, 2026)
        assert [d.day for d in dates] == [3, 10, 17, 24, 31]
        assert all(d.weekday() == 5 for d in dates)

    def test_range_is_inclusive_of_end_month(self):
        """The last day of the end month is included."""
        dates = week_dates(1, 2026, 3, 2026)
        assert dates[0] == date(2026, 1, 3)
        assert dates[-1] == date(2026, 3, 28)
        assert len(dates) == 13

    def test_dates_are_one_week_apart(self):
        dates = week_dates(1, 2026, 6, 2026)
        gaps = {(b - a).days for a, b in zip(dates, dates[1:])}
        assert gaps == {7}

    def test_other_weekday(self):
        """Mondays (weekday 0) in February 2026."""
        dates = week_dates(2, 2026, 2, 2026, weekday=0)
        assert [d.day for d in dates] == [2, 9, 16, 23]

    def test_first_day_of_month_is_included(self):
        """August 1st 2026 is a Saturday and must be the first date."""
        dates = week_dates(8, 2026, 8, 2026)
        assert dates[0] == date(2026, 8, 1)

    def test_range_across_year_boundary(self):
        dates = week_dates(12, 2025, 1, 2026)
        assert dates[0].year == 2025
        assert dates[-1] == date(2026, 1, 31)
        assert dates == sorted(dates)

    def test_reversed_range_is_empty(self):
        """A start after the end yields no weeks."""
        assert week_dates(3, 2026, 1, 2026) == []
        assert week_dates(1, 2027, 12, 2026) == []

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month_raises(self, month):
        with pytest.raises(ValueError):
            week_dates(month, 2026, 3, 2026)
        with pytest.raises(ValueError):
            week_dates(1, 2026, month, 2026)

    @pytest.mark.parametrize("weekday", [-1, 7])
    def test_invalid_weekday_raises(self, weekday):
        with pytest.raises(ValueError):
            week_dates(1, 2026, 1, 2026, weekday=weekday)


class TestDateLabels:
    """Tests for formatting and parsing "<day> <month>" labels."""

    def test_format_date_label(self):
        assert format_date_label(date(2026, 1, 3)) == "3 janvier"
        assert format_date_label(date(2026, 2, 7)) == "7 février"
        assert format_date_label(date(2026, 12, 26)) == "26 décembre"

    def test_parse_formatted_label(self):
        """Labels produced by format_date_label parse back to the same date."""
        assert parse_date_label("7 février", 2026) == date(2026, 2, 7)
        assert parse_date_label("15 août", 2026) == date(2026, 8, 15)

    def test_parse_accepts_unaccented_and_capitalized(self):
        assert parse_date_label("7 fevrier", 2026) == date(2026, 2, 7)
        assert parse_date_label("15 Aout", 2026) == date(2026, 8, 15)
        assert parse_date_label("3 Janvier", 2026) == date(2026, 1, 3)

    def test_parse_uses_given_year(self):
        assert parse_date_label("3 janvier", 2027) == date(2027, 1, 3)

    @pytest.mark.parametrize("label", ["", "janvier", "3", "3 brumaire", "samedi"])
    def test_parse_malformed_returns_none(self, label):
        assert parse_date_label(label, 2026) is None

    def test_parse_impossible_day_returns_none(self):
        """February 30th does not exist."""
        assert parse_date_label("30 février", 2026) is None
        assert parse_date_label("29 février", 2026) is None
        assert parse_date_label("29 février", 2028) == date(2028, 2, 29)


class TestScheduleTitle:
    """Tests for format_schedule_title."""

    def test_same_year(self):
        assert format_schedule_title(1, 2026, 3, 2026) == "Janvier - Mars 2026"

    def test_single_month(self):
        assert format_schedule_title(8, 2026, 8, 2026) == "Août - Août 2026"

    def test_across_years_shows_both(self):
        assert format_schedule_title(11, 2025, 2, 2026) == "Novembre - Février 2025 - 2026"

    def test_invalid_month_raises(self):
        with pytest.raises(ValueError):
            format_schedule_title(0, 2026, 3, 2026)
