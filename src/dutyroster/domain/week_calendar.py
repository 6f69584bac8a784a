"""Week calendar and date label helpers.

Week dates are labelled the way members read them on the printed schedule,
as "<day> <month>" in French with no year (e.g. "7 février"). Because the
year is dropped, labels are only unambiguous within a single year; callers
that need the exact date should use WeekAssignment.week_date instead.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Optional

MONTH_NAMES_FR = [
    "Janvier", "Février", "Mars", "Avril", "Mai", "Juin",
    "Juillet", "Août", "Septembre", "Octobre", "Novembre", "Décembre",
]

# Lower-case month names, with and without accents, to month numbers.
MONTH_LOOKUP = {name.lower(): i + 1 for i, name in enumerate(MONTH_NAMES_FR)}
MONTH_LOOKUP.update({"fevrier": 2, "aout": 8, "decembre": 12})

_LABEL_PATTERN = re.compile(r"(\d+)\s+(\w+)")


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def week_dates(
    start_month: int,
    start_year: int,
    end_month: int,
    end_year: int,
    weekday: int = 5,
) -> list[date]:
    """List every date falling on a weekday within a range of months.

    The range runs from the first day of the start month to the last day
    of the end month, inclusive.

    Args:
        start_month: First month (1-12).
        start_year: Year of the first month.
        end_month: Last month (1-12).
        end_year: Year of the last month.
        weekday: Target weekday as in date.weekday() (Monday=0, Saturday=5).

    Returns:
        Chronological list of dates; empty if the range is reversed.

    Raises:
        ValueError: If a month or the weekday is out of range.
    """
    _check_month(start_month)
    _check_month(end_month)
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be between 0 and 6, got {weekday}")

    start = date(start_year, start_month, 1)
    last_day = calendar.monthrange(end_year, end_month)[1]
    end = date(end_year, end_month, last_day)

    current = start + timedelta(days=(weekday - start.weekday()) % 7)
    dates = []
    while current <= end:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def format_date_label(d: date) -> str:
    """Format a date as "<day> <month>", e.g. "3 janvier"."""
    return f"{d.day} {MONTH_NAMES_FR[d.month - 1].lower()}"


def parse_date_label(label: str, year: int) -> Optional[date]:
    """Parse a "<day> <month>" label against a given year.

    Returns:
        The date, or None if the label does not match the pattern, names an
        unknown month, or names a day that does not exist in that month.
    """
    match = _LABEL_PATTERN.search(label.lower())
    if not match:
        return None

    month = MONTH_LOOKUP.get(match.group(2))
    if month is None:
        return None

    try:
        return date(year, month, int(match.group(1)))
    except ValueError:
        return None


def format_schedule_title(
    start_month: int,
    start_year: int,
    end_month: int,
    end_year: int,
) -> str:
    """Build a schedule title such as "Janvier - Mars 2026".

    Ranges crossing a year boundary show both years:
    "Novembre - Février 2025 - 2026".
    """
    _check_month(start_month)
    _check_month(end_month)
    if start_year == end_year:
        years = f"{start_year}"
    else:
        years = f"{start_year} - {end_year}"
    return f"{MONTH_NAMES_FR[start_month - 1]} - {MONTH_NAMES_FR[end_month - 1]} {years}"
