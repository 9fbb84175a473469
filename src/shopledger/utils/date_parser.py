"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = ("today", "this-week", "this-month", "this-year", "last-week", "last-month", "last-year")

_OFFSET_PATTERN = re.compile(r"^(in )?(\d+) (day|week|month)s?( ago)?$")


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports:
    - Keywords: "today", "yesterday", "tomorrow"
    - Offsets: "in 2 weeks", "3 days ago", "1 month"
    - Absolute dates: "2025-03-15", "15/03/2025" (day first), "March 15, 2025"

    Args:
        date_str: Date string
        today: Reference date for relative forms, defaults to date.today()

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    keywords = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in keywords:
        return keywords[text]

    match = _OFFSET_PATTERN.match(text)
    if match:
        amount = int(match.group(2))
        if match.group(4):
            amount = -amount
        unit = match.group(3)
        if unit == "day":
            return today + timedelta(days=amount)
        if unit == "week":
            return today + timedelta(weeks=amount)
        return today + relativedelta(months=amount)

    # ISO dates first so "2025-03-04" is never read day-first
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: One of PERIODS
        today: Reference date, defaults to date.today()

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)
    year_start = today.replace(month=1, day=1)

    if period == "today":
        return (today, today)
    if period == "this-week":
        return (week_start, today)
    if period == "this-month":
        return (month_start, today)
    if period == "this-year":
        return (year_start, today)
    if period == "last-week":
        start = week_start - timedelta(days=7)
        return (start, start + timedelta(days=6))
    if period == "last-month":
        return (month_start - relativedelta(months=1), month_start - timedelta(days=1))
    if period == "last-year":
        return (year_start - relativedelta(years=1), year_start - timedelta(days=1))

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
