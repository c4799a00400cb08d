"""Calendar arithmetic on timezone-less ISO dates (YYYY-MM-DD)."""
import calendar
import re
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from finance_tracker.config import RECURRING_HORIZON_MONTHS

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_iso_date(value) -> Optional[date]:
    """Parse a zero-padded ISO date string.

    Returns None for anything that is not a real calendar date in
    YYYY-MM-DD form (wrong type, wrong padding, 2026-02-30, ...).
    """
    if not isinstance(value, str):
        return None
    match = ISO_DATE_RE.match(value)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_iso_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def days_in_month(year: int, month: int) -> int:
    """Gregorian month length, leap years included."""
    return calendar.monthrange(year, month)[1]


def add_days(value: str, days: int) -> str:
    """Add n days to an ISO date. Unparseable input is returned unchanged."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return value
    return to_iso_date(parsed + timedelta(days=days))


def add_months(value: str, months: int) -> str:
    """Add n months to an ISO date, clamping the day to the month length.

    2026-01-31 + 1 month is 2026-02-28. Unparseable input is returned unchanged.
    """
    parsed = parse_iso_date(value)
    if parsed is None:
        return value
    return to_iso_date(parsed + relativedelta(months=months))


def compare_iso_date(a: str, b: str) -> int:
    """Three-way compare of two zero-padded ISO dates (-1, 0 or 1)."""
    if a == b:
        return 0
    return -1 if a < b else 1


def clamp_anchor_day(anchor_day) -> int:
    """Return anchor_day if it is an integer in [1, 31], otherwise 1."""
    if isinstance(anchor_day, bool):
        return 1
    if isinstance(anchor_day, float) and anchor_day.is_integer():
        anchor_day = int(anchor_day)
    if not isinstance(anchor_day, int):
        return 1
    if anchor_day < 1 or anchor_day > 31:
        return 1
    return anchor_day


def resolve_monthly_date_for_month(year: int, month: int, anchor_day: int) -> str:
    """Date of the anchor day in the given month.

    When the anchor does not exist in that month (31 in April, 30 in
    February) the date falls back to day 1 of the same month, not to the
    last day.
    """
    anchor = clamp_anchor_day(anchor_day)
    day = anchor if anchor <= days_in_month(year, month) else 1
    return to_iso_date(date(year, month, day))


def default_horizon_end(today: str) -> str:
    """Forward boundary for proactive generation, 24 months after today."""
    return add_months(today, RECURRING_HORIZON_MONTHS)
