"""Occurrence date generator for recurring series."""
import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from finance_tracker.config import FREQUENCY_STEP_DAYS
from finance_tracker.recurring.dates import (
    parse_iso_date,
    resolve_monthly_date_for_month,
    to_iso_date,
)
from finance_tracker.recurring.models import RecurringSeries


logger = logging.getLogger(__name__)


def generate_dates(
    series: RecurringSeries,
    window_start: str,
    window_end: str,
    excluded_dates: Optional[Iterable[str]] = None
) -> List[str]:
    """Generate the dates on which a series should have an occurrence.

    The effective range is [series start, series end or window end]
    intersected with [window_start, window_end]. Dates are returned in
    ascending order without duplicates; excluded dates are skipped.

    Args:
        series: Series definition
        window_start: First date of interest (ISO)
        window_end: Last date of interest (ISO), bounds the sequence
        excluded_dates: Dates that must not be produced

    Returns:
        List of ISO date strings. Empty when the range is empty or when the
        series or window cannot be parsed.
    """
    start = parse_iso_date(series.start_date)
    range_from = parse_iso_date(window_start)
    range_to = parse_iso_date(window_end)
    if start is None or range_from is None or range_to is None:
        logger.warning(
            f"Series {series.id}: unparseable dates "
            f"(start={series.start_date!r}, window={window_start!r}..{window_end!r}), generating nothing"
        )
        return []

    end = range_to
    if series.end_date:
        series_end = parse_iso_date(series.end_date)
        if series_end is None:
            logger.warning(f"Series {series.id}: unparseable end date {series.end_date!r}, generating nothing")
            return []
        end = min(series_end, range_to)

    begin = max(start, range_from)
    if begin > end:
        return []

    excluded = set(excluded_dates or ())

    if series.frequency == "monthly":
        return _monthly_dates(series, start, begin, end, excluded)

    step = FREQUENCY_STEP_DAYS.get(series.frequency)
    if step is None:
        logger.warning(f"Series {series.id}: unknown frequency {series.frequency!r}, generating nothing")
        return []
    return _fixed_step_dates(start, step, begin, end, excluded)


def _fixed_step_dates(
    start: date,
    step: int,
    begin: date,
    end: date,
    excluded: set
) -> List[str]:
    # Jump straight to the first step on or after begin
    skipped = (begin - start).days // step
    cursor = start + timedelta(days=skipped * step)
    if cursor < begin:
        cursor += timedelta(days=step)

    dates = []
    while cursor <= end:
        iso = to_iso_date(cursor)
        if iso not in excluded:
            dates.append(iso)
        cursor += timedelta(days=step)
    return dates


def _monthly_dates(
    series: RecurringSeries,
    start: date,
    begin: date,
    end: date,
    excluded: set
) -> List[str]:
    begin_iso = to_iso_date(begin)
    end_iso = to_iso_date(end)
    year, month = start.year, start.month

    dates = []
    while True:
        # The start month keeps the literal start date
        if (year, month) == (start.year, start.month):
            candidate = to_iso_date(start)
        else:
            candidate = resolve_monthly_date_for_month(year, month, series.anchor_day)

        if candidate > end_iso:
            break
        if candidate >= begin_iso and candidate not in excluded:
            dates.append(candidate)

        month += 1
        if month > 12:
            month = 1
            year += 1
    return dates
