"""Pause, resume and single-occurrence deletion for recurring series.

A series has two states, active and paused. Pausing writes a pause-skip
exception for every future date from the pause point so those dates stay
suppressed even if the series is edited later, and records the pause cutoff
on the series. Resuming skips the paused dates before the resume date and
removes the pause-skip exceptions from the resume date forward. Manual
deletions are recorded as manual-delete exceptions and are never cleared
automatically.
"""
from dataclasses import replace
from typing import List, Optional, Sequence

from finance_tracker.recurring.dates import add_days, default_horizon_end
from finance_tracker.recurring.generator import generate_dates
from finance_tracker.recurring.models import (
    MANUAL_DELETE,
    PAUSE_SKIP,
    Occurrence,
    RecurringSeries,
    SeriesException,
)


def plan_pause_exceptions(
    series: RecurringSeries,
    pause_from: str,
    until: Optional[str] = None
) -> List[SeriesException]:
    """Pause-skip exceptions for every date from pause_from to until.

    until defaults to the horizon measured from pause_from.
    """
    dates = generate_dates(series, pause_from, until or default_horizon_end(pause_from))
    return [SeriesException(recurrence_id=series.id, date=d, kind=PAUSE_SKIP) for d in dates]


def plan_resume_gap_exceptions(series: RecurringSeries, resume_from: str) -> List[SeriesException]:
    """Pause-skip exceptions for the paused dates strictly before resume_from.

    A long pause outlives the horizon its pause-skips were planned to, so the
    dates between that horizon and the resume date are skipped here.
    """
    if not series.paused_from or series.paused_from >= resume_from:
        return []
    return plan_pause_exceptions(series, series.paused_from, add_days(resume_from, -1))


def select_pause_exceptions_to_clear(
    exceptions: Sequence[SeriesException],
    resume_from: str
) -> List[SeriesException]:
    """Pause-skip exceptions dated on or after resume_from."""
    return [
        e for e in exceptions
        if e.kind == PAUSE_SKIP and e.date and e.date >= resume_from
    ]


def manual_delete_exception(occurrence: Occurrence) -> SeriesException:
    """Exception that keeps a deleted occurrence from being regenerated."""
    if occurrence.recurrence_id is None:
        raise ValueError("Only series occurrences can be recorded as manual deletions")
    return SeriesException(
        recurrence_id=occurrence.recurrence_id,
        date=occurrence.date,
        kind=MANUAL_DELETE,
    )


def paused(series: RecurringSeries, paused_from: Optional[str] = None) -> RecurringSeries:
    """Paused copy of a series. An earlier recorded cutoff is kept."""
    cutoff = series.paused_from
    if paused_from and (cutoff is None or paused_from < cutoff):
        cutoff = paused_from
    return replace(series, status="paused", paused_from=cutoff)


def resumed(series: RecurringSeries) -> RecurringSeries:
    return replace(series, status="active", paused_from=None)
