"""Series reconciler: diff desired occurrence dates against stored rows."""
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from finance_tracker.recurring.dates import default_horizon_end
from finance_tracker.recurring.generator import generate_dates
from finance_tracker.recurring.materializer import SYNCED_FIELDS, materialize
from finance_tracker.recurring.models import (
    Occurrence,
    OccurrenceUpdate,
    ReconcilePlan,
    RecurringSeries,
    SeriesException,
)


logger = logging.getLogger(__name__)


class SeriesRepository(Protocol):
    """Storage operations the recurring engine needs from its adapter."""

    def get_series(self, series_id: int) -> Optional[RecurringSeries]:
        ...

    def get_series_occurrences(self, series_id: int) -> List[Occurrence]:
        ...

    def get_series_exceptions(self, series_id: int) -> List[SeriesException]:
        ...

    def apply_reconcile_plan(self, plan: ReconcilePlan) -> None:
        ...

    def save_exceptions(self, exceptions: Sequence[SeriesException]) -> int:
        ...

    def delete_exceptions(self, exceptions: Sequence[SeriesException]) -> int:
        ...


def desired_dates(
    series: RecurringSeries,
    exceptions: Sequence[SeriesException],
    today: str
) -> List[str]:
    """Dates the series should have occurrences on as of today.

    Both exception kinds feed the same exclusion set. A paused series keeps
    only its dates strictly before the date it was paused from, or before
    today when that is earlier. Pause-skip rows stop at a fixed horizon;
    the cutoff also covers dates past it.
    """
    horizon_end = default_horizon_end(today)
    if series.end_date and series.end_date < horizon_end:
        horizon_end = series.end_date

    excluded = {e.date for e in exceptions if e.recurrence_id == series.id}
    dates = generate_dates(series, series.start_date, horizon_end, excluded)
    if series.is_paused:
        cutoff = min(today, series.paused_from) if series.paused_from else today
        dates = [d for d in dates if d < cutoff]
    return dates


def reconcile(
    series: RecurringSeries,
    existing: Sequence[Occurrence],
    exceptions: Sequence[SeriesException],
    today: str
) -> ReconcilePlan:
    """Compute the minimal operations that align stored occurrences with a series.

    Args:
        series: Current series definition
        existing: Occurrence rows currently stored for the series
        exceptions: Exception rows for the series
        today: Caller-supplied ISO date

    Returns:
        ReconcilePlan with rows to create, update and delete
    """
    wanted = desired_dates(series, exceptions, today)
    wanted_set = set(wanted)
    plan = ReconcilePlan()

    by_date: Dict[str, List[Occurrence]] = {}
    for occurrence in existing:
        by_date.setdefault(occurrence.date, []).append(occurrence)

    for date, same_date in by_date.items():
        keeper, duplicates = same_date[0], same_date[1:]
        plan.to_delete.extend(d.id for d in duplicates)

        if date not in wanted_set:
            plan.to_delete.append(keeper.id)
            continue

        changes = _diff(keeper, materialize(series, date))
        if changes:
            plan.to_update.append(OccurrenceUpdate(occurrence_id=keeper.id, changes=changes))

    for date in wanted:
        if date not in by_date:
            plan.to_create.append(materialize(series, date))

    return plan


def _diff(existing: Occurrence, fresh: Occurrence) -> Dict[str, object]:
    return {
        name: getattr(fresh, name)
        for name in SYNCED_FIELDS
        if getattr(existing, name) != getattr(fresh, name)
    }


def sync_series(repository: SeriesRepository, series: RecurringSeries, today: str) -> ReconcilePlan:
    """Read a series' rows, reconcile them and write the result back."""
    existing = repository.get_series_occurrences(series.id)
    exceptions = repository.get_series_exceptions(series.id)
    plan = reconcile(series, existing, exceptions, today)
    if not plan.is_empty:
        repository.apply_reconcile_plan(plan)
    logger.debug(f"Series {series.id} synced: {plan.summary()}")
    return plan
