"""Recurring transaction engine: date generation and occurrence reconciliation."""
from finance_tracker.recurring.generator import generate_dates
from finance_tracker.recurring.materializer import materialize
from finance_tracker.recurring.models import (
    Occurrence,
    OccurrenceUpdate,
    ReconcilePlan,
    RecurringSeries,
    SeriesException,
)
from finance_tracker.recurring.reconciler import SeriesRepository, reconcile, sync_series

__all__ = [
    "Occurrence",
    "OccurrenceUpdate",
    "ReconcilePlan",
    "RecurringSeries",
    "SeriesException",
    "SeriesRepository",
    "generate_dates",
    "materialize",
    "reconcile",
    "sync_series",
]
