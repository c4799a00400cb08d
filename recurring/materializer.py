"""Map a (series, date) pair to the occurrence record it should produce."""
from finance_tracker.config import ONE_TIME_FREQUENCY
from finance_tracker.recurring.models import Occurrence, RecurringSeries

# Occurrence fields derived from the series; compared during reconciliation
SYNCED_FIELDS = (
    "name",
    "amount",
    "type",
    "category_id",
    "category_name",
    "owner_id",
    "owner_type",
    "frequency",
    "recurrence_id",
    "occurrence_date",
)


def materialize(series: RecurringSeries, date: str) -> Occurrence:
    """Build the occurrence payload for one series date (no id, no I/O)."""
    return Occurrence(
        date=date,
        occurrence_date=date,
        recurrence_id=series.id,
        name=series.name,
        amount=series.amount,
        type=series.type,
        category_id=series.category_id,
        category_name=series.category_name,
        owner_id=series.owner_id,
        owner_type=series.owner_type,
        frequency=ONE_TIME_FREQUENCY,
    )
