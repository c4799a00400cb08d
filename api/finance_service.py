"""Finance service - main orchestration layer."""
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

import pandas as pd

from finance_tracker.config import (
    DB_PATH,
    RECURRING_HORIZON_MONTHS,
    ensure_data_dir
)
from finance_tracker.db.sqlite_store import SQLiteStore
from finance_tracker.recurring import reconciler
from finance_tracker.recurring.dates import parse_iso_date
from finance_tracker.recurring.generator import generate_dates
from finance_tracker.recurring.lifecycle import (
    manual_delete_exception,
    paused,
    plan_pause_exceptions,
    plan_resume_gap_exceptions,
    resumed,
    select_pause_exceptions_to_clear,
)
from finance_tracker.recurring.normalize import (
    coerce_amount,
    normalize_goal_input,
    normalize_series_input,
    normalize_transaction_input,
    occurrence_from_row,
)


logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "id", "date", "name", "amount", "type", "category_id", "category_name",
    "owner_id", "owner_type", "frequency", "recurrence_id", "occurrence_date",
]


def local_today() -> str:
    """Current local calendar date as an ISO string."""
    return date.today().isoformat()


def _require_date(value: Optional[str], label: str) -> str:
    if parse_iso_date(value) is None:
        raise ValueError(f"Invalid {label}: {value!r}")
    return value


class FinanceService:
    """Main service for the finance tracker.

    Owns the store and keeps materialized series occurrences in line with
    their series after every change. Missing rows are reported as None or
    False; invalid input raises ValueError.
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        store: Optional[SQLiteStore] = None,
        today: Optional[Callable[[], str]] = None
    ):
        """Initialize the finance service.

        Args:
            db_path: Path to SQLite database (default: ~/.finance_tracker/finance.db)
            store: Pre-built store, used instead of opening db_path
            today: Callable returning today's ISO date (default: local date)
        """
        if store is None:
            if db_path is None:
                ensure_data_dir()
            self.db_path = db_path or DB_PATH
            store = SQLiteStore(self.db_path)
        else:
            self.db_path = store.db_path

        self.store = store
        self.today = today or local_today

    def close(self):
        """Close the store connection."""
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # === Recurring Series ===

    def _sync(self, series) -> Dict[str, int]:
        plan = reconciler.sync_series(self.store, series, self.today())
        summary = plan.summary()
        if not plan.is_empty:
            logger.info(
                f"Series {series.id} reconciled: {summary['created']} created, "
                f"{summary['updated']} updated, {summary['deleted']} deleted"
            )
        return summary

    def create_series(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a series and materialize its occurrences.

        Args:
            data: Raw series fields

        Returns:
            Series dict with a 'sync' entry holding the reconcile counts

        Raises:
            ValueError: If the input does not describe a valid series
        """
        fields = normalize_series_input(data)
        series_id = self.store.create_series(**fields)
        series = self.store.get_series(series_id)
        logger.info(f"Created {series.frequency} series {series_id}: {series.name}")

        result = series.to_dict()
        result["sync"] = self._sync(series)
        return result

    def update_series(self, series_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Edit a series and reconcile its occurrences.

        Only keys present in data are changed. Status is left alone; use
        pause_series and resume_series for that.
        """
        existing = self.store.get_series(series_id)
        if existing is None:
            return None

        changes = {k: v for k, v in data.items() if k not in ("id", "status")}
        merged = {**existing.to_dict(), **changes}
        # A moved start date re-derives the anchor unless one is given
        if "start_date" in changes and "anchor_day" not in changes:
            merged.pop("anchor_day")

        fields = normalize_series_input(merged)
        fields["status"] = existing.status
        self.store.update_series(series_id, **fields)
        series = self.store.get_series(series_id)

        result = series.to_dict()
        result["sync"] = self._sync(series)
        return result

    def get_series(self, series_id: int) -> Optional[Dict[str, Any]]:
        """Get a specific series."""
        series = self.store.get_series(series_id)
        return series.to_dict() if series else None

    def list_series(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """List series, newest first, optionally filtered by status."""
        return [s.to_dict() for s in self.store.get_all_series(status=status)]

    def delete_series(self, series_id: int) -> Optional[Dict[str, int]]:
        """Delete a series with its occurrences and exceptions.

        Returns:
            Dict with deleted counts, or None if the series does not exist
        """
        if self.store.get_series(series_id) is None:
            return None
        counts = self.store.delete_series(series_id)
        logger.info(
            f"Deleted series {series_id} with {counts['occurrences']} occurrences "
            f"and {counts['exceptions']} exceptions"
        )
        return counts

    def pause_series(self, series_id: int, pause_from: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Pause a series from a date (default today).

        Every generated date from pause_from to its horizon is recorded as a
        pause-skip exception, then the series is marked paused and its
        occurrences from the earlier of pause_from and today on are removed.
        That cutoff is stored with the series so dates beyond the pause-skip
        horizon stay dropped however long the pause lasts.
        """
        series = self.store.get_series(series_id)
        if series is None:
            return None

        pause_from = _require_date(pause_from or self.today(), "pause date")
        exceptions = plan_pause_exceptions(series, pause_from)
        self.store.save_exceptions(exceptions)
        series = paused(series, min(pause_from, self.today()))
        self.store.update_series(series_id, status=series.status, paused_from=series.paused_from)
        logger.info(f"Paused series {series_id} from {pause_from} ({len(exceptions)} dates skipped)")

        result = series.to_dict()
        result["exceptions_added"] = len(exceptions)
        result["sync"] = self._sync(series)
        return result

    def resume_series(self, series_id: int, resume_from: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Resume a series from a date (default today).

        Paused dates before resume_from stay skipped, pause-skip exceptions
        on or after it are cleared and manual deletions stay in place.
        """
        series = self.store.get_series(series_id)
        if series is None:
            return None

        resume_from = _require_date(resume_from or self.today(), "resume date")
        self.store.save_exceptions(plan_resume_gap_exceptions(series, resume_from))
        to_clear = select_pause_exceptions_to_clear(
            self.store.get_series_exceptions(series_id), resume_from
        )
        self.store.delete_exceptions(to_clear)
        series = resumed(series)
        self.store.update_series(series_id, status=series.status, paused_from=None)
        logger.info(f"Resumed series {series_id} from {resume_from} ({len(to_clear)} skips cleared)")

        result = series.to_dict()
        result["exceptions_cleared"] = len(to_clear)
        result["sync"] = self._sync(series)
        return result

    def sync_series(self, series_id: int) -> Optional[Dict[str, int]]:
        """Reconcile one series. Returns the plan counts."""
        series = self.store.get_series(series_id)
        if series is None:
            return None
        return self._sync(series)

    def sync_all_series(self) -> Dict[str, int]:
        """Reconcile every series, e.g. after the horizon has moved forward.

        Returns:
            Dict with the number of series and summed plan counts
        """
        totals = {"series": 0, "created": 0, "updated": 0, "deleted": 0}
        for series in self.store.get_all_series():
            summary = self._sync(series)
            totals["series"] += 1
            for key, count in summary.items():
                totals[key] += count
        logger.info(f"Synced {totals['series']} series")
        return totals

    def get_series_schedule(self, series_id: int, start: str, end: str) -> Optional[List[str]]:
        """Dates the series produces in [start, end], exceptions applied.

        Raises:
            ValueError: If start or end is not a valid ISO date
        """
        series = self.store.get_series(series_id)
        if series is None:
            return None
        _require_date(start, "start date")
        _require_date(end, "end date")
        excluded = {e.date for e in self.store.get_series_exceptions(series_id)}
        return generate_dates(series, start, end, excluded)

    def get_series_occurrences(self, series_id: int) -> Optional[List[Dict[str, Any]]]:
        """Stored occurrences of a series, ordered by date."""
        if self.store.get_series(series_id) is None:
            return None
        occurrences = self.store.get_series_occurrences(series_id)
        return [o.to_dict() for o in sorted(occurrences, key=lambda o: o.date)]

    def get_series_exceptions(self, series_id: int) -> Optional[List[Dict[str, Any]]]:
        if self.store.get_series(series_id) is None:
            return None
        return [e.to_dict() for e in self.store.get_series_exceptions(series_id)]

    def get_recurring_stats(self) -> Dict[str, int]:
        """Series counts by status and frequency, plus the generation horizon."""
        stats = self.store.get_series_counts()
        stats["horizon_months"] = RECURRING_HORIZON_MONTHS
        return stats

    # === Transactions ===

    def get_categories(self, type_: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get all available categories."""
        return self.store.get_all_categories(type_)

    def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific category."""
        return self.store.get_category(category_id)

    def add_transaction(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Add a manual one-time transaction.

        Raises:
            ValueError: If the name or date is invalid
        """
        fields = normalize_transaction_input(data)
        txn_id = self.store.add_transaction(**fields)
        logger.info(f"Added transaction {txn_id}: {fields['name']} {fields['amount']:.2f}")
        return self.store.get_transaction(txn_id)

    def update_transaction(self, txn_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Edit a manual transaction.

        Raises:
            ValueError: If the transaction belongs to a series or the input is invalid
        """
        existing = self.store.get_transaction(txn_id)
        if existing is None:
            return None
        if existing["recurrence_id"] is not None:
            raise ValueError(
                f"Transaction {txn_id} belongs to series {existing['recurrence_id']}; edit the series instead"
            )

        fields = normalize_transaction_input({**existing, **data})
        self.store.update_transaction(txn_id, **fields)
        return self.store.get_transaction(txn_id)

    def delete_transaction(self, txn_id: int) -> bool:
        """Delete a transaction.

        Deleting a series occurrence records a manual-delete exception first so
        the date is not generated again.
        """
        existing = self.store.get_transaction(txn_id)
        if existing is None:
            return False

        if existing["recurrence_id"] is not None:
            exception = manual_delete_exception(occurrence_from_row(existing))
            self.store.save_exceptions([exception])
            logger.info(f"Recorded manual deletion {exception.key}")

        return self.store.delete_transaction(txn_id)

    def get_transaction(self, txn_id: int) -> Optional[Dict[str, Any]]:
        """Get a specific transaction."""
        return self.store.get_transaction(txn_id)

    def get_transactions(
        self,
        type_: Optional[str] = None,
        recurrence_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Dict[str, Any]:
        """Get a page of transactions and the total matching the filters."""
        filters = {
            "type_": type_,
            "recurrence_id": recurrence_id,
            "start_date": start_date,
            "end_date": end_date,
        }
        return {
            "transactions": self.store.get_all_transactions(limit=limit, offset=offset, **filters),
            "total": self.store.count_transactions(**filters),
        }

    def get_summary(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Income, expense and net totals.

        Materialized occurrences run up to two years ahead, so the range ends
        today unless end_date is given.

        Returns:
            Dict with transaction summary
        """
        totals = self.store.get_totals(start_date, end_date or self.today())
        return {
            "total_income": totals["income"],
            "total_expenses": totals["expenses"],
            "net_balance": totals["income"] - totals["expenses"],
            "transaction_count": totals["count"],
        }

    def export_transactions_csv(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> str:
        """Export transactions in a date range as CSV text, oldest first."""
        rows = self.store.get_all_transactions(start_date=start_date, end_date=end_date)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        df = df.sort_values(["date", "id"]).reset_index(drop=True)
        logger.info(f"Exported {len(df)} transactions")
        return df.to_csv(index=False)

    # === Savings Goals ===

    def add_goal(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a savings goal with nothing saved yet.

        Args:
            data: Raw goal fields (title, target_amount, deadline, owner_id,
                owner_type, icon, color)

        Returns:
            Goal dict including its progress percentage

        Raises:
            ValueError: If the title is empty, the target is not positive or
                the deadline is not a valid date
        """
        fields = normalize_goal_input(data)
        goal_id = self.store.create_goal(**fields)
        logger.info(f"Added goal {goal_id}: {fields['title']} ({fields['target_amount']:.2f})")
        return self.store.get_goal(goal_id)

    def add_funds(self, goal_id: int, amount: Any) -> Optional[Dict[str, Any]]:
        """Add money to a goal.

        The saved amount is capped at the target; reaching it marks the goal
        completed.

        Raises:
            ValueError: If the amount is not a positive number
        """
        goal = self.store.get_goal(goal_id)
        if goal is None:
            return None

        amount = coerce_amount(amount)
        if amount <= 0:
            raise ValueError("Amount must be greater than zero.")

        target = goal["target_amount"]
        saved = min(target, goal["saved_amount"] + amount)
        status = "completed" if saved >= target else "active"
        self.store.update_goal(goal_id, saved_amount=saved, status=status)
        if status != goal["status"]:
            logger.info(f"Goal {goal_id} is now {status}")
        return self.store.get_goal(goal_id)

    def get_goal(self, goal_id: int) -> Optional[Dict[str, Any]]:
        """Get a specific goal."""
        return self.store.get_goal(goal_id)

    def list_goals(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """List goals, newest first, optionally filtered by status."""
        return self.store.get_all_goals(status=status)

    def delete_goal(self, goal_id: int) -> bool:
        return self.store.delete_goal(goal_id)

    # === Admin ===

    def reset_all_data(self) -> Dict[str, int]:
        """Delete every series, exception, transaction and goal.

        Returns:
            Dict of deleted row counts per table
        """
        counts = self.store.reset_all_data()
        logger.warning(f"All data reset: {counts}")
        return counts
