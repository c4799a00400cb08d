"""Tests for the SQLite store."""
import pytest
from pathlib import Path


@pytest.fixture
def series_fields():
    """Normalized fields for a weekly series."""
    return {
        "name": "Groceries run",
        "amount": 85.0,
        "type": "expense",
        "category_id": "groceries",
        "category_name": "Groceries",
        "owner_id": None,
        "owner_type": "shared",
        "frequency": "weekly",
        "start_date": "2026-03-01",
        "end_date": "2026-03-29",
        "anchor_day": 1,
        "status": "active",
    }


class TestSQLiteStore:
    """Test cases for SQLiteStore class."""

    def test_init_creates_tables(self, temp_db_path: Path):
        """Store should create all required tables on initialization."""
        from finance_tracker.db.sqlite_store import SQLiteStore

        store = SQLiteStore(temp_db_path)

        tables = store.get_tables()
        assert "transactions" in tables
        assert "categories" in tables
        assert "recurring_series" in tables
        assert "recurring_exceptions" in tables
        assert "goals" in tables
        store.close()

    def test_init_seeds_default_categories(self, store):
        """Store should seed the category catalogue on first init."""
        categories = store.get_all_categories()

        assert len(categories) == 13
        assert any(c["id"] == "salary" and c["type"] == "income" for c in categories)
        assert store.get_category("misc")["name"] == "Misc"
        assert all(c["type"] == "income" for c in store.get_all_categories("income"))

    def test_migrates_series_without_pause_cutoff(self, temp_db_path: Path):
        """Opening an older database should add the paused_from column."""
        import sqlite3
        from finance_tracker.db.sqlite_store import SQLiteStore

        conn = sqlite3.connect(str(temp_db_path))
        conn.execute("""
            CREATE TABLE recurring_series (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                amount REAL NOT NULL DEFAULT 0,
                type TEXT NOT NULL DEFAULT 'expense',
                category_id TEXT,
                category_name TEXT,
                owner_id TEXT,
                owner_type TEXT NOT NULL DEFAULT 'shared',
                frequency TEXT NOT NULL DEFAULT 'monthly',
                start_date TEXT NOT NULL,
                end_date TEXT,
                anchor_day INTEGER NOT NULL DEFAULT 1,
                status TEXT NOT NULL DEFAULT 'active',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.execute(
            "INSERT INTO recurring_series (name, start_date, status) VALUES ('Gym', '2026-01-10', 'paused')"
        )
        conn.commit()
        conn.close()

        with SQLiteStore(temp_db_path) as store:
            series = store.get_all_series()[0]
            assert series.is_paused
            assert series.paused_from is None

            assert store.update_series(series.id, paused_from="2026-03-10")
            assert store.get_series(series.id).paused_from == "2026-03-10"

    def test_reopen_keeps_data(self, temp_db_path: Path, series_fields):
        """Reinitializing on the same file should not duplicate or drop rows."""
        from finance_tracker.db.sqlite_store import SQLiteStore

        with SQLiteStore(temp_db_path) as store:
            store.create_series(**series_fields)

        with SQLiteStore(temp_db_path) as store:
            assert len(store.get_all_series()) == 1
            assert len(store.get_all_categories()) == 13


class TestSeriesStorage:
    """Test cases for recurring series rows."""

    def test_create_and_get_series(self, store, series_fields):
        """Should round-trip a series into a model."""
        series_id = store.create_series(**series_fields)
        series = store.get_series(series_id)

        assert series.id == series_id
        assert series.name == "Groceries run"
        assert series.frequency == "weekly"
        assert series.end_date == "2026-03-29"
        assert not series.is_paused

    def test_get_missing_series(self, store):
        """Should return None for an unknown id."""
        assert store.get_series(999) is None

    def test_update_series(self, store, series_fields):
        """Should update only known columns."""
        series_id = store.create_series(**series_fields)

        assert store.update_series(series_id, status="paused", bogus="x")
        assert store.get_series(series_id).status == "paused"
        assert not store.update_series(series_id, bogus="x")

    def test_filter_by_status(self, store, series_fields):
        """Should filter series by status."""
        store.create_series(**series_fields)
        store.create_series(**{**series_fields, "status": "paused"})

        assert len(store.get_all_series()) == 2
        assert len(store.get_all_series(status="paused")) == 1

    def test_series_counts(self, store, series_fields):
        """Should count by status and monthly frequency."""
        store.create_series(**series_fields)
        store.create_series(**{**series_fields, "status": "paused", "frequency": "monthly"})

        assert store.get_series_counts() == {"total": 2, "active": 1, "paused": 1, "monthly": 1}


class TestReconcileStorage:
    """Test cases for applying plans and storing exceptions."""

    def test_apply_plan_creates_occurrences(self, store, series_fields):
        """Should insert materialized occurrences linked to the series."""
        from finance_tracker.recurring.reconciler import reconcile

        series = store.get_series(store.create_series(**series_fields))
        store.apply_reconcile_plan(reconcile(series, [], [], "2026-03-10"))

        occurrences = store.get_series_occurrences(series.id)
        assert [o.date for o in occurrences] == [
            "2026-03-01", "2026-03-08", "2026-03-15", "2026-03-22", "2026-03-29",
        ]
        assert all(o.recurrence_id == series.id and o.id for o in occurrences)
        assert all(o.frequency == "one-time" for o in occurrences)

    def test_apply_plan_updates_and_deletes(self, store, series_fields):
        """Should apply field updates and deletions."""
        from dataclasses import replace
        from finance_tracker.recurring.reconciler import reconcile

        series = store.get_series(store.create_series(**series_fields))
        store.apply_reconcile_plan(reconcile(series, [], [], "2026-03-10"))

        edited = replace(series, amount=90.0, end_date="2026-03-15")
        plan = reconcile(edited, store.get_series_occurrences(series.id), [], "2026-03-10")
        store.apply_reconcile_plan(plan)

        occurrences = store.get_series_occurrences(series.id)
        assert [o.date for o in occurrences] == ["2026-03-01", "2026-03-08", "2026-03-15"]
        assert all(o.amount == 90.0 for o in occurrences)

    def test_save_exceptions_idempotent(self, store):
        """Saving the same key twice should keep one row."""
        from finance_tracker.recurring.models import SeriesException

        exception = SeriesException(recurrence_id=1, date="2026-04-01", kind="pause-skip")
        store.save_exceptions([exception])
        store.save_exceptions([exception])

        assert store.get_series_exceptions(1) == [exception]

    def test_delete_exceptions(self, store):
        """Should delete exceptions by key."""
        from finance_tracker.recurring.models import SeriesException

        keep = SeriesException(recurrence_id=1, date="2026-04-01", kind="manual-delete")
        drop = SeriesException(recurrence_id=1, date="2026-05-01", kind="pause-skip")
        store.save_exceptions([keep, drop])

        assert store.delete_exceptions([drop]) == 1
        assert store.get_series_exceptions(1) == [keep]
        assert store.delete_exceptions([]) == 0

    def test_delete_series_cascades(self, store, series_fields):
        """Deleting a series should remove its occurrences and exceptions only."""
        from finance_tracker.recurring.models import SeriesException
        from finance_tracker.recurring.reconciler import reconcile

        series = store.get_series(store.create_series(**series_fields))
        store.apply_reconcile_plan(reconcile(series, [], [], "2026-03-10"))
        store.save_exceptions([SeriesException(series.id, "2026-04-01", "manual-delete")])
        manual_id = store.add_transaction(name="Coffee", amount=4.0, type="expense", date="2026-03-02")

        counts = store.delete_series(series.id)

        assert counts == {"series": 1, "occurrences": 5, "exceptions": 1}
        assert store.get_series(series.id) is None
        assert store.get_transaction(manual_id) is not None


class TestTransactionStorage:
    """Test cases for transaction rows."""

    def test_add_and_get_transaction(self, store):
        """Should add a transaction and return its ID."""
        txn_id = store.add_transaction(
            date="2026-03-02", name="Coffee", amount=4.5, type="expense",
            category_id="food", category_name="Food", has_receipt=True
        )

        txn = store.get_transaction(txn_id)
        assert isinstance(txn_id, int)
        assert txn["name"] == "Coffee"
        assert txn["frequency"] == "one-time"
        assert txn["recurrence_id"] is None
        assert txn["has_receipt"] == 1

    def test_update_and_delete_transaction(self, store):
        """Should update and then delete a transaction."""
        txn_id = store.add_transaction(date="2026-03-02", name="Coffee", amount=4.5, type="expense")

        assert store.update_transaction(txn_id, amount=5.0)
        assert store.get_transaction(txn_id)["amount"] == 5.0
        assert store.delete_transaction(txn_id)
        assert store.get_transaction(txn_id) is None
        assert not store.delete_transaction(txn_id)

    def test_filters_and_pagination(self, store):
        """Should filter by type and date range and paginate newest first."""
        store.add_transaction(date="2026-01-05", name="Pay", amount=2000, type="income")
        store.add_transaction(date="2026-02-05", name="Pay", amount=2000, type="income")
        store.add_transaction(date="2026-02-10", name="Coffee", amount=4, type="expense")

        incomes = store.get_all_transactions(type_="income")
        assert [t["date"] for t in incomes] == ["2026-02-05", "2026-01-05"]

        february = store.get_all_transactions(start_date="2026-02-01", end_date="2026-02-28")
        assert len(february) == 2

        page = store.get_all_transactions(limit=1, offset=1)
        assert [t["date"] for t in page] == ["2026-02-05"]
        assert store.count_transactions(type_="expense") == 1

    def test_totals(self, store):
        """Should sum income and expenses separately."""
        store.add_transaction(date="2026-01-05", name="Pay", amount=2000, type="income")
        store.add_transaction(date="2026-01-06", name="Rent", amount=1200, type="expense")
        store.add_transaction(date="2026-01-07", name="Coffee", amount=4.5, type="expense")

        assert store.get_totals() == {"income": 2000, "expenses": 1204.5, "count": 3}
        assert store.get_totals(end_date="2026-01-05")["count"] == 1

    def test_reset_all_data(self, store, series_fields):
        """Should clear series, transactions and goals but keep categories."""
        store.create_series(**series_fields)
        store.add_transaction(date="2026-01-05", name="Pay", amount=2000, type="income")
        store.create_goal(title="Bike", target_amount=800)

        counts = store.reset_all_data()

        assert counts["recurring_series"] == 1
        assert counts["transactions"] == 1
        assert counts["goals"] == 1
        assert store.get_all_goals() == []
        assert store.get_all_series() == []
        assert len(store.get_all_categories()) == 13


class TestGoalStorage:
    """Test cases for savings goal rows."""

    def test_create_and_get_goal(self, store):
        """Should store a goal with defaults and a progress percentage."""
        goal_id = store.create_goal(title="Emergency fund", target_amount=1000.0, bogus="x")
        goal = store.get_goal(goal_id)

        assert goal["title"] == "Emergency fund"
        assert goal["saved_amount"] == 0
        assert goal["status"] == "active"
        assert goal["color"] == "slate"
        assert goal["progress"] == 0
        assert store.get_goal(999) is None

    def test_update_goal(self, store):
        """Should update known columns and recompute progress."""
        goal_id = store.create_goal(title="Bike", target_amount=800.0)

        assert store.update_goal(goal_id, saved_amount=200.0, bogus="x")
        assert store.get_goal(goal_id)["progress"] == 25.0
        assert not store.update_goal(goal_id, bogus="x")
        assert not store.update_goal(999, saved_amount=1.0)

    def test_filter_and_delete(self, store):
        """Should filter goals by status and delete them."""
        first = store.create_goal(title="Bike", target_amount=800.0)
        store.create_goal(title="Laptop", target_amount=1500.0, status="completed")

        assert len(store.get_all_goals()) == 2
        assert [g["title"] for g in store.get_all_goals(status="completed")] == ["Laptop"]
        assert store.delete_goal(first)
        assert not store.delete_goal(first)
