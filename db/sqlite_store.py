"""SQLite store for transactions, recurring series, their exceptions and savings goals."""
import sqlite3
from pathlib import Path
from typing import List, Dict, Any, Optional, Sequence

from finance_tracker.recurring.models import (
    Occurrence,
    ReconcilePlan,
    RecurringSeries,
    SeriesException,
)
from finance_tracker.recurring.normalize import (
    exception_from_row,
    occurrence_from_row,
    series_from_row,
)

from .schema import SCHEMA_SQL, DEFAULT_CATEGORIES_SQL


# Columns written when materializing an occurrence
OCCURRENCE_COLUMNS = [
    "date", "name", "amount", "type", "category_id", "category_name",
    "owner_id", "owner_type", "frequency", "recurrence_id", "occurrence_date",
]

SERIES_FIELDS = {
    "name", "amount", "type", "category_id", "category_name", "owner_id",
    "owner_type", "frequency", "start_date", "end_date", "anchor_day", "status",
    "paused_from",
}

TRANSACTION_FIELDS = {
    "date", "name", "amount", "type", "category_id", "category_name",
    "owner_id", "owner_type", "frequency", "recurrence_id", "occurrence_date",
    "has_receipt",
}

GOAL_FIELDS = {
    "title", "target_amount", "saved_amount", "deadline", "owner_id",
    "owner_type", "status", "icon", "color",
}


class SQLiteStore:
    """SQLite storage for categories, transactions, recurring series, exceptions and goals.

    Implements the SeriesRepository protocol used by the recurring engine.
    """

    def __init__(self, db_path: Path):
        """Initialize the store with database path."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        # Enable WAL mode for better concurrency
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        """Initialize database schema and seed default categories.

        Migrations run first so databases created by an older schema get
        their missing columns before the full script runs.
        """
        cursor = self.conn.cursor()
        self._run_migrations()
        cursor.executescript(SCHEMA_SQL)
        cursor.executescript(DEFAULT_CATEGORIES_SQL)
        self.conn.commit()

    def _run_migrations(self) -> None:
        """Add columns introduced after a database was first created."""
        if "recurring_series" not in self.get_tables():
            return

        cursor = self.conn.execute("PRAGMA table_info(recurring_series)")
        columns = [row[1] for row in cursor.fetchall()]
        if "paused_from" not in columns:
            self.conn.execute("ALTER TABLE recurring_series ADD COLUMN paused_from TEXT")
            self.conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def get_tables(self) -> List[str]:
        """Get list of tables in the database."""
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        )
        return [row[0] for row in cursor.fetchall()]

    # === Categories ===

    def get_all_categories(self, type_: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get all categories, optionally only those of one transaction type."""
        if type_:
            cursor = self.conn.execute(
                "SELECT * FROM categories WHERE type = ? ORDER BY name", (type_,)
            )
        else:
            cursor = self.conn.execute("SELECT * FROM categories ORDER BY type, name")
        return [dict(row) for row in cursor.fetchall()]

    def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        """Get a single category by ID."""
        cursor = self.conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    # === Recurring Series ===

    def create_series(self, **fields) -> int:
        """Insert a series from normalized fields. Returns the new ID."""
        data = {k: v for k, v in fields.items() if k in SERIES_FIELDS}
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        cursor = self.conn.execute(
            f"INSERT INTO recurring_series ({columns}) VALUES ({placeholders})",
            list(data.values())
        )
        self.conn.commit()
        return cursor.lastrowid

    def update_series(self, series_id: int, **kwargs) -> bool:
        """Update a series. Returns True if updated."""
        updates = {k: v for k, v in kwargs.items() if k in SERIES_FIELDS}
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        cursor = self.conn.execute(
            f"UPDATE recurring_series SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            list(updates.values()) + [series_id]
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def get_series_row(self, series_id: int) -> Optional[Dict[str, Any]]:
        """Get a single series row by ID."""
        cursor = self.conn.execute(
            "SELECT * FROM recurring_series WHERE id = ?", (series_id,)
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_series(self, series_id: int) -> Optional[RecurringSeries]:
        """Get a single series as a model."""
        row = self.get_series_row(series_id)
        return series_from_row(row) if row else None

    def get_all_series(self, status: Optional[str] = None) -> List[RecurringSeries]:
        """Get all series, newest first."""
        query = "SELECT * FROM recurring_series"
        params: List[Any] = []
        if status:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC, id DESC"
        cursor = self.conn.execute(query, params)
        return [series_from_row(row) for row in cursor.fetchall()]

    def delete_series(self, series_id: int) -> Dict[str, int]:
        """Delete a series with all of its occurrences and exceptions.

        Returns:
            Dict with counts of deleted series, occurrences and exceptions
        """
        occurrences = self.conn.execute(
            "DELETE FROM transactions WHERE recurrence_id = ?", (series_id,)
        ).rowcount
        exceptions = self.conn.execute(
            "DELETE FROM recurring_exceptions WHERE recurrence_id = ?", (series_id,)
        ).rowcount
        series = self.conn.execute(
            "DELETE FROM recurring_series WHERE id = ?", (series_id,)
        ).rowcount
        self.conn.commit()
        return {"series": series, "occurrences": occurrences, "exceptions": exceptions}

    def get_series_counts(self) -> Dict[str, int]:
        """Count series by status and frequency."""
        row = self.conn.execute("""
            SELECT
                COUNT(*) as total,
                SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END) as active,
                SUM(CASE WHEN status = 'paused' THEN 1 ELSE 0 END) as paused,
                SUM(CASE WHEN frequency = 'monthly' THEN 1 ELSE 0 END) as monthly
            FROM recurring_series
        """).fetchone()
        return {
            "total": row[0] or 0,
            "active": row[1] or 0,
            "paused": row[2] or 0,
            "monthly": row[3] or 0,
        }

    # === Occurrences ===

    def get_series_occurrences(self, series_id: int) -> List[Occurrence]:
        """Get all occurrence rows linked to a series, oldest row first."""
        cursor = self.conn.execute(
            "SELECT * FROM transactions WHERE recurrence_id = ? ORDER BY id", (series_id,)
        )
        return [occurrence_from_row(row) for row in cursor.fetchall()]

    def apply_reconcile_plan(self, plan: ReconcilePlan) -> None:
        """Write the create/update/delete operations of a plan in one transaction."""
        try:
            if plan.to_delete:
                self.conn.executemany(
                    "DELETE FROM transactions WHERE id = ?",
                    [(occurrence_id,) for occurrence_id in plan.to_delete]
                )

            for update in plan.to_update:
                changes = {k: v for k, v in update.changes.items() if k in TRANSACTION_FIELDS}
                if not changes:
                    continue
                set_clause = ", ".join(f"{k} = ?" for k in changes.keys())
                self.conn.execute(
                    f"UPDATE transactions SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    list(changes.values()) + [update.occurrence_id]
                )

            if plan.to_create:
                columns = ", ".join(OCCURRENCE_COLUMNS)
                placeholders = ", ".join("?" for _ in OCCURRENCE_COLUMNS)
                self.conn.executemany(
                    f"INSERT INTO transactions ({columns}) VALUES ({placeholders})",
                    [
                        [getattr(occurrence, column) for column in OCCURRENCE_COLUMNS]
                        for occurrence in plan.to_create
                    ]
                )
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    # === Exceptions ===

    def get_series_exceptions(self, series_id: int) -> List[SeriesException]:
        """Get exceptions recorded for a series, ordered by date."""
        cursor = self.conn.execute(
            "SELECT * FROM recurring_exceptions WHERE recurrence_id = ? ORDER BY date, kind",
            (series_id,)
        )
        exceptions = (exception_from_row(row) for row in cursor.fetchall())
        return [e for e in exceptions if e is not None]

    def save_exceptions(self, exceptions: Sequence[SeriesException]) -> int:
        """Insert exceptions keyed by date and kind; existing keys are left as they are."""
        if not exceptions:
            return 0
        self.conn.executemany(
            """
            INSERT OR IGNORE INTO recurring_exceptions (id, recurrence_id, date, kind)
            VALUES (?, ?, ?, ?)
            """,
            [(e.key, e.recurrence_id, e.date, e.kind) for e in exceptions]
        )
        self.conn.commit()
        return len(exceptions)

    def delete_exceptions(self, exceptions: Sequence[SeriesException]) -> int:
        """Delete exceptions by key. Returns the number of rows removed."""
        if not exceptions:
            return 0
        cursor = self.conn.executemany(
            "DELETE FROM recurring_exceptions WHERE id = ?",
            [(e.key,) for e in exceptions]
        )
        self.conn.commit()
        return cursor.rowcount

    # === Transactions ===

    def add_transaction(self, **fields) -> int:
        """Insert a transaction from normalized fields. Returns the new ID."""
        data = {k: v for k, v in fields.items() if k in TRANSACTION_FIELDS}
        if "has_receipt" in data:
            data["has_receipt"] = 1 if data["has_receipt"] else 0
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        cursor = self.conn.execute(
            f"INSERT INTO transactions ({columns}) VALUES ({placeholders})",
            list(data.values())
        )
        self.conn.commit()
        return cursor.lastrowid

    def get_transaction(self, txn_id: int) -> Optional[Dict[str, Any]]:
        """Get a single transaction by ID."""
        cursor = self.conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (txn_id,)
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def update_transaction(self, txn_id: int, **kwargs) -> bool:
        """Update a transaction. Returns True if updated."""
        updates = {k: v for k, v in kwargs.items() if k in TRANSACTION_FIELDS}
        if not updates:
            return False
        if "has_receipt" in updates:
            updates["has_receipt"] = 1 if updates["has_receipt"] else 0

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        cursor = self.conn.execute(
            f"UPDATE transactions SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            list(updates.values()) + [txn_id]
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def delete_transaction(self, txn_id: int) -> bool:
        """Delete a transaction. Returns True if deleted."""
        cursor = self.conn.execute(
            "DELETE FROM transactions WHERE id = ?", (txn_id,)
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def _transaction_filters(
        self,
        type_: Optional[str] = None,
        recurrence_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ):
        clauses = []
        params: List[Any] = []
        if type_:
            clauses.append("type = ?")
            params.append(type_)
        if recurrence_id is not None:
            clauses.append("recurrence_id = ?")
            params.append(recurrence_id)
        if start_date:
            clauses.append("date >= ?")
            params.append(start_date)
        if end_date:
            clauses.append("date <= ?")
            params.append(end_date)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def get_all_transactions(
        self,
        type_: Optional[str] = None,
        recurrence_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Dict[str, Any]]:
        """Get transactions, newest date first, with optional filters."""
        where, params = self._transaction_filters(type_, recurrence_id, start_date, end_date)
        query = f"SELECT * FROM transactions{where} ORDER BY date DESC, id DESC"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params += [limit, offset]
        cursor = self.conn.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def count_transactions(
        self,
        type_: Optional[str] = None,
        recurrence_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> int:
        """Count transactions matching the same filters as get_all_transactions."""
        where, params = self._transaction_filters(type_, recurrence_id, start_date, end_date)
        row = self.conn.execute(f"SELECT COUNT(*) FROM transactions{where}", params).fetchone()
        return row[0]

    def get_totals(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Sum income and expenses over an optional date range."""
        where, params = self._transaction_filters(start_date=start_date, end_date=end_date)
        row = self.conn.execute(f"""
            SELECT
                COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) as income,
                COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) as expenses,
                COUNT(*) as count
            FROM transactions{where}
        """, params).fetchone()
        return {"income": row[0], "expenses": row[1], "count": row[2]}

    # === Savings Goals ===

    def create_goal(self, **fields) -> int:
        """Insert a goal from normalized fields. Returns the new ID."""
        data = {k: v for k, v in fields.items() if k in GOAL_FIELDS}
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        cursor = self.conn.execute(
            f"INSERT INTO goals ({columns}) VALUES ({placeholders})",
            list(data.values())
        )
        self.conn.commit()
        return cursor.lastrowid

    def _goal_from_row(self, row) -> Dict[str, Any]:
        goal = dict(row)
        # Progress as a percentage of the target
        goal["progress"] = (goal["saved_amount"] / goal["target_amount"] * 100) if goal["target_amount"] > 0 else 0
        return goal

    def get_goal(self, goal_id: int) -> Optional[Dict[str, Any]]:
        """Get a single goal with its progress."""
        cursor = self.conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,))
        row = cursor.fetchone()
        return self._goal_from_row(row) if row else None

    def get_all_goals(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get all goals, newest first."""
        query = "SELECT * FROM goals"
        params: List[Any] = []
        if status:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC, id DESC"
        cursor = self.conn.execute(query, params)
        return [self._goal_from_row(row) for row in cursor.fetchall()]

    def update_goal(self, goal_id: int, **kwargs) -> bool:
        """Update a goal. Returns True if updated."""
        updates = {k: v for k, v in kwargs.items() if k in GOAL_FIELDS}
        if not updates:
            return False

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        cursor = self.conn.execute(
            f"UPDATE goals SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            list(updates.values()) + [goal_id]
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def delete_goal(self, goal_id: int) -> bool:
        """Delete a goal. Returns True if deleted."""
        cursor = self.conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    # === Admin ===

    def reset_all_data(self) -> Dict[str, int]:
        """Delete all series, exceptions, transactions and goals. Categories are kept."""
        counts = {}
        for table in ("transactions", "recurring_exceptions", "recurring_series", "goals"):
            counts[table] = self.conn.execute(f"DELETE FROM {table}").rowcount
        self.conn.commit()
        return counts

