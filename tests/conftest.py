"""
Pytest configuration and fixtures shared by the test suite.
"""
import pytest
from pathlib import Path

TODAY = "2026-03-10"


@pytest.fixture
def temp_db_path(tmp_path) -> Path:
    """Path to a fresh SQLite database file."""
    return tmp_path / "test.db"


@pytest.fixture
def store(temp_db_path):
    """Open store on a temporary database."""
    from finance_tracker.db.sqlite_store import SQLiteStore

    with SQLiteStore(temp_db_path) as store:
        yield store


@pytest.fixture
def service(temp_db_path):
    """Finance service pinned to a fixed 'today'."""
    from finance_tracker.api.finance_service import FinanceService

    with FinanceService(db_path=temp_db_path, today=lambda: TODAY) as service:
        yield service


@pytest.fixture
def make_series():
    """Factory for in-memory series definitions."""
    from finance_tracker.recurring.models import RecurringSeries

    def _make(**overrides):
        fields = {
            "id": 1,
            "name": "Rent",
            "amount": 1200.0,
            "type": "expense",
            "category_id": "housing",
            "category_name": "Housing",
            "owner_id": None,
            "owner_type": "shared",
            "frequency": "monthly",
            "start_date": "2026-01-01",
            "anchor_day": 1,
        }
        fields.update(overrides)
        return RecurringSeries(**fields)

    return _make


@pytest.fixture
def rent_series_input():
    """Raw input for a monthly rent series."""
    return {
        "name": "Rent",
        "amount": 1200,
        "type": "expense",
        "category_id": "housing",
        "frequency": "monthly",
        "start_date": "2026-01-31",
    }
