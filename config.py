"""Configuration settings for the finance tracker."""
from pathlib import Path
from typing import Dict, List

# Paths
DATA_DIR = Path.home() / ".finance_tracker"
DB_PATH = DATA_DIR / "finance.db"

# Recurring engine
RECURRING_HORIZON_MONTHS = 24  # How far ahead occurrences are materialized
RECURRING_FREQUENCIES = ["daily", "weekly", "bi-weekly", "monthly"]
DEFAULT_FREQUENCY = "monthly"
FREQUENCY_STEP_DAYS = {
    "daily": 1,
    "weekly": 7,
    "bi-weekly": 14,
}
SERIES_STATUSES = ["active", "paused"]
EXCEPTION_KINDS = ["manual-delete", "pause-skip"]

# Transactions
TRANSACTION_TYPES = ["income", "expense"]
OWNER_TYPES = ["individual", "shared"]
ONE_TIME_FREQUENCY = "one-time"
DEFAULT_PAGE_LIMIT = 100

# Savings goals
GOAL_STATUSES = ["active", "completed"]
GOAL_COLORS = ["slate", "amber", "stone", "red"]
DEFAULT_GOAL_COLOR = "slate"
DEFAULT_GOAL_ICON = "target"

# Default categories
DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"id": "salary", "name": "Salary", "type": "income"},
    {"id": "freelance", "name": "Freelance", "type": "income"},
    {"id": "gift", "name": "Gift", "type": "income"},
    {"id": "other", "name": "Other", "type": "income"},
    {"id": "housing", "name": "Housing", "type": "expense"},
    {"id": "food", "name": "Food", "type": "expense"},
    {"id": "groceries", "name": "Groceries", "type": "expense"},
    {"id": "transport", "name": "Transport", "type": "expense"},
    {"id": "shopping", "name": "Shopping", "type": "expense"},
    {"id": "utilities", "name": "Utilities", "type": "expense"},
    {"id": "entertainment", "name": "Entertainment", "type": "expense"},
    {"id": "health", "name": "Health", "type": "expense"},
    {"id": "misc", "name": "Misc", "type": "expense"},
]

# Category used when nothing else matches
FALLBACK_CATEGORY_IDS = {
    "income": "other",
    "expense": "misc",
}


def ensure_data_dir() -> Path:
    """Ensure the data directory exists."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR
