"""SQLite schema definitions for the finance tracker."""

SCHEMA_SQL = """
-- Categories table
CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL  -- income, expense
);

-- Recurring series definitions
CREATE TABLE IF NOT EXISTS recurring_series (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    amount REAL NOT NULL DEFAULT 0,
    type TEXT NOT NULL DEFAULT 'expense',  -- income, expense
    category_id TEXT,
    category_name TEXT,
    owner_id TEXT,  -- NULL for shared series
    owner_type TEXT NOT NULL DEFAULT 'shared',  -- individual, shared
    frequency TEXT NOT NULL DEFAULT 'monthly',  -- daily, weekly, bi-weekly, monthly
    start_date TEXT NOT NULL,
    end_date TEXT,  -- NULL means open-ended
    anchor_day INTEGER NOT NULL DEFAULT 1,  -- Day of month for monthly series
    status TEXT NOT NULL DEFAULT 'active',  -- active, paused
    paused_from TEXT,  -- Dates from here on are dropped while paused
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (category_id) REFERENCES categories(id)
);

-- Transactions: manual one-time entries and materialized series occurrences
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    name TEXT NOT NULL,
    amount REAL NOT NULL,
    type TEXT NOT NULL,  -- income, expense
    category_id TEXT,
    category_name TEXT,
    owner_id TEXT,
    owner_type TEXT NOT NULL DEFAULT 'shared',
    frequency TEXT NOT NULL DEFAULT 'one-time',
    recurrence_id INTEGER,  -- Owning series, NULL for manual entries
    occurrence_date TEXT,  -- Logical series date of the occurrence
    has_receipt INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (category_id) REFERENCES categories(id)
);

-- Per-date overrides, keyed '<series>_<date>_<manual|pause>'
CREATE TABLE IF NOT EXISTS recurring_exceptions (
    id TEXT PRIMARY KEY,
    recurrence_id INTEGER NOT NULL,
    date TEXT NOT NULL,
    kind TEXT NOT NULL,  -- manual-delete, pause-skip
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Savings goals
CREATE TABLE IF NOT EXISTS goals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    target_amount REAL NOT NULL,
    saved_amount REAL NOT NULL DEFAULT 0,  -- Never above target_amount
    deadline TEXT,  -- ISO date the goal should be reached by
    owner_id TEXT,  -- NULL for shared goals
    owner_type TEXT NOT NULL DEFAULT 'shared',  -- individual, shared
    status TEXT NOT NULL DEFAULT 'active',  -- active, completed
    icon TEXT DEFAULT 'target',  -- Icon name for UI
    color TEXT DEFAULT 'slate',  -- slate, amber, stone, red
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
CREATE INDEX IF NOT EXISTS idx_transactions_recurrence ON transactions(recurrence_id);
CREATE INDEX IF NOT EXISTS idx_transactions_type ON transactions(type);
CREATE INDEX IF NOT EXISTS idx_exceptions_recurrence ON recurring_exceptions(recurrence_id);
CREATE INDEX IF NOT EXISTS idx_series_status ON recurring_series(status);
CREATE INDEX IF NOT EXISTS idx_goals_status ON goals(status);
"""

# Default category insert
DEFAULT_CATEGORIES_SQL = """
INSERT OR IGNORE INTO categories (id, name, type) VALUES
    ('salary', 'Salary', 'income'),
    ('freelance', 'Freelance', 'income'),
    ('gift', 'Gift', 'income'),
    ('other', 'Other', 'income'),
    ('housing', 'Housing', 'expense'),
    ('food', 'Food', 'expense'),
    ('groceries', 'Groceries', 'expense'),
    ('transport', 'Transport', 'expense'),
    ('shopping', 'Shopping', 'expense'),
    ('utilities', 'Utilities', 'expense'),
    ('entertainment', 'Entertainment', 'expense'),
    ('health', 'Health', 'expense'),
    ('misc', 'Misc', 'expense');
"""
