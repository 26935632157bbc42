"""Database initialization and connection management."""
import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "APLUS_STUDY_DB", str(Path.home() / ".aplus_study" / "study.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS card_schedules (
    card_id TEXT PRIMARY KEY,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval INTEGER NOT NULL DEFAULT 0,
    repetitions INTEGER NOT NULL DEFAULT 0,
    next_review TEXT NOT NULL,
    last_review TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS objective_progress (
    exam TEXT NOT NULL,
    objective_id TEXT NOT NULL,
    mastery TEXT NOT NULL DEFAULT 'not_started',
    quiz_scores TEXT NOT NULL DEFAULT '[]',
    flashcards_reviewed INTEGER NOT NULL DEFAULT 0,
    last_studied TEXT,
    PRIMARY KEY (exam, objective_id)
);

CREATE TABLE IF NOT EXISTS streak (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    current_streak INTEGER NOT NULL,
    longest_streak INTEGER NOT NULL,
    last_study_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS quiz_history (
    id TEXT PRIMARY KEY,
    taken_at TEXT NOT NULL,
    exam TEXT NOT NULL,
    domain TEXT,
    objective_id TEXT,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    score INTEGER NOT NULL,
    question_results TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS exam_results (
    id TEXT PRIMARY KEY,
    taken_at TEXT NOT NULL,
    exam TEXT NOT NULL,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    score INTEGER NOT NULL,
    time_spent INTEGER NOT NULL,
    passed INTEGER NOT NULL,
    question_results TEXT NOT NULL DEFAULT '[]',
    domain_scores TEXT NOT NULL DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
