"""Database setup and access layer using SQLite."""

import logging
import os
import sqlite3
from contextlib import contextmanager

from fitness_tracker.config import DB_PATH

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    age INTEGER NOT NULL,
    height REAL NOT NULL,
    weight REAL NOT NULL,
    sex TEXT NOT NULL CHECK(sex IN ('male', 'female', 'other', 'not_specified')),
    unit_system TEXT NOT NULL DEFAULT 'metric' CHECK(unit_system IN ('metric', 'imperial')),
    activity_level TEXT NOT NULL,
    target_weight REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS weight_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    weight_kg REAL NOT NULL,
    logged_at TIMESTAMP NOT NULL,
    FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS calorie_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    meal_type TEXT NOT NULL CHECK(meal_type IN ('breakfast', 'lunch', 'dinner', 'snack')),
    calories REAL NOT NULL,
    description TEXT,
    logged_at TIMESTAMP NOT NULL,
    FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS workout_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    workout_type TEXT NOT NULL,
    duration_seconds REAL NOT NULL,
    intensity TEXT NOT NULL DEFAULT 'moderate',
    exercises TEXT DEFAULT '[]',
    calories_burned INTEGER,
    notes TEXT,
    logged_at TIMESTAMP NOT NULL,
    FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS achievement_state (
    user_id INTEGER NOT NULL,
    achievement_id TEXT NOT NULL,
    progress REAL NOT NULL DEFAULT 0,
    unlocked_at TIMESTAMP,
    PRIMARY KEY (user_id, achievement_id),
    FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_weight_log_user_date ON weight_log(user_id, logged_at);
CREATE INDEX IF NOT EXISTS idx_calorie_log_user_date ON calorie_log(user_id, logged_at);
CREATE INDEX IF NOT EXISTS idx_workout_log_user_date ON workout_log(user_id, logged_at);
"""


def init_db(db_path: str = DB_PATH) -> None:
    """Initialize the database, creating tables if they don't exist."""
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
    logger.debug("Initialized database at %s", db_path)


@contextmanager
def get_connection(db_path: str = DB_PATH):
    """Context manager for database connections."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
