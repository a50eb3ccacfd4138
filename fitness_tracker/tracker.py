"""History tracking: weight, calorie and workout logs plus achievement state.

Histories are append/delete-only. Weights are stored in kilograms and
converted to the profile's unit system when a snapshot is loaded, so a
unit toggle never rewrites past entries.
"""

import json
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fitness_tracker.config import INTENSITIES, LB_TO_KG, MEAL_TYPES, WORKOUT_TYPES
from fitness_tracker.db import DB_PATH, get_connection
from fitness_tracker.errors import DomainError, NotFoundError
from fitness_tracker.models import (
    AchievementState,
    ActivitySnapshot,
    CalorieEntry,
    CalorieSummary,
    Exercise,
    WeightSample,
    WorkoutSession,
    calendar_day,
)
from fitness_tracker.profile_store import load_profile
from fitness_tracker.units import require_finite, to_kg

logger = logging.getLogger(__name__)

_TABLES = {
    "weight": "weight_log",
    "calories": "calorie_log",
    "workout": "workout_log",
}


# --- Logging entries ---

def log_weight(
    user_id: int,
    weight: float,
    unit_system: str = "metric",
    logged_at: Optional[datetime] = None,
    db_path: str = DB_PATH,
) -> int:
    """Log a weight measurement given in `unit_system`. Returns the entry ID."""
    require_finite(weight, "weight")
    if weight <= 0:
        raise DomainError(f"Weight must be positive, got {weight}", {"field": "weight"})
    if logged_at is None:
        logged_at = datetime.now()

    with get_connection(db_path) as conn:
        cursor = conn.execute(
            "INSERT INTO weight_log (user_id, weight_kg, logged_at) VALUES (?, ?, ?)",
            (user_id, to_kg(weight, unit_system), logged_at.isoformat()),
        )
        return cursor.lastrowid


def is_latest_weight(user_id: int, logged_at: datetime, db_path: str = DB_PATH) -> bool:
    """True if no weight sample is logged after `logged_at`."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT 1 FROM weight_log WHERE user_id = ? AND logged_at > ? LIMIT 1",
            (user_id, logged_at.isoformat()),
        ).fetchone()
    return row is None


def log_calories(
    user_id: int,
    calories: float,
    meal_type: str,
    description: Optional[str] = None,
    logged_at: Optional[datetime] = None,
    db_path: str = DB_PATH,
) -> int:
    """Log a meal. Returns the entry ID."""
    require_finite(calories, "calories")
    if calories < 0:
        raise DomainError(f"Calories cannot be negative, got {calories}", {"field": "calories"})
    if meal_type not in MEAL_TYPES:
        raise DomainError(f"Invalid meal type {meal_type!r}. Choose from: {', '.join(MEAL_TYPES)}")
    if logged_at is None:
        logged_at = datetime.now()

    with get_connection(db_path) as conn:
        cursor = conn.execute(
            """INSERT INTO calorie_log (user_id, meal_type, calories, description, logged_at)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, meal_type, calories, description, logged_at.isoformat()),
        )
        return cursor.lastrowid


def _validate_workout(workout: WorkoutSession) -> None:
    require_finite(workout.duration_seconds, "duration")
    if workout.duration_seconds <= 0:
        raise DomainError("Workout duration must be positive", {"field": "duration"})
    if workout.workout_type not in WORKOUT_TYPES:
        raise DomainError(
            f"Invalid workout type {workout.workout_type!r}. Choose from: {', '.join(WORKOUT_TYPES)}"
        )
    if workout.intensity not in INTENSITIES:
        raise DomainError(
            f"Invalid intensity {workout.intensity!r}. Choose from: {', '.join(INTENSITIES)}"
        )


def _insert_workout(conn, user_id: int, workout: WorkoutSession) -> int:
    cursor = conn.execute(
        """INSERT INTO workout_log (user_id, workout_type, duration_seconds, intensity,
           exercises, calories_burned, notes, logged_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            user_id,
            workout.workout_type,
            workout.duration_seconds,
            workout.intensity,
            json.dumps([
                {"name": e.name, "sets": e.sets, "reps": e.reps,
                 "weight_kg": e.weight_kg, "duration_seconds": e.duration_seconds}
                for e in workout.exercises
            ]),
            workout.calories_burned,
            workout.notes,
            workout.logged_at.isoformat(),
        ),
    )
    return cursor.lastrowid


def log_workout(user_id: int, workout: WorkoutSession, db_path: str = DB_PATH) -> int:
    """Log a workout. Returns the entry ID."""
    _validate_workout(workout)
    with get_connection(db_path) as conn:
        return _insert_workout(conn, user_id, workout)


def _workout_key(workout: WorkoutSession) -> tuple:
    return (calendar_day(workout.logged_at), workout.workout_type)


def sync_workouts(user_id: int, workouts, db_path: str = DB_PATH) -> int:
    """Add externally recorded workouts, skipping any whose day and type already exist.

    Returns the number of workouts added.
    """
    existing = {_workout_key(w) for w in get_workouts(user_id, db_path)}
    added = 0
    with get_connection(db_path) as conn:
        for workout in workouts:
            key = _workout_key(workout)
            if key in existing:
                continue
            _validate_workout(workout)
            _insert_workout(conn, user_id, workout)
            existing.add(key)
            added += 1
    logger.info("Synced %d new workout(s) for user %d", added, user_id)
    return added


def delete_entry(kind: str, entry_id: int, db_path: str = DB_PATH) -> None:
    """Delete a weight, calories or workout entry by ID."""
    table = _TABLES.get(kind)
    if table is None:
        raise ValueError(f"Unknown history kind {kind!r}")
    with get_connection(db_path) as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (entry_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"No {kind} entry with ID {entry_id}", {"id": entry_id})


def delete_weight(entry_id: int, db_path: str = DB_PATH) -> None:
    delete_entry("weight", entry_id, db_path)


def delete_calories(entry_id: int, db_path: str = DB_PATH) -> None:
    delete_entry("calories", entry_id, db_path)


def delete_workout(entry_id: int, db_path: str = DB_PATH) -> None:
    delete_entry("workout", entry_id, db_path)


# --- Reading histories ---

def get_weights(user_id: int, unit_system: str = "metric", db_path: str = DB_PATH) -> list:
    """Weight samples in `unit_system`, oldest first."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM weight_log WHERE user_id = ? ORDER BY logged_at",
            (user_id,),
        ).fetchall()

    # Exact inverse of the lb->kg factor used when logging
    factor = 1.0 if unit_system == "metric" else 1 / LB_TO_KG
    return [
        WeightSample(
            logged_at=datetime.fromisoformat(row["logged_at"]),
            weight=row["weight_kg"] * factor,
            id=row["id"],
        )
        for row in rows
    ]


def get_calorie_entries(
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db_path: str = DB_PATH,
) -> list:
    """Calorie entries, optionally within a date range, oldest first."""
    query = "SELECT * FROM calorie_log WHERE user_id = ?"
    params = [user_id]
    if start_date is not None:
        query += " AND date(logged_at) >= ?"
        params.append(start_date.isoformat())
    if end_date is not None:
        query += " AND date(logged_at) <= ?"
        params.append(end_date.isoformat())
    query += " ORDER BY logged_at"

    with get_connection(db_path) as conn:
        rows = conn.execute(query, params).fetchall()

    return [
        CalorieEntry(
            logged_at=datetime.fromisoformat(row["logged_at"]),
            meal_type=row["meal_type"],
            calories=row["calories"],
            description=row["description"],
            id=row["id"],
        )
        for row in rows
    ]


def get_workouts(user_id: int, db_path: str = DB_PATH) -> list:
    """All workouts, oldest first."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM workout_log WHERE user_id = ? ORDER BY logged_at",
            (user_id,),
        ).fetchall()

    workouts = []
    for row in rows:
        exercises_raw = json.loads(row["exercises"]) if row["exercises"] else []
        workouts.append(WorkoutSession(
            logged_at=datetime.fromisoformat(row["logged_at"]),
            workout_type=row["workout_type"],
            duration_seconds=row["duration_seconds"],
            intensity=row["intensity"],
            exercises=tuple(Exercise(**e) for e in exercises_raw),
            calories_burned=row["calories_burned"],
            notes=row["notes"],
            id=row["id"],
        ))
    return workouts


def load_snapshot(user_id: int = 1, db_path: str = DB_PATH) -> ActivitySnapshot:
    """Load a profile and all of its histories as one immutable snapshot."""
    profile = load_profile(user_id, db_path)
    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found", {"id": user_id})
    return ActivitySnapshot.of(
        profile,
        weights=get_weights(user_id, profile.unit_system, db_path),
        calories=get_calorie_entries(user_id, db_path=db_path),
        workouts=get_workouts(user_id, db_path),
    )


# --- Achievement state ---

def load_achievement_states(user_id: int = 1, db_path: str = DB_PATH) -> dict:
    """Stored achievement states keyed by achievement ID."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM achievement_state WHERE user_id = ?", (user_id,)
        ).fetchall()

    states = {}
    for row in rows:
        unlocked_at = row["unlocked_at"]
        if unlocked_at:
            state = AchievementState.unlocked(row["achievement_id"], datetime.fromisoformat(unlocked_at))
        else:
            state = AchievementState.locked(row["achievement_id"], row["progress"])
        states[row["achievement_id"]] = state
    return states


def save_achievement_states(user_id: int, states: dict, db_path: str = DB_PATH) -> None:
    """Upsert achievement states. A stored unlock is never cleared."""
    with get_connection(db_path) as conn:
        for state in states.values():
            conn.execute(
                """INSERT INTO achievement_state (user_id, achievement_id, progress, unlocked_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(user_id, achievement_id) DO UPDATE SET
                       unlocked_at = COALESCE(achievement_state.unlocked_at, excluded.unlocked_at),
                       progress = CASE WHEN achievement_state.unlocked_at IS NOT NULL
                                       THEN 1.0 ELSE excluded.progress END""",
                (
                    user_id,
                    state.achievement_id,
                    state.progress,
                    state.unlocked_at.isoformat() if state.unlocked_at else None,
                ),
            )


# --- Summaries ---

def calorie_summary(
    user_id: int,
    start_date: date,
    end_date: date,
    period_label: str,
    target: Optional[float] = None,
    db_path: str = DB_PATH,
) -> CalorieSummary:
    """Aggregate calorie intake over a date range."""
    entries = get_calorie_entries(user_id, start_date, end_date, db_path)
    by_meal = {}
    for entry in entries:
        by_meal[entry.meal_type] = by_meal.get(entry.meal_type, 0.0) + entry.calories
    return CalorieSummary(
        period_label=period_label,
        total_calories=sum(e.calories for e in entries),
        num_entries=len(entries),
        num_days=len({calendar_day(e.logged_at) for e in entries}),
        target=target,
        by_meal=by_meal,
    )


def daily_summary(
    user_id: int,
    target_date: date,
    target: Optional[float] = None,
    db_path: str = DB_PATH,
) -> CalorieSummary:
    """Calorie summary for a single day."""
    return calorie_summary(user_id, target_date, target_date, target_date.isoformat(), target, db_path)


def weekly_summary(
    user_id: int,
    week_start: date,
    target: Optional[float] = None,
    db_path: str = DB_PATH,
) -> CalorieSummary:
    """Calorie summary for a week (Mon-Sun)."""
    # Adjust to Monday
    adjusted = week_start - timedelta(days=week_start.weekday())
    week_end = adjusted + timedelta(days=6)
    return calorie_summary(
        user_id, adjusted, week_end, f"Week of {adjusted.isoformat()}", target, db_path,
    )


def format_summary(summary: CalorieSummary) -> str:
    """Format a calorie summary for display."""
    lines = [
        f"Calorie Summary: {summary.period_label}",
        "=" * 45,
        f"Entries logged: {summary.num_entries} across {summary.num_days} day(s)",
    ]

    if summary.num_days > 0:
        lines.append(f"\nTotal:          {summary.total_calories:.0f} kcal")
        for meal_type in MEAL_TYPES:
            if meal_type in summary.by_meal:
                lines.append(f"  {meal_type.capitalize():<12}  {summary.by_meal[meal_type]:.0f} kcal")
        if summary.num_days > 1:
            lines.append(f"Daily average:  {summary.daily_average:.0f} kcal")

        adherence = summary.adherence_pct()
        if adherence is not None:
            lines.append(f"\nTarget: {summary.target:.0f} kcal/day, adherence {adherence}%")
    else:
        lines.append("\nNo meals logged for this period.")

    return "\n".join(lines)
