"""Profile persistence layer - CRUD operations for user profiles."""

import dataclasses
import logging
from datetime import datetime
from typing import Optional

from fitness_tracker.config import ACTIVITY_MULTIPLIERS, SEXES, UNIT_SYSTEMS
from fitness_tracker.db import DB_PATH, get_connection
from fitness_tracker.errors import DomainError, NotFoundError
from fitness_tracker.models import Profile
from fitness_tracker.units import require_finite, toggle_units

logger = logging.getLogger(__name__)


def validate_profile(profile: Profile) -> None:
    """Reject profiles the calculators cannot work with."""
    require_finite(profile.height, "height")
    require_finite(profile.weight, "weight")
    if profile.height <= 0 or profile.weight <= 0:
        raise DomainError("Height and weight must be positive")
    if profile.age < 0:
        raise DomainError(f"Age cannot be negative, got {profile.age}", {"field": "age"})
    if profile.target_weight is not None:
        require_finite(profile.target_weight, "target_weight")
        if profile.target_weight <= 0:
            raise DomainError("Target weight must be positive", {"field": "target_weight"})
    if profile.sex not in SEXES:
        raise DomainError(f"Invalid sex {profile.sex!r}. Choose from: {', '.join(SEXES)}")
    if profile.unit_system not in UNIT_SYSTEMS:
        raise DomainError(f"Invalid unit system {profile.unit_system!r}")
    if profile.activity_level not in ACTIVITY_MULTIPLIERS:
        raise DomainError(
            f"Invalid activity level {profile.activity_level!r}. "
            f"Choose from: {', '.join(ACTIVITY_MULTIPLIERS)}"
        )


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    # CURRENT_TIMESTAMP defaults use a space separator
    return datetime.fromisoformat(value.replace(" ", "T"))


def _row_to_profile(row) -> Profile:
    return Profile(
        id=row["id"],
        name=row["name"],
        age=row["age"],
        height=row["height"],
        weight=row["weight"],
        sex=row["sex"],
        unit_system=row["unit_system"],
        activity_level=row["activity_level"],
        target_weight=row["target_weight"],
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def save_profile(profile: Profile, db_path: str = DB_PATH) -> int:
    """Save a new profile. Returns the profile ID."""
    validate_profile(profile)
    with get_connection(db_path) as conn:
        cursor = conn.execute(
            """INSERT INTO profiles (name, age, height, weight, sex, unit_system,
               activity_level, target_weight)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (profile.name, profile.age, profile.height, profile.weight, profile.sex,
             profile.unit_system, profile.activity_level, profile.target_weight),
        )
        logger.info("Created profile %d for %s", cursor.lastrowid, profile.name)
        return cursor.lastrowid


def update_profile(profile: Profile, db_path: str = DB_PATH) -> None:
    """Overwrite the stored profile with the same ID."""
    validate_profile(profile)
    with get_connection(db_path) as conn:
        cursor = conn.execute(
            """UPDATE profiles SET name=?, age=?, height=?, weight=?, sex=?, unit_system=?,
               activity_level=?, target_weight=?, updated_at=?
               WHERE id=?""",
            (profile.name, profile.age, profile.height, profile.weight, profile.sex,
             profile.unit_system, profile.activity_level, profile.target_weight,
             datetime.now().isoformat(), profile.id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Profile {profile.id} not found", {"id": profile.id})


def load_profile(user_id: int = 1, db_path: str = DB_PATH) -> Optional[Profile]:
    """Load a profile by ID, or None if it doesn't exist."""
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
        if not row:
            return None
        return _row_to_profile(row)


def toggle_profile_units(user_id: int = 1, db_path: str = DB_PATH) -> Profile:
    """Switch a stored profile between metric and imperial."""
    profile = load_profile(user_id, db_path)
    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found", {"id": user_id})
    toggled = toggle_units(profile)
    update_profile(toggled, db_path)
    return toggled


def set_weight(user_id: int, weight: float, db_path: str = DB_PATH) -> Profile:
    """Update the current weight of a stored profile."""
    profile = load_profile(user_id, db_path)
    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found", {"id": user_id})
    profile = dataclasses.replace(profile, weight=weight)
    update_profile(profile, db_path)
    return profile
