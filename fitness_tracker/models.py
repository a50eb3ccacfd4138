"""Data models for the fitness tracking application."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional


@dataclass
class Profile:
    """User profile. Height and weight are in the units of `unit_system`."""
    id: Optional[int]
    name: str
    age: int
    height: float  # cm or in
    weight: float  # kg or lb
    sex: str  # male, female, other, not_specified
    unit_system: str = "metric"  # metric or imperial
    activity_level: str = "moderately_active"
    target_weight: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def uses_metric(self) -> bool:
        return self.unit_system == "metric"


@dataclass(frozen=True)
class WeightSample:
    """A single weight measurement, in the profile's units."""
    logged_at: datetime
    weight: float
    id: Optional[int] = None


@dataclass(frozen=True)
class Exercise:
    """A single exercise within a workout."""
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[float] = None


@dataclass(frozen=True)
class WorkoutSession:
    """A logged workout."""
    logged_at: datetime
    workout_type: str  # cardio, strength, flexibility, hiit, yoga, other
    duration_seconds: float
    intensity: str = "moderate"  # low, moderate, high, very_high
    exercises: tuple = ()  # Tuple[Exercise]
    calories_burned: Optional[int] = None
    notes: Optional[str] = None
    id: Optional[int] = None

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60


@dataclass(frozen=True)
class CalorieEntry:
    """A logged meal or snack."""
    logged_at: datetime
    meal_type: str  # breakfast, lunch, dinner, snack
    calories: float
    description: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class ActivitySnapshot:
    """Immutable view of a profile and its histories, handed to calculators."""
    profile: Profile
    weights: tuple = ()  # Tuple[WeightSample]
    calories: tuple = ()  # Tuple[CalorieEntry]
    workouts: tuple = ()  # Tuple[WorkoutSession]

    @classmethod
    def of(cls, profile: Profile, weights=(), calories=(), workouts=()) -> "ActivitySnapshot":
        """Build a snapshot, copying every history into a tuple."""
        return cls(
            profile=profile,
            weights=tuple(weights),
            calories=tuple(calories),
            workouts=tuple(workouts),
        )


@dataclass(frozen=True)
class EnergyTargets:
    """Daily energy figures calculated for a user."""
    bmr: float
    daily_calories: float
    goal_calories: Optional[float] = None


@dataclass(frozen=True)
class AchievementDefinition:
    """A catalog entry.

    `rule` maps an evaluation context to a progress fraction in [0, 1];
    the achievement unlocks once it reaches 1.0.
    """
    id: str
    title: str
    description: str
    category: str  # weight, calories, consistency, milestones
    points: int
    rule: Callable = field(compare=False, repr=False)


@dataclass(frozen=True)
class AchievementState:
    """Locked (with progress) or unlocked (with a timestamp) for one achievement."""
    achievement_id: str
    progress: float = 0.0
    unlocked_at: Optional[datetime] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None

    @classmethod
    def locked(cls, achievement_id: str, progress: float = 0.0) -> "AchievementState":
        return cls(achievement_id, max(0.0, min(progress, 1.0)))

    @classmethod
    def unlocked(cls, achievement_id: str, at: datetime) -> "AchievementState":
        return cls(achievement_id, 1.0, at)


@dataclass(frozen=True)
class LevelInfo:
    """Level reached for a cumulative point total."""
    level: int
    title: str
    total_points: int
    points_in_level: int
    points_to_next_level: int

    @property
    def is_max_level(self) -> bool:
        return self.points_to_next_level == 0


@dataclass(frozen=True)
class EvaluationResult:
    """Output of one achievement evaluation pass."""
    states: dict  # achievement id -> AchievementState
    streak: int
    total_points: int
    level: LevelInfo
    newly_unlocked: tuple = ()  # Tuple[str]


@dataclass(frozen=True)
class Insight:
    """A rule-based observation about a workout history."""
    title: str
    description: str
    kind: str  # suggestion, achievement, warning


@dataclass
class CalorieSummary:
    """Aggregated calorie intake for a time period."""
    period_label: str
    total_calories: float
    num_entries: int
    num_days: int
    target: Optional[float] = None
    by_meal: dict = field(default_factory=dict)

    @property
    def daily_average(self) -> float:
        if self.num_days == 0:
            return 0.0
        return self.total_calories / self.num_days

    def adherence_pct(self) -> Optional[float]:
        """How close the daily average is to the target (100% = perfect)."""
        if not self.target or self.num_days == 0:
            return None
        return round(max(0, 100 - abs(self.daily_average - self.target) / self.target * 100), 1)


def calendar_day(moment) -> date:
    """Calendar day of a datetime, or the date itself."""
    if isinstance(moment, datetime):
        return moment.date()
    return moment
