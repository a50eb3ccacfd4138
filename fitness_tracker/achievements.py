"""Activity streaks, the achievement catalog and the leveling curve.

Evaluation is a pure reducer: `evaluate(states, snapshot)` returns new
states and never mutates its inputs. An unlocked achievement stays
unlocked on every later pass, so running it twice over the same
histories awards nothing twice.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Mapping, Optional

from fitness_tracker.config import (
    CALORIE_GOAL_DAYS,
    CALORIE_GOAL_TOLERANCE,
    LEVEL_THRESHOLDS,
    LEVEL_TITLES,
    WEIGHT_GOAL_TOLERANCE,
    WORKOUT_WINDOW_DAYS,
)
from fitness_tracker.energy import DEFAULT_GOAL_POLICY, GoalPolicy, calculate_energy_targets
from fitness_tracker.models import (
    AchievementDefinition,
    AchievementState,
    ActivitySnapshot,
    EvaluationResult,
    LevelInfo,
    calendar_day,
)

logger = logging.getLogger(__name__)


# --- Streaks ---

def days_with_records(records) -> set:
    """Calendar days on which at least one record was logged."""
    return {calendar_day(r.logged_at) for r in records}


def activity_days(snapshot: ActivitySnapshot) -> set:
    """Days with any weight, calorie or workout record."""
    return (
        days_with_records(snapshot.weights)
        | days_with_records(snapshot.calories)
        | days_with_records(snapshot.workouts)
    )


def current_streak(days: set, today: date) -> int:
    """Consecutive days ending today that appear in `days`."""
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


# --- Rules ---

class EvaluationContext:
    """Derived values shared by the rules during a single pass."""

    def __init__(self, snapshot: ActivitySnapshot, today: date, policy: GoalPolicy):
        self.snapshot = snapshot
        self.today = today
        self.policy = policy
        self.streak = current_streak(activity_days(snapshot), today)
        self.weight_streak = current_streak(days_with_records(snapshot.weights), today)
        self.workout_streak = current_streak(days_with_records(snapshot.workouts), today)
        self._calorie_target = None

    @property
    def calorie_target(self) -> float:
        if self._calorie_target is None:
            targets = calculate_energy_targets(self.snapshot.profile, self.policy)
            if targets.goal_calories is not None:
                self._calorie_target = targets.goal_calories
            else:
                self._calorie_target = targets.daily_calories
        return self._calorie_target


def _fraction(value: float, threshold: float) -> float:
    return min(1.0, value / threshold)


def _count_at_least(count_of, threshold: int):
    def rule(ctx: EvaluationContext) -> float:
        return _fraction(count_of(ctx), threshold)
    return rule


def _weight_goal_progress(ctx: EvaluationContext) -> float:
    profile = ctx.snapshot.profile
    if profile.target_weight is None:
        return 0.0
    if abs(profile.weight - profile.target_weight) < WEIGHT_GOAL_TOLERANCE:
        return 1.0
    if not ctx.snapshot.weights:
        return 0.0
    start = min(ctx.snapshot.weights, key=lambda s: s.logged_at).weight
    gap = start - profile.target_weight
    if gap == 0:
        return 0.0
    return max(0.0, min((start - profile.weight) / gap, 0.99))


def _calorie_goal_days(ctx: EvaluationContext) -> int:
    """Consecutive days ending today whose intake is near the calorie target."""
    if not ctx.snapshot.calories:
        return 0
    totals = {}
    for entry in ctx.snapshot.calories:
        day = calendar_day(entry.logged_at)
        totals[day] = totals.get(day, 0.0) + entry.calories

    target = ctx.calorie_target
    met = {
        day for day, total in totals.items()
        if abs(total - target) <= target * CALORIE_GOAL_TOLERANCE
    }
    return current_streak(met, ctx.today)


def _workouts_in_window(ctx: EvaluationContext) -> int:
    start = ctx.today - timedelta(days=WORKOUT_WINDOW_DAYS - 1)
    return sum(
        1 for w in ctx.snapshot.workouts
        if start <= calendar_day(w.logged_at) <= ctx.today
    )


CATALOG = (
    AchievementDefinition(
        "first_weight_entry", "First Step", "Log your first weight entry",
        "weight", 10, _count_at_least(lambda ctx: len(ctx.snapshot.weights), 1),
    ),
    AchievementDefinition(
        "weight_goal_reached", "Goal Achiever", "Reach your weight goal",
        "weight", 50, _weight_goal_progress,
    ),
    AchievementDefinition(
        "weight_consistency", "Consistent Tracker", "Log weight for 7 days in a row",
        "consistency", 30, _count_at_least(lambda ctx: ctx.weight_streak, 7),
    ),
    AchievementDefinition(
        "first_meal_logged", "Food Logger", "Log your first meal",
        "calories", 10, _count_at_least(lambda ctx: len(ctx.snapshot.calories), 1),
    ),
    AchievementDefinition(
        "calorie_goal_met", "Calorie Master", "Meet your calorie goal for 3 days in a row",
        "calories", 40, _count_at_least(_calorie_goal_days, CALORIE_GOAL_DAYS),
    ),
    AchievementDefinition(
        "one_week_streak", "One Week Strong", "Use the app for 7 consecutive days",
        "milestones", 25, _count_at_least(lambda ctx: ctx.streak, 7),
    ),
    AchievementDefinition(
        "one_month_streak", "Monthly Master", "Use the app for 30 consecutive days",
        "milestones", 100, _count_at_least(lambda ctx: ctx.streak, 30),
    ),
    AchievementDefinition(
        "first_workout", "First Workout", "Complete your first workout",
        "milestones", 15, _count_at_least(lambda ctx: len(ctx.snapshot.workouts), 1),
    ),
    AchievementDefinition(
        "workout_streak_3", "3-Day Workout Streak", "Workout for 3 consecutive days",
        "consistency", 30, _count_at_least(lambda ctx: ctx.workout_streak, 3),
    ),
    AchievementDefinition(
        "workout_streak_7", "7-Day Workout Streak", "Workout for 7 consecutive days",
        "consistency", 50, _count_at_least(lambda ctx: ctx.workout_streak, 7),
    ),
    AchievementDefinition(
        "workout_streak_30", "30-Day Workout Streak", "Workout for 30 consecutive days",
        "consistency", 150, _count_at_least(lambda ctx: ctx.workout_streak, 30),
    ),
    AchievementDefinition(
        "weekly_workout_goal", "Weekly Warrior", "Complete 3 workouts in a week",
        "consistency", 40, _count_at_least(_workouts_in_window, 3),
    ),
)

CATALOG_BY_ID = {d.id: d for d in CATALOG}


# --- Levels ---

def level_for_points(total_points: int) -> LevelInfo:
    """Highest level whose threshold is <= total_points."""
    level = 1
    for index, threshold in enumerate(LEVEL_THRESHOLDS):
        if total_points >= threshold:
            level = index + 1
        else:
            break

    if level < len(LEVEL_THRESHOLDS):
        to_next = LEVEL_THRESHOLDS[level] - total_points
    else:
        to_next = 0

    return LevelInfo(
        level=level,
        title=LEVEL_TITLES[level - 1],
        total_points=total_points,
        points_in_level=total_points - LEVEL_THRESHOLDS[level - 1],
        points_to_next_level=to_next,
    )


def total_points(states: Mapping[str, AchievementState], catalog=CATALOG) -> int:
    """Sum of points for unlocked achievements."""
    return sum(
        d.points for d in catalog
        if d.id in states and states[d.id].is_unlocked
    )


# --- Evaluation ---

def initial_states(catalog=CATALOG) -> dict:
    return {d.id: AchievementState.locked(d.id) for d in catalog}


def evaluate(
    states: Optional[Mapping[str, AchievementState]],
    snapshot: ActivitySnapshot,
    now: Optional[datetime] = None,
    policy: GoalPolicy = DEFAULT_GOAL_POLICY,
    catalog=CATALOG,
) -> EvaluationResult:
    """Run one evaluation pass and return the new achievement states.

    1. Recompute the activity streak ending today
    2. Evaluate the rule of every locked achievement; unlock those at 1.0
    3. Recompute total points and level
    """
    if now is None:
        now = datetime.now()
    ctx = EvaluationContext(snapshot, now.date(), policy)

    old = dict(states or {})
    new_states = {}
    newly_unlocked = []
    for definition in catalog:
        state = old.get(definition.id) or AchievementState.locked(definition.id)
        if state.is_unlocked:
            new_states[definition.id] = state
            continue

        progress = definition.rule(ctx)
        if progress >= 1.0:
            new_states[definition.id] = AchievementState.unlocked(definition.id, now)
            newly_unlocked.append(definition.id)
            logger.info("Unlocked achievement %s (+%d points)", definition.id, definition.points)
        else:
            new_states[definition.id] = AchievementState.locked(definition.id, progress)

    points = total_points(new_states, catalog)
    return EvaluationResult(
        states=new_states,
        streak=ctx.streak,
        total_points=points,
        level=level_for_points(points),
        newly_unlocked=tuple(newly_unlocked),
    )


def format_achievements(result: EvaluationResult, catalog=CATALOG) -> str:
    """Format an evaluation result for display."""
    level = result.level
    lines = [
        f"Level {level.level}: {level.title}",
        f"Points: {level.total_points}"
        + ("" if level.is_max_level else f" ({level.points_to_next_level} to next level)"),
        f"Current streak: {result.streak} day(s)",
        "",
    ]
    for d in catalog:
        state = result.states[d.id]
        if state.is_unlocked:
            mark = f"[x] {state.unlocked_at:%Y-%m-%d}"
        else:
            mark = f"[ ] {state.progress * 100:3.0f}%      "
        lines.append(f"  {mark}  {d.title:<24} {d.points:>4} pts  {d.description}")
    return "\n".join(lines)
