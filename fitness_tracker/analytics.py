"""Workout, calorie and weight analytics over history snapshots."""

import math
from collections import Counter
from datetime import date
from typing import Optional

import pandas as pd

from fitness_tracker.config import (
    BASE_KCAL_PER_MINUTE,
    CHART_AXIS_PADDING,
    CHART_FALLBACK_SPAN,
    CHART_SENTINEL_RANGE,
    HEART_RATE_ZONES,
    INSIGHTS_LOOKBACK_MONTHS,
    INTENSITY_MULTIPLIERS,
    REFERENCE_WEIGHT_KG,
    WEIGHT_TREND_WINDOW,
)
from fitness_tracker.errors import DomainError
from fitness_tracker.models import Insight, WorkoutSession, calendar_day
from fitness_tracker.units import require_finite


def recent_workouts(workouts, today: date, months: int = INSIGHTS_LOOKBACK_MONTHS) -> list:
    """Workouts logged within the last `months` months."""
    cutoff = (pd.Timestamp(today) - pd.DateOffset(months=months)).date()
    return [w for w in workouts if calendar_day(w.logged_at) >= cutoff]


def weekly_workout_frequency(workouts) -> float:
    """Average workouts per week between the first and last workout."""
    if not workouts:
        return 0.0
    dates = sorted(w.logged_at for w in workouts)
    weeks = (dates[-1] - dates[0]).days // 7
    return len(workouts) / max(1, weeks)


def most_common_workout_type(workouts) -> Optional[str]:
    if not workouts:
        return None
    return Counter(w.workout_type for w in workouts).most_common(1)[0][0]


def average_duration_minutes(workouts) -> float:
    if not workouts:
        return 0.0
    return sum(w.duration_seconds for w in workouts) / len(workouts) / 60


def estimate_calories_burned(workout: WorkoutSession, weight_kg: float) -> int:
    """Rough calories burned from type, duration, intensity and body weight."""
    require_finite(weight_kg, "weight")
    if weight_kg <= 0:
        raise DomainError(f"Weight must be positive, got {weight_kg}", {"field": "weight"})
    per_minute = BASE_KCAL_PER_MINUTE.get(workout.workout_type, BASE_KCAL_PER_MINUTE["other"])
    intensity = INTENSITY_MULTIPLIERS.get(workout.intensity, 1.0)
    calories = per_minute * workout.duration_minutes * intensity
    return int(calories * weight_kg / REFERENCE_WEIGHT_KG)


def intensity_from_heart_rate(average_heart_rate: float, age: int) -> str:
    """Intensity zone from average heart rate as % of (220 - age)."""
    require_finite(average_heart_rate, "heart_rate")
    max_heart_rate = 220 - age
    if max_heart_rate <= 0:
        raise DomainError(f"No valid maximum heart rate for age {age}", {"field": "age"})
    pct = average_heart_rate / max_heart_rate * 100
    for zone, upper in HEART_RATE_ZONES:
        if pct < upper:
            return zone
    return "very_high"


def workout_insights(workouts) -> list:
    """Rule-based suggestions about frequency, variety and intensity."""
    if not workouts:
        return []
    insights = []

    frequency = weekly_workout_frequency(workouts)
    if frequency < 3:
        insights.append(Insight(
            "Increase Workout Frequency",
            "Try to work out at least 3 times per week for optimal results.",
            "suggestion",
        ))
    elif frequency >= 5:
        insights.append(Insight(
            "Great Workout Frequency",
            "You're maintaining a consistent workout schedule. Keep it up!",
            "achievement",
        ))

    if len({w.workout_type for w in workouts}) < 3:
        insights.append(Insight(
            "Add Workout Variety",
            "Try incorporating different types of workouts for better overall fitness.",
            "suggestion",
        ))

    hard = sum(1 for w in workouts if w.intensity in ("high", "very_high"))
    if hard / len(workouts) < 0.2:
        insights.append(Insight(
            "Increase Intensity",
            "Try to include more high-intensity workouts in your routine.",
            "suggestion",
        ))

    return insights


def daily_calorie_totals(entries) -> pd.Series:
    """Calorie intake summed per calendar day, oldest first."""
    if not entries:
        return pd.Series(dtype=float, name="calories")
    df = pd.DataFrame({
        "date": [calendar_day(e.logged_at) for e in entries],
        "calories": [e.calories for e in entries],
    })
    return df.groupby("date")["calories"].sum().sort_index()


def weight_trend(samples, window: int = WEIGHT_TREND_WINDOW) -> pd.DataFrame:
    """Weight history with a rolling mean, ignoring non-finite samples."""
    rows = [
        {"logged_at": s.logged_at, "weight": s.weight}
        for s in samples if math.isfinite(s.weight)
    ]
    df = pd.DataFrame(rows, columns=["logged_at", "weight"]).astype({"weight": float})
    df = df.sort_values("logged_at").reset_index(drop=True)
    df["trend"] = df["weight"].rolling(window, min_periods=1).mean()
    return df


def weight_axis_range(
    weights,
    goal: Optional[float] = None,
    current: Optional[float] = None,
) -> tuple:
    """Y-axis bounds for a weight chart.

    Padded min/max of the finite weights (and goal). Without any, falls
    back to current weight +/- a fixed span, then to the sentinel range.
    """
    values = [w for w in weights if w is not None and math.isfinite(w)]
    if goal is not None and math.isfinite(goal):
        values.append(goal)

    if not values:
        if current is None or not math.isfinite(current):
            return CHART_SENTINEL_RANGE
        return (current - CHART_FALLBACK_SPAN, current + CHART_FALLBACK_SPAN)

    low = min(values) - CHART_AXIS_PADDING
    high = max(values) + CHART_AXIS_PADDING
    if low >= high:
        return CHART_SENTINEL_RANGE
    return (low, high)


def format_insights(workouts) -> str:
    """Format a workout analysis for display."""
    lines = [
        f"Workouts:          {len(workouts)}",
        f"Per week:          {weekly_workout_frequency(workouts):.1f}",
        f"Most common type:  {most_common_workout_type(workouts) or 'No data'}",
        f"Average duration:  {average_duration_minutes(workouts):.0f} min",
    ]
    insights = workout_insights(workouts)
    if insights:
        lines.append("")
        for insight in insights:
            lines.append(f"- {insight.title}: {insight.description}")
    return "\n".join(lines)
