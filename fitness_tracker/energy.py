"""Energy calculation engine.

Uses:
- Revised Harris-Benedict equation for Basal Metabolic Rate (BMR)
- Activity multipliers for daily energy expenditure
- A goal policy that spreads the calorie gap to the target weight over time

References:
- Roza AM, Shizgal HM (1984). "The Harris Benedict equation reevaluated:
  resting energy requirements and the body cell mass." Am J Clin Nutr.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from fitness_tracker.config import (
    ACTIVITY_MULTIPLIERS,
    BMR_COEFFICIENTS,
    GOAL_HORIZON_WEEKS,
    GOAL_POLICIES,
    GOAL_WEEKLY_RATE_KG,
    KCAL_PER_KG,
)
from fitness_tracker.errors import DomainError
from fitness_tracker.models import EnergyTargets, Profile
from fitness_tracker.units import height_cm, require_finite, to_kg, weight_kg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoalPolicy:
    """How fast the goal-adjusted target closes the gap to the target weight.

    fixed_horizon: the whole gap closes in `horizon_weeks`.
    weekly_rate:   the weight changes by `weekly_rate_kg` per week.
    """
    mode: str = "fixed_horizon"
    horizon_weeks: float = GOAL_HORIZON_WEEKS
    weekly_rate_kg: float = GOAL_WEEKLY_RATE_KG

    def __post_init__(self):
        if self.mode not in GOAL_POLICIES:
            raise DomainError(f"Unknown goal policy {self.mode!r}", {"mode": self.mode})
        require_finite(self.horizon_weeks, "horizon_weeks")
        require_finite(self.weekly_rate_kg, "weekly_rate_kg")
        if self.horizon_weeks <= 0 or self.weekly_rate_kg <= 0:
            raise DomainError("Goal horizon and weekly rate must be positive")


DEFAULT_GOAL_POLICY = GoalPolicy()


def _bmr_coefficients(sex: str) -> tuple:
    """Coefficients for a sex; other/unspecified averages male and female."""
    if sex in BMR_COEFFICIENTS:
        return BMR_COEFFICIENTS[sex]
    male, female = BMR_COEFFICIENTS["male"], BMR_COEFFICIENTS["female"]
    return tuple((m + f) / 2 for m, f in zip(male, female))


def basal_metabolic_rate(weight_kg: float, height_cm: float, age: float, sex: str) -> float:
    """Calculate BMR using the revised Harris-Benedict equation.

    Male:   88.362 + 13.397 × weight(kg) + 4.799 × height(cm) − 5.677 × age(y)
    Female: 447.593 + 9.247 × weight(kg) + 3.098 × height(cm) − 4.330 × age(y)
    Other:  coefficient-wise mean of the two
    """
    for name, value in (("weight", weight_kg), ("height", height_cm), ("age", age)):
        require_finite(value, name)
    if weight_kg <= 0 or height_cm <= 0:
        raise DomainError("Weight and height must be positive")
    if age < 0:
        raise DomainError(f"Age cannot be negative, got {age}", {"field": "age"})

    intercept, w, h, a = _bmr_coefficients(sex)
    return intercept + w * weight_kg + h * height_cm - a * age


def calculate_bmr(profile: Profile) -> float:
    """BMR for a profile, normalized to metric first."""
    return basal_metabolic_rate(weight_kg(profile), height_cm(profile), profile.age, profile.sex)


def calculate_daily_calories(bmr: float, activity_level: str) -> float:
    """Calculate daily energy expenditure.

    Daily = BMR × activity multiplier
    """
    multiplier = ACTIVITY_MULTIPLIERS.get(activity_level)
    if multiplier is None:
        logger.warning("Unknown activity level %r, using sedentary", activity_level)
        multiplier = ACTIVITY_MULTIPLIERS["sedentary"]
    return bmr * multiplier


def daily_adjustment(delta_kg: float, policy: GoalPolicy = DEFAULT_GOAL_POLICY) -> float:
    """Daily calorie surplus (positive) or deficit (negative) for a weight delta."""
    if policy.mode == "fixed_horizon":
        weekly = delta_kg * KCAL_PER_KG / policy.horizon_weeks
    else:
        weekly_kg = min(abs(delta_kg), policy.weekly_rate_kg)
        weekly = math.copysign(weekly_kg * KCAL_PER_KG, delta_kg) if delta_kg else 0.0
    return weekly / 7


def calculate_goal_target(
    profile: Profile,
    policy: GoalPolicy = DEFAULT_GOAL_POLICY,
) -> Optional[float]:
    """Goal-adjusted daily calorie target, or None without a target weight."""
    if profile.target_weight is None:
        return None
    require_finite(profile.target_weight, "target_weight")
    delta_kg = to_kg(profile.target_weight, profile.unit_system) - weight_kg(profile)
    daily = calculate_daily_calories(calculate_bmr(profile), profile.activity_level)
    return daily + daily_adjustment(delta_kg, policy)


def calculate_energy_targets(
    profile: Profile,
    policy: GoalPolicy = DEFAULT_GOAL_POLICY,
) -> EnergyTargets:
    """Calculate BMR, daily expenditure and the goal-adjusted target for a user.

    Steps:
    1. Normalize height and weight to metric
    2. Calculate BMR via the sex-specific equation
    3. Multiply by activity factor
    4. Add the goal adjustment when a target weight is set
    """
    bmr = calculate_bmr(profile)
    daily = calculate_daily_calories(bmr, profile.activity_level)
    goal = calculate_goal_target(profile, policy)
    return EnergyTargets(bmr=bmr, daily_calories=daily, goal_calories=goal)


def format_targets(targets: EnergyTargets) -> str:
    """Format energy targets for display."""
    lines = [
        f"BMR:      {targets.bmr:.0f} kcal",
        f"Daily:    {targets.daily_calories:.0f} kcal",
    ]
    if targets.goal_calories is not None:
        lines.append(f"Goal:     {targets.goal_calories:.0f} kcal/day")
    else:
        lines.append("Goal:     no target weight set")
    return "\n".join(lines)
