"""Body mass index and its categories."""

from fitness_tracker.config import BMI_CATEGORY_BOUNDS, BMI_CATEGORY_DESCRIPTIONS
from fitness_tracker.errors import DomainError
from fitness_tracker.models import Profile
from fitness_tracker.units import height_cm, require_finite, weight_kg


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    """BMI = weight(kg) / height(m)^2.

    Raises DomainError for non-finite or non-positive inputs rather than
    returning infinity.
    """
    require_finite(weight_kg, "weight")
    require_finite(height_cm, "height")
    if height_cm <= 0:
        raise DomainError(f"Height must be positive, got {height_cm}", {"field": "height"})
    if weight_kg <= 0:
        raise DomainError(f"Weight must be positive, got {weight_kg}", {"field": "weight"})
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def profile_bmi(profile: Profile) -> float:
    """BMI for a profile in either unit system."""
    return calculate_bmi(weight_kg(profile), height_cm(profile))


def bmi_category(bmi: float) -> str:
    """underweight (<18.5), normal [18.5, 25), overweight [25, 30), obese (>=30)."""
    require_finite(bmi, "bmi")
    for category, lower in BMI_CATEGORY_BOUNDS:
        if bmi >= lower:
            return category
    return "underweight"


def describe_category(category: str) -> str:
    return BMI_CATEGORY_DESCRIPTIONS[category]
