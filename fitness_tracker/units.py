"""Unit conversion utilities for imperial/metric conversion.

Profiles store height and weight in the user's chosen unit system.
Calculators always work in metric (kg, cm), so every measurement is
normalized here first.
"""

import dataclasses
import math

from fitness_tracker.config import CM_TO_IN, IN_TO_CM, KG_TO_LB, LB_TO_KG
from fitness_tracker.errors import DomainError
from fitness_tracker.models import Profile

FACTORS = {
    ("height", "to_imperial"): CM_TO_IN,
    ("height", "to_metric"): IN_TO_CM,
    ("weight", "to_imperial"): KG_TO_LB,
    ("weight", "to_metric"): LB_TO_KG,
}


def round_half_up(value: float, places: int = 1) -> float:
    """Round to `places` decimals, halves away from zero."""
    multiplier = 10 ** places
    # Floats this large carry no fractional digits
    if abs(value) >= 2 ** 52:
        return value
    return math.copysign(math.floor(abs(value) * multiplier + 0.5) / multiplier, value)


def require_finite(value: float, name: str = "value") -> float:
    """Reject NaN and infinities with a DomainError."""
    if value is None or not math.isfinite(value):
        raise DomainError(f"{name} must be a finite number, got {value!r}", {"field": name})
    return value


def convert(value: float, kind: str, direction: str) -> float:
    """Convert a height or weight between unit systems, rounded to 0.1.

    Converting back does not always reproduce the original value.
    """
    factor = FACTORS.get((kind, direction))
    if factor is None:
        raise DomainError(f"Cannot convert {kind!r} {direction!r}", {"kind": kind, "direction": direction})
    require_finite(value, kind)
    converted = value * factor
    if not math.isfinite(converted):
        raise DomainError(
            f"{kind} {value!r} is out of range for {direction}", {"field": kind, "value": value},
        )
    return round_half_up(converted)


def height_cm(profile: Profile) -> float:
    """Profile height in centimeters."""
    if profile.uses_metric:
        return profile.height
    return profile.height * IN_TO_CM


def weight_kg(profile: Profile) -> float:
    """Profile weight in kilograms."""
    return to_kg(profile.weight, profile.unit_system)


def to_kg(weight: float, unit_system: str) -> float:
    """A weight expressed in `unit_system`, in kilograms."""
    if unit_system == "metric":
        return weight
    return weight * LB_TO_KG


def toggle_units(profile: Profile) -> Profile:
    """Return a copy of the profile with all measurements in the other unit system."""
    direction = "to_imperial" if profile.uses_metric else "to_metric"
    target = profile.target_weight
    if target is not None:
        target = convert(target, "weight", direction)
    return dataclasses.replace(
        profile,
        height=convert(profile.height, "height", direction),
        weight=convert(profile.weight, "weight", direction),
        target_weight=target,
        unit_system="imperial" if profile.uses_metric else "metric",
    )


def weight_unit(profile: Profile) -> str:
    return "kg" if profile.uses_metric else "lbs"


def height_unit(profile: Profile) -> str:
    return "cm" if profile.uses_metric else "in"


def display_weight(profile: Profile, weight: float) -> str:
    return f"{weight:.1f} {weight_unit(profile)}"


def display_height(profile: Profile, height: float) -> str:
    return f"{height:.1f} {height_unit(profile)}"
