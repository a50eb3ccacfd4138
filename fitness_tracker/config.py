"""Application configuration and constants."""

import os

# Database
DB_DIR = os.path.join(os.path.expanduser("~"), ".fitness_tracker")
DB_PATH = os.environ.get("FITNESS_TRACKER_DB", os.path.join(DB_DIR, "fitness_tracker.db"))

# Logging
LOG_LEVEL = os.environ.get("FITNESS_TRACKER_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Unit conversion factors
CM_TO_IN = 0.393701
IN_TO_CM = 2.54
KG_TO_LB = 2.20462
LB_TO_KG = 0.453592

UNIT_SYSTEMS = ("metric", "imperial")
SEXES = ("male", "female", "other", "not_specified")

# BMI category lower bounds, checked highest first
BMI_CATEGORY_BOUNDS = [
    ("obese", 30.0),
    ("overweight", 25.0),
    ("normal", 18.5),
    ("underweight", float("-inf")),
]

BMI_CATEGORY_DESCRIPTIONS = {
    "underweight": "Underweight: Being underweight can indicate nutritional deficiencies "
                   "or other health issues. Consider consulting a healthcare provider.",
    "normal": "Normal weight: Your BMI is within the healthy range. Maintain a balanced "
              "diet and regular exercise.",
    "overweight": "Overweight: Being overweight may increase health risks. Focus on "
                  "balanced nutrition and regular physical activity.",
    "obese": "Obese: Obesity can lead to various health complications. Consider "
             "consulting a healthcare provider for personalized advice.",
}

# Basal metabolic rate coefficients: (intercept, weight, height, age)
BMR_COEFFICIENTS = {
    "male": (88.362, 13.397, 4.799, 5.677),
    "female": (447.593, 9.247, 3.098, 4.330),
}

# Activity level multipliers for daily energy expenditure
ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extra_active": 1.9,
}

# Goal-adjusted calorie target
KCAL_PER_KG = 7700
GOAL_HORIZON_WEEKS = 12
GOAL_WEEKLY_RATE_KG = 0.5
GOAL_POLICIES = ("fixed_horizon", "weekly_rate")

# Achievements
WEIGHT_GOAL_TOLERANCE = 0.5  # profile units
CALORIE_GOAL_TOLERANCE = 0.10  # fraction of daily target
CALORIE_GOAL_DAYS = 3
WORKOUT_WINDOW_DAYS = 7

# Cumulative points needed for levels 1..7
LEVEL_THRESHOLDS = [0, 50, 150, 300, 500, 750, 1000]
LEVEL_TITLES = [
    "Beginner",
    "Novice",
    "Intermediate",
    "Advanced",
    "Expert",
    "Master",
    "Fitness Pro",
]

# Workout types, intensities, meal types
WORKOUT_TYPES = ("cardio", "strength", "flexibility", "hiit", "yoga", "other")
INTENSITIES = ("low", "moderate", "high", "very_high")
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

# Calories burned per minute at moderate intensity for a 70 kg person
BASE_KCAL_PER_MINUTE = {
    "strength": 4.0,
    "cardio": 8.0,
    "flexibility": 2.0,
    "hiit": 10.0,
    "yoga": 3.0,
    "other": 5.0,
}

INTENSITY_MULTIPLIERS = {
    "low": 0.8,
    "moderate": 1.0,
    "high": 1.2,
    "very_high": 1.4,
}

REFERENCE_WEIGHT_KG = 70.0

# Heart-rate zones as upper bounds on % of max heart rate
HEART_RATE_ZONES = [
    ("low", 60.0),
    ("moderate", 70.0),
    ("high", 80.0),
]

# Analytics
INSIGHTS_LOOKBACK_MONTHS = 3
WEIGHT_TREND_WINDOW = 7
CHART_AXIS_PADDING = 2.0
CHART_FALLBACK_SPAN = 5.0
CHART_SENTINEL_RANGE = (0.0, 100.0)
