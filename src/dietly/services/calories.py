"""Calorie target and body metrics calculations."""

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

GOAL_ADJUSTMENTS = {
    "lose": -500,
    "gain": 500,
    "maintain": 0,
}

_BMI_CATEGORIES = (
    (18.5, "underweight"),
    (25.0, "normal"),
    (30.0, "overweight"),
)


def calculate_bmr(weight: float, height: float, age: int, gender: str) -> float:
    """Basal metabolic rate using the Mifflin-St Jeor equation."""
    base = 10 * weight + 6.25 * height - 5 * age
    if gender == "male":
        return base + 5
    if gender == "female":
        return base - 161
    return base - 50


def calculate_tdee(bmr: float, activity_level: str | None) -> float:
    """Total daily energy expenditure for an activity level."""
    multiplier = ACTIVITY_MULTIPLIERS.get(
        activity_level or "moderate", ACTIVITY_MULTIPLIERS["moderate"]
    )
    return bmr * multiplier


def adjust_for_goal(tdee: float, health_goal: str | None) -> int:
    """Apply the health goal adjustment and round to whole calories."""
    adjustment = GOAL_ADJUSTMENTS.get(health_goal or "maintain", 0)
    return round(tdee + adjustment)


def calculate_daily_calorie_target(  # noqa: PLR0913
    *,
    weight: float | None,
    height: float | None,
    age: int | None,
    gender: str | None,
    activity_level: str | None = None,
    health_goal: str | None = None,
) -> int | None:
    """Return the daily calorie target, or None when body data is missing."""
    if not weight or not height or not age or not gender:
        return None
    bmr = calculate_bmr(weight, height, age, gender)
    tdee = calculate_tdee(bmr, activity_level)
    return adjust_for_goal(tdee, health_goal)


def calculate_bmi(weight: float | None, height: float | None) -> float | None:
    """Body mass index from kg and cm, rounded to one decimal."""
    if not weight or not height or weight <= 0 or height <= 0:
        return None
    meters = height / 100
    return round(weight / (meters * meters), 1)


def bmi_category(bmi: float | None) -> str:
    """Return the BMI category label."""
    if not bmi:
        return "unknown"
    for upper, label in _BMI_CATEGORIES:
        if bmi < upper:
            return label
    return "obese"
