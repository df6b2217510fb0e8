"""
Derived metrics shown next to the raw data the backend returns.

All functions are pure: callers substitute zero for missing inputs before
calling in.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime

from .constants import DATE_FORMAT, TIMEZONE
from .models import ActivityLevel

CM_PER_FOOT = 30.48
LB_PER_KG = 2.20462


@dataclass(frozen=True)
class BmiCategory:
    label: str
    color: str


# Ordered by upper bound; the upper bound itself belongs to the next band
BMI_BANDS = [
    (18.5, BmiCategory("Underweight", "blue")),
    (25.0, BmiCategory("Normal", "green")),
    (30.0, BmiCategory("Overweight", "orange")),
    (math.inf, BmiCategory("Obese", "red")),
]


def today() -> date:
    """Current date in the configured timezone"""
    return datetime.now(TIMEZONE).date()


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    return weight_kg / (height_cm / 100) ** 2


def classify_bmi(bmi: float) -> BmiCategory:
    for upper_bound, category in BMI_BANDS:
        if bmi < upper_bound:
            return category
    return BMI_BANDS[-1][1]


def calculate_age(date_of_birth: date | str, on: date | None = None) -> int:
    """Whole years elapsed between ``date_of_birth`` and ``on`` (default: today)"""
    if isinstance(date_of_birth, str):
        date_of_birth = datetime.strptime(date_of_birth, DATE_FORMAT).date()
    on = on or today()
    had_birthday = (on.month, on.day) >= (date_of_birth.month, date_of_birth.day)
    return on.year - date_of_birth.year - (0 if had_birthday else 1)


def net_calories(consumed: float | None, burned: float | None) -> float:
    return (consumed or 0) - (burned or 0)


def cm_to_feet_inches(cm: float) -> tuple[int, int]:
    total_feet = cm / CM_PER_FOOT
    feet = math.floor(total_feet)
    # Half-up to the nearest inch; a full 12 rolls over into the next foot
    inches = math.floor((total_feet - feet) * 12 + 0.5)
    if inches == 12:
        feet, inches = feet + 1, 0
    return feet, inches


def kg_to_lb(kg: float) -> float:
    return round(kg * LB_PER_KG, 1)


def format_height(cm: float) -> str:
    feet, inches = cm_to_feet_inches(cm)
    return f"{feet}' {inches}\""


def format_activity_level(level: ActivityLevel | str | None) -> str:
    if not level:
        return "Not set"
    return ActivityLevel(level).value.replace("_", " ")
