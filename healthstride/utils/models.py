from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ActivityLevel(str, Enum):
    SEDENTARY = "SEDENTARY"
    LIGHTLY_ACTIVE = "LIGHTLY_ACTIVE"
    MODERATELY_ACTIVE = "MODERATELY_ACTIVE"
    VERY_ACTIVE = "VERY_ACTIVE"
    EXTRA_ACTIVE = "EXTRA_ACTIVE"

    @property
    def label(self) -> str:
        return ACTIVITY_LEVEL_LABELS[self]


ACTIVITY_LEVEL_LABELS = {
    ActivityLevel.SEDENTARY: "Sedentary (Little or no exercise)",
    ActivityLevel.LIGHTLY_ACTIVE: "Lightly Active (1-3 days/week)",
    ActivityLevel.MODERATELY_ACTIVE: "Moderately Active (3-5 days/week)",
    ActivityLevel.VERY_ACTIVE: "Very Active (6-7 days/week)",
    ActivityLevel.EXTRA_ACTIVE: "Extra Active (Physical job + exercise)",
}


def _float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop unset fields so the backend applies its own defaults"""
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class UserProfile:
    name: str
    email: str
    date_of_birth: str
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel | None = None
    id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserProfile":
        activity_level = data.get("activityLevel")
        return cls(
            id=_int(data.get("id")),
            name=data["name"],
            email=data["email"],
            date_of_birth=data["dateOfBirth"],
            gender=Gender(data["gender"]),
            height_cm=float(data["heightCm"]),
            weight_kg=float(data["weightKg"]),
            activity_level=ActivityLevel(activity_level) if activity_level else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "email": self.email,
                "dateOfBirth": self.date_of_birth,
                "gender": Gender(self.gender).value,
                "heightCm": self.height_cm,
                "weightKg": self.weight_kg,
                "activityLevel": (
                    ActivityLevel(self.activity_level).value
                    if self.activity_level
                    else None
                ),
            }
        )


@dataclass
class HealthMetrics:
    date: str
    steps: int | None = None
    calories_consumed: float | None = None
    calories_burned: float | None = None
    distance_km: float | None = None
    active_minutes: int | None = None
    water_intake_liters: float | None = None
    sleep_hours: float | None = None
    heart_rate_avg: int | None = None
    net_calories: float | None = None
    id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.id is None

    @classmethod
    def empty(cls, day: date | str) -> "HealthMetrics":
        """Zero-filled record for a day nothing has been logged for"""
        if isinstance(day, date):
            day = day.isoformat()
        return cls(
            date=day,
            steps=0,
            calories_consumed=0.0,
            calories_burned=0.0,
            distance_km=0.0,
            active_minutes=0,
            water_intake_liters=0.0,
            sleep_hours=0.0,
            heart_rate_avg=0,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HealthMetrics":
        return cls(
            id=_int(data.get("id")),
            date=data["date"],
            steps=_int(data.get("steps")),
            calories_consumed=_float(data.get("caloriesConsumed")),
            calories_burned=_float(data.get("caloriesBurned")),
            distance_km=_float(data.get("distanceKm")),
            active_minutes=_int(data.get("activeMinutes")),
            water_intake_liters=_float(data.get("waterIntakeLiters")),
            sleep_hours=_float(data.get("sleepHours")),
            heart_rate_avg=_int(data.get("heartRateAvg")),
            net_calories=_float(data.get("netCalories")),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "date": self.date,
                "steps": self.steps,
                "caloriesConsumed": self.calories_consumed,
                "caloriesBurned": self.calories_burned,
                "distanceKm": self.distance_km,
                "activeMinutes": self.active_minutes,
                "waterIntakeLiters": self.water_intake_liters,
                "sleepHours": self.sleep_hours,
                "heartRateAvg": self.heart_rate_avg,
                "netCalories": self.net_calories,
            }
        )


@dataclass
class Activity:
    activity_type: str
    start_time: str
    end_time: str
    duration_minutes: float | None = None
    calories_burned: float | None = None
    distance_km: float | None = None
    notes: str | None = None
    average_pace: float | None = None
    id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Activity":
        return cls(
            id=_int(data.get("id")),
            activity_type=data["activityType"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            duration_minutes=_float(data.get("durationMinutes")),
            calories_burned=_float(data.get("caloriesBurned")),
            distance_km=_float(data.get("distanceKm")),
            notes=data.get("notes"),
            average_pace=_float(data.get("averagePace")),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "activityType": self.activity_type,
                "startTime": self.start_time,
                "endTime": self.end_time,
                "durationMinutes": self.duration_minutes,
                "caloriesBurned": self.calories_burned,
                "distanceKm": self.distance_km,
                "notes": self.notes,
                "averagePace": self.average_pace,
            }
        )


@dataclass
class WeeklyStats:
    start_date: str
    end_date: str
    total_steps: int = 0
    total_calories_burned: float = 0.0
    total_calories_consumed: float = 0.0
    net_calories: float = 0.0
    total_distance_km: float = 0.0
    total_active_minutes: int = 0
    average_steps_per_day: float = 0.0
    average_active_minutes_per_day: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeeklyStats":
        return cls(
            start_date=data["startDate"],
            end_date=data["endDate"],
            total_steps=int(data.get("totalSteps") or 0),
            total_calories_burned=float(data.get("totalCaloriesBurned") or 0),
            total_calories_consumed=float(data.get("totalCaloriesConsumed") or 0),
            net_calories=float(data.get("netCalories") or 0),
            total_distance_km=float(data.get("totalDistanceKm") or 0),
            total_active_minutes=int(data.get("totalActiveMinutes") or 0),
            average_steps_per_day=float(data.get("averageStepsPerDay") or 0),
            average_active_minutes_per_day=float(
                data.get("averageActiveMinutesPerDay") or 0
            ),
        )


@dataclass
class DashboardSummary:
    bmr: float = 0.0
    tdee: float = 0.0
    bmi: float = 0.0
    age: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DashboardSummary":
        return cls(
            bmr=float(data.get("bmr") or 0),
            tdee=float(data.get("tdee") or 0),
            bmi=float(data.get("bmi") or 0),
            age=int(data.get("age") or 0),
        )
