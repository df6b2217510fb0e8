import logging
from datetime import timedelta

from healthstride.utils.api import HealthStrideAPI, fetch_concurrently
from healthstride.utils.calculator import (
    calculate_bmi,
    classify_bmi,
    format_height,
    kg_to_lb,
    net_calories,
    today,
)
from healthstride.utils.constants import LOG_LEVEL
from healthstride.utils.exceptions import BaseHealthStrideError
from healthstride.utils.models import HealthMetrics, UserProfile
from healthstride.utils.session import UserSession


def print_users(users: list[UserProfile]) -> None:
    if not users:
        print("No users found. Create one from the dashboard (python -m healthstride app).")
        return
    print("\nAvailable profiles:")
    for user in users:
        print(f"  #{user.id}  {user.name} <{user.email}>")


def print_profile(user: UserProfile) -> None:
    bmi = calculate_bmi(user.weight_kg, user.height_cm)
    print(f"\n👤 {user.name} ({user.email})")
    print(f"  Height: {user.height_cm:.0f} cm ({format_height(user.height_cm)})")
    print(f"  Weight: {user.weight_kg:.1f} kg ({kg_to_lb(user.weight_kg)} lbs)")
    print(f"  BMI: {bmi:.1f} ({classify_bmi(bmi).label})")


def print_today(metrics: HealthMetrics | None) -> None:
    print(f"\n📊 Today ({today().isoformat()})")
    if not metrics:
        print("  No metrics logged for today")
        return
    print(f"  Steps: {metrics.steps or 0:,}")
    print(f"  Active minutes: {metrics.active_minutes or 0}")
    print(
        f"  Net calories: "
        f"{net_calories(metrics.calories_consumed, metrics.calories_burned):.0f} kcal"
    )


def main():
    logging.basicConfig(
        level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    api = HealthStrideAPI()
    session = UserSession()

    try:
        if not session.has_user:
            print_users(api.get_users())
            return

        user_id = session.current_user_id
        week_start = today() - timedelta(days=6)
        results = fetch_concurrently(
            user=lambda: api.get_user(user_id),
            metrics=lambda: api.get_today_metrics(user_id),
            stats=lambda: api.get_weekly_stats(user_id, week_start),
        )
        print_profile(results["user"])
        print_today(results["metrics"])

        stats = results["stats"]
        print(f"\n📈 Week {stats.start_date} → {stats.end_date}")
        print(f"  Steps: {stats.total_steps:,} (avg {stats.average_steps_per_day:.0f}/day)")
        print(f"  Distance: {stats.total_distance_km:.1f} km")
        print(f"  Net calories: {stats.net_calories:.0f} kcal")

    except BaseHealthStrideError as e:
        print(f"❌ Error: {e.message}")


if __name__ == "__main__":
    main()
