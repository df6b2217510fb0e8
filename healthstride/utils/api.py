import json
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date
from typing import Any, Callable

import requests
from requests.exceptions import RequestException

from .constants import API_BASE_URL, DATE_FORMAT, REQUEST_TIMEOUT
from .exceptions import BaseHealthStrideError, NetworkError, error_for_status
from .models import Activity, DashboardSummary, HealthMetrics, UserProfile, WeeklyStats
from .notifications import (
    LoggingNotifier,
    Notifier,
    notification_for_error,
    notification_for_network_failure,
    success,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred"
JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _iso(day: date | str) -> str:
    return day.strftime(DATE_FORMAT) if isinstance(day, date) else day


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0.0
    try:
        return float(value)
    except ValueError:
        return 0.0


def _is_empty_response(response: requests.Response) -> bool:
    return response.status_code == 204 or (
        response.status_code == 201
        and response.headers.get("content-length") == "0"
    )


def extract_error_message(response: requests.Response) -> str:
    """
    Pull a human-readable message out of a failed response.

    Looks at the ``message`` then ``error`` field of a JSON body and falls
    back to the reason phrase (or ``HTTP <status>``) when the body is not
    JSON. Never raises.
    """
    try:
        error_data = response.json()
    except ValueError:
        return response.reason or f"HTTP {response.status_code}"

    if isinstance(error_data, dict):
        return error_data.get("message") or error_data.get("error") or DEFAULT_ERROR_MESSAGE
    return DEFAULT_ERROR_MESSAGE


class HealthStrideAPI:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        notifier: Notifier | None = None,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """
        Initialize the API client for the HealthStride backend.

        Args:
            base_url: Root of the REST API (e.g. 'http://localhost:8080/api')
            notifier: Receives user-facing notifications (default: logs them)
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.notifier = notifier or LoggingNotifier()
        self.timeout = timeout
        self.session = session or requests.Session()

    def _make_request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        params: dict | None = None,
        notify: bool = True,
    ) -> Any:
        """
        Perform a call against the backend and normalize the outcome

        Args:
            path: Resource path relative to the base URL (e.g. '/users/1')
            method: HTTP method
            body: JSON-serializable request body
            params: Query string parameters
            notify: Emit a notification on failure (off for best-effort reads)

        Returns:
            Parsed JSON response, or an empty dict for bodiless responses

        Raises:
            BaseHealthStrideError: Typed error for non-2xx responses
            NetworkError: When the backend could not be reached
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                data=json.dumps(body) if body is not None else None,
                headers=JSON_HEADERS,
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.warning("Network error calling %s %s: %s", method, url, e)
            if notify:
                self.notifier.notify(notification_for_network_failure())
            raise NetworkError(f"Network error: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            error = error_for_status(response.status_code, extract_error_message(response))
            logger.warning(
                "%s %s failed (%s): %s", method, url, response.status_code, error.message
            )
            if notify:
                self.notifier.notify(notification_for_error(error))
            raise error

        if _is_empty_response(response):
            return {}

        try:
            return response.json()
        except ValueError:
            return {}

    def _notify_success(self, message: str) -> None:
        self.notifier.notify(success(message))

    # --- Users ---

    def get_users(self) -> list[UserProfile]:
        """List every user profile"""
        response = self._make_request("/users")
        return [UserProfile.from_dict(item) for item in response or []]

    def get_user(self, user_id: int) -> UserProfile:
        response = self._make_request(f"/users/{user_id}")
        return UserProfile.from_dict(response)

    def create_user(self, user: UserProfile) -> UserProfile:
        """
        Create a user profile

        Args:
            user: Profile without an id; the backend assigns one

        Returns:
            The stored profile, including its new id
        """
        response = self._make_request("/users", method="POST", body=user.to_dict())
        self._notify_success("User created successfully!")
        return UserProfile.from_dict(response)

    def update_user(self, user_id: int, user: UserProfile) -> UserProfile:
        response = self._make_request(
            f"/users/{user_id}", method="PUT", body=user.to_dict()
        )
        self._notify_success("User updated successfully!")
        return UserProfile.from_dict(response)

    def delete_user(self, user_id: int) -> None:
        self._make_request(f"/users/{user_id}", method="DELETE")
        self._notify_success("User deleted successfully!")

    def get_bmr(self, user_id: int) -> float:
        """Basal metabolic rate computed by the backend (0.0 when the body is not a number)"""
        return _number(self._make_request(f"/users/{user_id}/bmr", notify=False))

    def get_tdee(self, user_id: int) -> float:
        """Total daily energy expenditure computed by the backend (0.0 when the body is not a number)"""
        return _number(self._make_request(f"/users/{user_id}/tdee", notify=False))

    def get_dashboard_summary(self, user_id: int) -> DashboardSummary:
        response = self._make_request(
            f"/users/{user_id}/dashboard/summary", notify=False
        )
        return DashboardSummary.from_dict(response)

    # --- Health metrics ---

    def get_today_metrics(self, user_id: int) -> HealthMetrics | None:
        """
        Get today's metrics

        Returns:
            The metrics, or None when nothing is logged yet or the call fails
        """
        try:
            response = self._make_request(
                f"/users/{user_id}/metrics/today", notify=False
            )
        except BaseHealthStrideError:
            return None
        return HealthMetrics.from_dict(response) if response else None

    def get_metrics_by_date(self, user_id: int, day: date | str) -> HealthMetrics | None:
        """
        Get metrics for a specific day

        Args:
            user_id: Owner of the metrics
            day: Date or YYYY-MM-DD string

        Returns:
            The metrics, or None when nothing is logged for that day
        """
        try:
            response = self._make_request(
                f"/users/{user_id}/metrics/date/{_iso(day)}", notify=False
            )
        except BaseHealthStrideError:
            return None
        return HealthMetrics.from_dict(response) if response else None

    def get_metrics_range(
        self, user_id: int, start_date: date | str, end_date: date | str
    ) -> list[HealthMetrics]:
        response = self._make_request(
            f"/users/{user_id}/metrics/range",
            params={"startDate": _iso(start_date), "endDate": _iso(end_date)},
            notify=False,
        )
        return [HealthMetrics.from_dict(item) for item in response or []]

    def save_metrics(self, user_id: int, metrics: HealthMetrics) -> HealthMetrics:
        """Create or replace the metrics for ``metrics.date``"""
        response = self._make_request(
            f"/users/{user_id}/metrics", method="POST", body=metrics.to_dict()
        )
        self._notify_success("Health metrics saved successfully!")
        return HealthMetrics.from_dict(response)

    def add_steps(
        self, user_id: int, steps: int, day: date | str | None = None
    ) -> HealthMetrics:
        """
        Add steps to a day's running total

        Args:
            user_id: Owner of the metrics
            steps: Steps to add
            day: Optional date; the backend uses today when omitted
        """
        params = {"steps": steps}
        if day:
            params["date"] = _iso(day)
        response = self._make_request(
            f"/users/{user_id}/metrics/steps", method="POST", params=params
        )
        self._notify_success(f"Added {steps} steps!")
        return HealthMetrics.from_dict(response)

    # --- Activities ---

    def get_activities(self, user_id: int) -> list[Activity]:
        response = self._make_request(f"/users/{user_id}/activities", notify=False)
        return [Activity.from_dict(item) for item in response or []]

    def get_activities_range(
        self, user_id: int, start_date: date | str, end_date: date | str
    ) -> list[Activity]:
        response = self._make_request(
            f"/users/{user_id}/activities/range",
            params={"startDate": _iso(start_date), "endDate": _iso(end_date)},
            notify=False,
        )
        return [Activity.from_dict(item) for item in response or []]

    def create_activity(self, user_id: int, activity: Activity) -> Activity:
        response = self._make_request(
            f"/users/{user_id}/activities", method="POST", body=activity.to_dict()
        )
        self._notify_success("Activity logged successfully!")
        return Activity.from_dict(response)

    def update_activity(
        self, user_id: int, activity_id: int, activity: Activity
    ) -> Activity:
        response = self._make_request(
            f"/users/{user_id}/activities/{activity_id}",
            method="PUT",
            body=activity.to_dict(),
        )
        self._notify_success("Activity updated successfully!")
        return Activity.from_dict(response)

    def delete_activity(self, user_id: int, activity_id: int) -> None:
        self._make_request(
            f"/users/{user_id}/activities/{activity_id}", method="DELETE"
        )
        self._notify_success("Activity deleted successfully!")

    # --- Dashboard ---

    def get_weekly_stats(
        self, user_id: int, week_start: date | str | None = None
    ) -> WeeklyStats:
        """
        Get aggregated stats for a week

        Args:
            user_id: Owner of the stats
            week_start: First day of the week; the backend picks the last
                seven days when omitted
        """
        params = {"weekStartDate": _iso(week_start)} if week_start else None
        response = self._make_request(
            f"/users/{user_id}/dashboard/weekly", params=params, notify=False
        )
        return WeeklyStats.from_dict(response)


def fetch_concurrently(**calls: Callable[[], Any]) -> dict[str, Any]:
    """
    Run independent calls in parallel and wait for all of them.

    Returns the results keyed by the keyword each call was passed under. If
    any call raised, the first failure (in argument order) is re-raised once
    every call has settled.
    """
    with ThreadPoolExecutor(max_workers=max(len(calls), 1)) as executor:
        futures = {name: executor.submit(call) for name, call in calls.items()}
        wait(futures.values())

    for future in futures.values():
        error = future.exception()
        if error is not None:
            raise error
    return {name: future.result() for name, future in futures.items()}
