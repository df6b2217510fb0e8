"""Tests for the request gateway."""
import json
import threading
from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from conftest import BASE_URL, make_response
from healthstride.utils.api import extract_error_message, fetch_concurrently
from healthstride.utils.exceptions import (
    BaseHealthStrideError,
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    RequestFailedError,
    ServerError,
)
from healthstride.utils.models import Activity, HealthMetrics, UserProfile


def sent(http):
    """Method, url and keyword arguments of the last request"""
    args, kwargs = http.request.call_args
    return args[0], args[1], kwargs


class TestRequestBuilding:
    def test_get_uses_base_url_and_json_headers(self, api, http, user_payload):
        http.request.return_value = make_response(200, user_payload)

        api.get_user(7)

        method, url, kwargs = sent(http)
        assert method == "GET"
        assert url == f"{BASE_URL}/users/7"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["data"] is None

    def test_body_is_serialized_as_json(self, api, http, user_payload):
        http.request.return_value = make_response(201, user_payload)
        user = UserProfile.from_dict({**user_payload, "id": None})

        api.create_user(user)

        method, url, kwargs = sent(http)
        assert method == "POST"
        assert url == f"{BASE_URL}/users"
        body = json.loads(kwargs["data"])
        assert body["email"] == "ada@example.com"
        assert "id" not in body

    def test_range_dates_are_sent_as_iso_days(self, api, http):
        http.request.return_value = make_response(200, [])

        api.get_metrics_range(7, date(2026, 10, 12), "2026-10-18")

        _, url, kwargs = sent(http)
        assert url == f"{BASE_URL}/users/7/metrics/range"
        assert kwargs["params"] == {"startDate": "2026-10-12", "endDate": "2026-10-18"}

    def test_add_steps_without_date(self, api, http, metrics_payload):
        http.request.return_value = make_response(200, metrics_payload)

        api.add_steps(7, 1000)

        method, url, kwargs = sent(http)
        assert method == "POST"
        assert url == f"{BASE_URL}/users/7/metrics/steps"
        assert kwargs["params"] == {"steps": 1000}

    def test_add_steps_with_date(self, api, http, metrics_payload):
        http.request.return_value = make_response(200, metrics_payload)

        api.add_steps(7, 1000, date(2026, 10, 17))

        assert sent(http)[2]["params"] == {"steps": 1000, "date": "2026-10-17"}

    def test_weekly_stats_start_date_is_optional(self, api, http):
        http.request.return_value = make_response(
            200, {"startDate": "2026-10-11", "endDate": "2026-10-18"}
        )

        api.get_weekly_stats(7)
        assert sent(http)[2]["params"] is None

        api.get_weekly_stats(7, "2026-10-12")
        assert sent(http)[2]["params"] == {"weekStartDate": "2026-10-12"}


class TestSuccessHandling:
    def test_parses_json_into_models(self, api, http, activity_payload):
        http.request.return_value = make_response(200, [activity_payload])

        activities = api.get_activities(7)

        assert len(activities) == 1
        assert isinstance(activities[0], Activity)
        assert activities[0].duration_minutes == 45.0

    def test_no_content_yields_empty_result(self, api, http):
        http.request.return_value = make_response(204)

        assert api._make_request("/users/7", method="DELETE") == {}

    def test_created_with_zero_length_yields_empty_result(self, api, http):
        http.request.return_value = make_response(201, headers={"Content-Length": "0"})

        assert api._make_request("/users", method="POST", body={}) == {}

    def test_unparsable_success_body_yields_empty_result(self, api, http):
        http.request.return_value = make_response(200, text="<html>ok</html>")

        assert api._make_request("/users") == {}

    def test_delete_notifies_success_without_parsing(self, api, http, notifier):
        response = make_response(204)
        response.json = MagicMock(side_effect=AssertionError("body must not be parsed"))
        http.request.return_value = response

        assert api.delete_activity(7, 11) is None

        response.json.assert_not_called()
        assert [n.title for n in notifier.successes] == ["Activity deleted successfully!"]
        assert notifier.errors == []

    @pytest.mark.parametrize(
        "call, message",
        [
            (lambda a, u, m, act: a.update_user(7, u), "User updated successfully!"),
            (lambda a, u, m, act: a.delete_user(7), "User deleted successfully!"),
            (lambda a, u, m, act: a.save_metrics(7, m), "Health metrics saved successfully!"),
            (lambda a, u, m, act: a.add_steps(7, 1000), "Added 1000 steps!"),
            (lambda a, u, m, act: a.create_activity(7, act), "Activity logged successfully!"),
            (lambda a, u, m, act: a.update_activity(7, 11, act), "Activity updated successfully!"),
        ],
    )
    def test_mutations_emit_fixed_success_message(
        self, api, http, notifier, user_payload, metrics_payload, activity_payload, call, message
    ):
        payload = {**user_payload, **metrics_payload, **activity_payload}
        http.request.return_value = make_response(200, payload)
        user = UserProfile.from_dict(user_payload)
        metrics = HealthMetrics.from_dict(metrics_payload)
        activity = Activity.from_dict(activity_payload)

        call(api, user, metrics, activity)

        assert [n.title for n in notifier.notifications] == [message]

    def test_reads_do_not_notify_on_success(self, api, http, notifier, user_payload):
        http.request.return_value = make_response(200, [user_payload])

        api.get_users()

        assert notifier.notifications == []

    def test_bmr_and_tdee_are_numbers(self, api, http):
        http.request.return_value = make_response(200, 1650.5)

        assert api.get_bmr(7) == 1650.5
        assert api.get_tdee(7) == 1650.5

    def test_bmr_without_body_reads_as_zero(self, api, http):
        http.request.return_value = make_response(204)

        assert api.get_bmr(7) == 0.0
        assert sent(http)[1] == f"{BASE_URL}/users/7/bmr"

    @pytest.mark.parametrize("payload", [{"value": 2100}, "n/a", None])
    def test_tdee_non_numeric_body_reads_as_zero(self, api, http, payload):
        if payload is None:
            http.request.return_value = make_response(201, headers={"Content-Length": "0"})
        else:
            http.request.return_value = make_response(200, payload)

        assert api.get_tdee(7) == 0.0


class TestFailureHandling:
    def test_invalid_request_notifies_and_raises_with_message(self, api, http, notifier, user_payload):
        http.request.return_value = make_response(
            400, {"message": "email already used"}, reason="Bad Request"
        )
        user = UserProfile.from_dict({**user_payload, "id": None})

        with pytest.raises(InvalidRequestError) as exc:
            api.create_user(user)

        assert "email already used" in str(exc.value)
        assert exc.value.status == 400
        assert len(notifier.notifications) == 1
        assert notifier.errors[0].title == "Invalid request"
        assert notifier.errors[0].description == "email already used"

    def test_not_found(self, api, http, notifier):
        http.request.return_value = make_response(404, {"error": "User not found"})

        with pytest.raises(NotFoundError, match="User not found"):
            api.get_user(99)

        assert notifier.errors[0].title == "Resource not found"
        assert notifier.errors[0].description == "User not found"

    def test_server_error_hides_backend_message(self, api, http, notifier):
        http.request.return_value = make_response(500, {"message": "NullPointerException"})

        with pytest.raises(ServerError) as exc:
            api.get_users()

        assert exc.value.message == "NullPointerException"
        assert notifier.errors[0].title == "Server error"
        assert notifier.errors[0].description == "Please try again later"

    def test_other_statuses_are_generic_failures(self, api, http, notifier):
        http.request.return_value = make_response(409, {"message": "Conflict on date"})

        with pytest.raises(RequestFailedError) as exc:
            api.get_users()

        assert exc.value.status == 409
        assert notifier.errors[0].title == "Request failed"
        assert notifier.errors[0].description == "Conflict on date"

    def test_suppressed_notification_still_raises(self, api, http, notifier):
        http.request.return_value = make_response(404, {"message": "missing"})

        with pytest.raises(NotFoundError):
            api.get_dashboard_summary(7)

        assert notifier.notifications == []

    def test_mutation_failure_skips_success_notification(self, api, http, notifier):
        http.request.return_value = make_response(404, {"message": "Activity not found"})

        with pytest.raises(NotFoundError):
            api.delete_activity(7, 11)

        assert notifier.successes == []
        assert len(notifier.errors) == 1

    def test_network_failure(self, api, http, notifier):
        cause = requests.ConnectionError("connection refused")
        http.request.side_effect = cause

        with pytest.raises(NetworkError) as exc:
            api.get_users()

        assert exc.value.__cause__ is cause
        assert notifier.errors[0].title == "Network error"
        assert "check your connection" in notifier.errors[0].description

    def test_network_failure_respects_suppression(self, api, http, notifier):
        http.request.side_effect = requests.Timeout("timed out")

        with pytest.raises(NetworkError):
            api.get_activities(7)

        assert notifier.notifications == []


class TestBestEffortReads:
    def test_today_metrics_returns_none_when_missing(self, api, http, notifier):
        http.request.return_value = make_response(404, {"message": "No metrics"})

        assert api.get_today_metrics(7) is None
        assert notifier.notifications == []

    def test_today_metrics_returns_none_when_unreachable(self, api, http):
        http.request.side_effect = requests.ConnectionError("down")

        assert api.get_today_metrics(7) is None

    def test_metrics_by_date_returns_model(self, api, http, metrics_payload):
        http.request.return_value = make_response(200, metrics_payload)

        metrics = api.get_metrics_by_date(7, date(2026, 10, 18))

        assert sent(http)[1] == f"{BASE_URL}/users/7/metrics/date/2026-10-18"
        assert metrics.steps == 8500
        assert metrics.net_calories == -300.0

    def test_metrics_by_date_empty_body_is_none(self, api, http):
        http.request.return_value = make_response(204)

        assert api.get_metrics_by_date(7, "2026-10-18") is None


class TestErrorMessageExtraction:
    def test_message_field_wins(self):
        response = make_response(400, {"message": "first", "error": "second"})
        assert extract_error_message(response) == "first"

    def test_error_field_fallback(self):
        assert extract_error_message(make_response(400, {"error": "Bad Request"})) == "Bad Request"

    def test_json_without_known_fields(self):
        assert extract_error_message(make_response(400, {"detail": "x"})) == "An error occurred"

    def test_non_json_body_uses_status_text(self):
        response = make_response(502, text="<html>Bad gateway</html>", reason="Bad Gateway")
        assert extract_error_message(response) == "Bad Gateway"

    def test_non_json_body_without_reason(self):
        assert extract_error_message(make_response(503, text="down")) == "HTTP 503"

    def test_empty_body(self):
        assert extract_error_message(make_response(418)) == "HTTP 418"


class TestFetchConcurrently:
    def test_returns_results_by_name(self):
        results = fetch_concurrently(a=lambda: 1, b=lambda: "two")
        assert results == {"a": 1, "b": "two"}

    def test_calls_run_in_parallel(self):
        barrier = threading.Barrier(3, timeout=5)

        def call():
            barrier.wait()
            return True

        results = fetch_concurrently(x=call, y=call, z=call)

        assert all(results.values())

    def test_error_raised_after_all_settle(self):
        finished = []

        def slow_success():
            finished.append("slow")
            return "ok"

        def failure():
            raise NotFoundError("missing")

        with pytest.raises(BaseHealthStrideError, match="missing"):
            fetch_concurrently(fail=failure, slow=slow_success)

        assert finished == ["slow"]
