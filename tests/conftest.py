"""Shared fixtures: a gateway wired to a fake HTTP session and a recording notifier."""
import json
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from healthstride.utils.api import HealthStrideAPI
from healthstride.utils.notifications import Notifier

BASE_URL = "http://backend.test/api"


class RecordingNotifier(Notifier):
    def __init__(self):
        self.notifications = []

    def notify(self, notification):
        self.notifications.append(notification)

    @property
    def errors(self):
        return [n for n in self.notifications if n.is_error]

    @property
    def successes(self):
        return [n for n in self.notifications if not n.is_error]


def make_response(status=200, payload=None, text=None, reason="", headers=None):
    """Build a real requests.Response with the given status and body"""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.headers = CaseInsensitiveDict(headers or {})
    if payload is not None:
        response._content = json.dumps(payload).encode()
    elif text is not None:
        response._content = text.encode()
    else:
        response._content = b""
    response.encoding = "utf-8"
    return response


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def http():
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response(200, {})
    return session


@pytest.fixture
def api(http, notifier):
    return HealthStrideAPI(base_url=BASE_URL, notifier=notifier, session=http)


@pytest.fixture
def user_payload():
    return {
        "id": 7,
        "name": "Ada Runner",
        "email": "ada@example.com",
        "dateOfBirth": "1990-05-20",
        "gender": "FEMALE",
        "heightCm": 168.0,
        "weightKg": 61.5,
        "activityLevel": "MODERATELY_ACTIVE",
    }


@pytest.fixture
def metrics_payload():
    return {
        "id": 3,
        "date": "2026-10-18",
        "steps": 8500,
        "caloriesConsumed": 2200.0,
        "caloriesBurned": 2500.0,
        "distanceKm": 6.4,
        "activeMinutes": 45,
        "waterIntakeLiters": 2.0,
        "sleepHours": 7.5,
        "heartRateAvg": 68,
        "netCalories": -300.0,
    }


@pytest.fixture
def activity_payload():
    return {
        "id": 11,
        "activityType": "Running",
        "startTime": "2026-10-18T07:00:00",
        "endTime": "2026-10-18T07:45:00",
        "durationMinutes": 45.0,
        "caloriesBurned": 420.0,
        "distanceKm": 7.5,
        "notes": "Easy pace",
        "averagePace": 10.0,
    }
