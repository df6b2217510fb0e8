import os
from pathlib import Path

import pytz
from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))

SESSION_FILE = os.getenv(
    "SESSION_FILE", str(Path.home() / ".healthstride" / "session.json")
)
SESSION_KEY = "currentUserId"

TIMEZONE = pytz.timezone(os.getenv("TIMEZONE", "UTC"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M"
