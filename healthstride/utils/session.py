import json
import logging
import os
from pathlib import Path
from typing import Any

from .constants import SESSION_FILE, SESSION_KEY
from .exceptions import NoUserSelected

logger = logging.getLogger(__name__)


class SessionStore:
    """Persists the selected user id between runs under a single key"""

    def __init__(self, session_file: str = SESSION_FILE) -> None:
        self.session_file = Path(session_file)

    def _load(self) -> dict[str, Any]:
        try:
            if self.session_file.exists():
                if self.session_file.stat().st_size == 0:
                    return {}
                with open(self.session_file) as f:
                    data = json.load(f)
                return data if isinstance(data, dict) else {}
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.session_file, e)
            return {}

    def load_user_id(self) -> int | None:
        stored = self._load().get(SESSION_KEY)
        try:
            return int(stored) if stored is not None else None
        except (TypeError, ValueError):
            return None

    def save_user_id(self, user_id: int | None) -> None:
        if user_id is None:
            self.clear()
            return
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.session_file, "w") as f:
            json.dump({SESSION_KEY: user_id}, f)

    def clear(self) -> None:
        if self.session_file.exists():
            os.remove(self.session_file)


class UserSession:
    """
    The currently selected user profile.

    Loaded from the store once at startup; only profile selection and
    profile creation change it.
    """

    def __init__(self, store: SessionStore | None = None) -> None:
        self.store = store or SessionStore()
        self._current_user_id = self.store.load_user_id()

    @property
    def current_user_id(self) -> int | None:
        return self._current_user_id

    @property
    def has_user(self) -> bool:
        return self._current_user_id is not None

    def select_user(self, user_id: int | None) -> None:
        self._current_user_id = user_id
        self.store.save_user_id(user_id)
        logger.info("Selected user %s", user_id)

    def require_user(self) -> int:
        if self._current_user_id is None:
            raise NoUserSelected("No user profile selected")
        return self._current_user_id

    def clear(self) -> None:
        self._current_user_id = None
        self.store.clear()
