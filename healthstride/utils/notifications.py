"""
User-facing notifications.

The request gateway only reports *what* happened; this module decides how a
failure or a completed mutation reads to the user. Presentation layers plug
in their own ``Notifier`` (the dashboard renders toasts, the terminal entry
point logs).
"""

import logging
from dataclasses import dataclass

from .exceptions import (
    BaseHealthStrideError,
    InvalidRequestError,
    NotFoundError,
    ServerError,
)

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"

NETWORK_ERROR_TITLE = "Network error"
NETWORK_ERROR_DESCRIPTION = (
    "Unable to connect to the server. Please check your connection."
)
SERVER_ERROR_DESCRIPTION = "Please try again later"


@dataclass(frozen=True)
class Notification:
    level: str
    title: str
    description: str | None = None

    @property
    def is_error(self) -> bool:
        return self.level == ERROR


class Notifier:
    """Receives notifications emitted by the gateway"""

    def notify(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    def notify(self, notification: Notification) -> None:
        if notification.is_error:
            logger.warning("%s: %s", notification.title, notification.description)
        else:
            logger.info(notification.title)


def notification_for_error(error: BaseHealthStrideError) -> Notification:
    """Map a failed HTTP response to its title/description pair"""
    if isinstance(error, NotFoundError):
        return Notification(ERROR, "Resource not found", error.message)
    if isinstance(error, InvalidRequestError):
        return Notification(ERROR, "Invalid request", error.message)
    if isinstance(error, ServerError):
        # The backend's own text is not shown for 500s
        return Notification(ERROR, "Server error", SERVER_ERROR_DESCRIPTION)
    return Notification(ERROR, "Request failed", error.message)


def notification_for_network_failure() -> Notification:
    return Notification(ERROR, NETWORK_ERROR_TITLE, NETWORK_ERROR_DESCRIPTION)


def success(message: str) -> Notification:
    return Notification(SUCCESS, message)
