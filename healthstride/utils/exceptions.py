class BaseHealthStrideError(Exception):
    def __init__(self, status, message):
        Exception.__init__(self, message)
        self.status = status
        self.message = message


class NotFoundError(BaseHealthStrideError):
    def __init__(self, message, status=404):
        BaseHealthStrideError.__init__(self, status, message)


class InvalidRequestError(BaseHealthStrideError):
    def __init__(self, message, status=400):
        BaseHealthStrideError.__init__(self, status, message)


class ServerError(BaseHealthStrideError):
    def __init__(self, message, status=500):
        BaseHealthStrideError.__init__(self, status, message)


class RequestFailedError(BaseHealthStrideError):
    def __init__(self, message, status):
        BaseHealthStrideError.__init__(self, status, message)


class NetworkError(BaseHealthStrideError):
    """The backend could not be reached at all; ``__cause__`` holds the original failure."""

    def __init__(self, message):
        BaseHealthStrideError.__init__(self, None, message)


class NoUserSelected(Exception):
    """Raised by views that need a selected user profile."""


def error_for_status(status: int, message: str) -> BaseHealthStrideError:
    """Classify a non-2xx status code into its typed error"""
    if status == 404:
        return NotFoundError(message)
    if status == 400:
        return InvalidRequestError(message)
    if status == 500:
        return ServerError(message)
    return RequestFailedError(message, status)
