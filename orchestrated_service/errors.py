"""Exceptions raised by the orchestrated service."""

from http import HTTPStatus


class ServiceUnavailableError(Exception):
    """The resource lookup could not be served right now."""

    title = "Service temporarily unavailable"
    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class LifecycleError(RuntimeError):
    """A lifecycle operation was called in the wrong state."""


class StartupError(LifecycleError):
    """The listener could not be bound or the server failed to start."""
