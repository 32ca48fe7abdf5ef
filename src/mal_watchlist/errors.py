"""Errors raised at the network boundary and by the list view."""

from typing import Optional


class WatchListError(Exception):
    """Base class for all watch-list errors."""


class FetchError(WatchListError):
    """Fetching data failed after the bounded retries."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(FetchError):
    """The session is missing or expired (HTTP 401). Never retried."""


class SaveError(WatchListError):
    """Persisting the list order failed. The local order is kept."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SaveInProgressError(WatchListError):
    """A save was requested while another one is still in flight."""


class ListNotReadyError(WatchListError):
    """The list is still importing or updating and cannot be reordered."""
