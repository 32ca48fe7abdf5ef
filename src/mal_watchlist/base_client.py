"""Base API client with common functionality."""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .constants import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_SESSION_COOKIE,
    DEFAULT_TIMEOUT_SECONDS,
    HTTP_UNAUTHORIZED,
    RETRY_STATUS_CODES,
)
from .errors import AuthenticationError, FetchError

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """Base class for API clients with common request handling."""

    def __init__(
        self,
        base_url: str,
        session_token: Optional[str] = None,
        cookie_name: str = DEFAULT_SESSION_COOKIE,
        retries: int = DEFAULT_RETRY_COUNT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Optional[dict] = None,
    ):
        """Initialize API client with the session credentials."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

        # Transient failures (rate limits, 5xx) are retried; 401 is not in the list
        retry_strategy = Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        default_headers = {"Accept": "application/json"}
        if headers:
            default_headers.update(headers)
        self.session.headers.update(default_headers)

        if session_token:
            self.session.cookies.set(cookie_name, session_token)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _handle_auth_error(self, response: requests.Response, service_name: str) -> None:
        """Raise AuthenticationError for a 401 response."""
        if response.status_code == HTTP_UNAUTHORIZED:
            logger.error(f"{service_name} authentication failed (HTTP {response.status_code})")
            logger.error(f"{service_name} session is missing or expired")
            raise AuthenticationError(
                f"{service_name} session is missing or expired",
                status_code=response.status_code,
            )

    def _get(self, path: str, service_name: str) -> dict:
        """GET a JSON document, mapping failures to FetchError."""
        url = self._url(path)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{service_name} request failed: {e}")
            raise FetchError(f"{service_name} request failed: {e}") from e

        self._handle_auth_error(response, service_name)
        if not response.ok:
            logger.error(f"{service_name} API error: {response.status_code}")
            logger.error(f"Response: {response.text}")
            raise FetchError(
                f"{service_name} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()
