"""Client for the watch-list backend."""

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from .base_client import BaseAPIClient
from .constants import (
    ANIME_PATH,
    AUTH_ME_PATH,
    DEFAULT_RETRY_COUNT,
    DEFAULT_SESSION_COOKIE,
    LIST_PATH,
    ORDER_PATH,
)
from .errors import FetchError, SaveError
from .models import CurrentUser, ListPayload
from .session import login_url as handoff_url

logger = logging.getLogger(__name__)

SERVICE_NAME = "Watch-list API"


class WatchListClient(BaseAPIClient):
    """Client for the watch-list REST API (session cookie auth)."""

    def __init__(
        self,
        base_url: str,
        session_token: Optional[str] = None,
        cookie_name: str = DEFAULT_SESSION_COOKIE,
        retries: int = DEFAULT_RETRY_COUNT,
        list_path: str = LIST_PATH,
        order_path: str = ORDER_PATH,
    ):
        """Initialize the client; the list and order paths vary by backend version."""
        super().__init__(
            base_url=base_url,
            session_token=session_token,
            cookie_name=cookie_name,
            retries=retries,
        )
        self.list_path = list_path
        self.order_path = order_path

    @classmethod
    def from_settings(cls, settings, session_token: Optional[str] = None) -> "WatchListClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.api_url,
            session_token=session_token or settings.session_token,
            cookie_name=settings.cookie_name,
            retries=settings.retries,
            list_path=settings.list_path,
            order_path=settings.order_path,
        )

    def _parse(self, model, data: dict, what: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Malformed {what} response: {e}")
            raise FetchError(f"Malformed {what} response") from e

    def fetch_list(self) -> ListPayload:
        """Fetch the user's full list (animes, entries, relations)."""
        data = self._get(self.list_path, SERVICE_NAME)
        payload = self._parse(ListPayload, data, "list")
        logger.info(
            f"Fetched {len(payload.list_entries)} list entries "
            f"({len(payload.animes)} anime, {len(payload.relations)} relations, "
            f"status={payload.import_status.value})"
        )
        return payload

    def fetch_anime(self, anime_id: int) -> ListPayload:
        """Fetch one anime with its related series and their list entries."""
        data = self._get(ANIME_PATH.format(anime_id=anime_id), SERVICE_NAME)
        # The single-anime endpoint wraps the payload in "data"
        if isinstance(data, dict) and "data" in data and "animes" not in data:
            data = data["data"]
        return self._parse(ListPayload, data, "anime")

    def get_current_user(self) -> CurrentUser:
        """Return the user owning the session. Raises AuthenticationError on 401."""
        data = self._get(AUTH_ME_PATH, SERVICE_NAME)
        return self._parse(CurrentUser, data, "user")

    def save_order(self, ids: list[int]) -> None:
        """Persist the full desired order; safe to repeat with the same ids."""
        url = self._url(self.order_path)
        try:
            response = self.session.post(url, json={"ids": list(ids)}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to save list order: {e}")
            raise SaveError(f"Failed to save list order: {e}") from e

        self._handle_auth_error(response, SERVICE_NAME)
        if not response.ok:
            logger.error(f"Failed to save list order: HTTP {response.status_code}")
            logger.error(f"Response: {response.text}")
            raise SaveError(
                f"Saving list order failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"Saved list order ({len(ids)} anime)")

    def login_url(self) -> str:
        """URL of the OAuth handoff endpoint."""
        return handoff_url(self.base_url)
