"""Session cookie persistence and the login handoff."""

import json
import logging
import webbrowser
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .constants import LOGIN_PATH

logger = logging.getLogger(__name__)


class SessionStore:
    """Stores the backend session cookie in a JSON file."""

    def __init__(self, session_file: Path):
        """Initialize session store with file path."""
        self.session_file = Path(session_file)
        self.data = self._load()

    def _load(self) -> dict:
        """Load session data from file."""
        if self.session_file.exists():
            try:
                with open(self.session_file, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
            except Exception as e:
                logger.warning(f"Failed to load session file: {e}")
        return {}

    def get_token(self) -> Optional[str]:
        return self.data.get("token")

    def save_token(self, token: str) -> None:
        """Save the session cookie value."""
        self.data = {
            "token": token,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.session_file, "w") as f:
            json.dump(self.data, f, indent=4)
        logger.info(f"Session saved to {self.session_file}")

    def clear(self) -> None:
        """Forget the session (logout)."""
        self.data = {}
        if self.session_file.exists():
            self.session_file.unlink()
            logger.info(f"Removed session file {self.session_file}")


def login_url(api_url: str) -> str:
    """Static OAuth handoff URL on the backend."""
    return f"{api_url.rstrip('/')}{LOGIN_PATH}"


def open_login(api_url: str) -> str:
    """Open the login handoff in a browser and return its URL."""
    url = login_url(api_url)
    logger.info(f"Opening browser for MyAnimeList login: {url}")
    webbrowser.open(url)
    return url
