"""Tests for configuration loading and session storage."""

import pytest
from pydantic import ValidationError

from mal_watchlist import config
from mal_watchlist.config import Settings
from mal_watchlist.session import SessionStore, login_url, open_login


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(config.API_URL_ENV, raising=False)
    monkeypatch.delenv(config.SESSION_TOKEN_ENV, raising=False)


def test_defaults_without_config_file(tmp_path):
    """A missing config file falls back to defaults."""
    settings = Settings(tmp_path / "missing.yaml")

    assert settings.api_url == "http://localhost:3001"
    assert settings.list_path == "/api/v1/user/list"
    assert settings.order_path == "/api/v1/user/list"
    assert settings.cookie_name == "token"
    assert settings.retries == 3
    assert settings.log_level == "INFO"


def test_load_yaml(tmp_path):
    """Values from config.yaml are applied."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "api:\n"
        "  url: https://watch.example/\n"
        "  list_path: /api/v1/anime\n"
        "  order_path: /api/v1/order\n"
        "  retries: 5\n"
        "logging:\n"
        "  level: debug\n"
        "web:\n"
        "  port: 9000\n"
    )

    settings = Settings(path)

    assert settings.api_url == "https://watch.example"
    assert settings.list_path == "/api/v1/anime"
    assert settings.order_path == "/api/v1/order"
    assert settings.retries == 5
    assert settings.log_level == "DEBUG"
    assert settings.web_port == 9000


def test_env_overrides(tmp_path, monkeypatch):
    """Environment variables override the API URL and provide the session token."""
    monkeypatch.setenv(config.API_URL_ENV, "http://override:3001/")
    monkeypatch.setenv(config.SESSION_TOKEN_ENV, "from-env")

    settings = Settings(tmp_path / "missing.yaml")

    assert settings.api_url == "http://override:3001"
    assert settings.session_token == "from-env"


def test_invalid_config(tmp_path):
    """Invalid values raise instead of being silently ignored."""
    path = tmp_path / "config.yaml"
    path.write_text("api:\n  retries: -1\n")

    with pytest.raises(Exception):
        Settings(path)


def test_session_store_roundtrip(tmp_path):
    """Saved tokens survive a new store instance; clear removes them."""
    path = tmp_path / "nested" / "session.json"
    SessionStore(path).save_token("abc")

    store = SessionStore(path)
    assert store.get_token() == "abc"

    store.clear()
    assert store.get_token() is None
    assert not path.exists()


def test_session_store_corrupt_file(tmp_path):
    """A corrupt session file is treated as logged out."""
    path = tmp_path / "session.json"
    path.write_text("{not json")

    assert SessionStore(path).get_token() is None


def test_login_url(monkeypatch):
    """open_login opens the backend OAuth handoff."""
    opened = []
    monkeypatch.setattr("mal_watchlist.session.webbrowser.open", opened.append)

    url = open_login("http://backend.test/")

    assert url == login_url("http://backend.test") == "http://backend.test/oauth/mal/redirect"
    assert opened == [url]


def test_invalid_log_level(tmp_path):
    """An unknown logging level is a config error, not a crash at startup."""
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: verbose\n")

    with pytest.raises(ValidationError):
        Settings(path)
