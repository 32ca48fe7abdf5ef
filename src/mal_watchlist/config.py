"""Configuration management using Pydantic models."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_API_URL,
    DEFAULT_RETRY_COUNT,
    DEFAULT_SESSION_COOKIE,
    DEFAULT_WEB_UI_PORT,
    LIST_PATH,
    ORDER_PATH,
)

logger = logging.getLogger(__name__)

API_URL_ENV = "MAL_WATCHLIST_API_URL"
SESSION_TOKEN_ENV = "MAL_WATCHLIST_SESSION_TOKEN"
CONFIG_PATH_ENV = "MAL_WATCHLIST_CONFIG"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class ApiConfig(BaseModel):
    """Backend API configuration."""
    url: str = DEFAULT_API_URL
    list_path: str = LIST_PATH
    order_path: str = ORDER_PATH
    retries: int = Field(default=DEFAULT_RETRY_COUNT, ge=0)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class SessionConfig(BaseModel):
    """Session cookie settings."""
    cookie_name: str = DEFAULT_SESSION_COOKIE
    session_file_path: str = "data/session.json"


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")
        return level


class WebConfig(BaseModel):
    """Local web app settings."""
    host: str = "127.0.0.1"
    port: int = DEFAULT_WEB_UI_PORT


class Config(BaseModel):
    """Root configuration model."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)


class Settings:
    """Application settings loaded from config.yaml."""

    def __init__(self, config_path: Optional[Path] = None):
        """Load and validate configuration."""
        self.config_path = config_path or self._get_config_path()
        self._load_config()

    def _get_config_path(self) -> Path:
        """Get config file path based on environment."""
        if os.environ.get(CONFIG_PATH_ENV):
            return Path(os.environ[CONFIG_PATH_ENV])
        if os.path.exists("/.dockerenv"):
            return Path("/app/data/config.yaml")
        return Path("data/config.yaml")

    def _load_config(self) -> None:
        """Load configuration from YAML using Pydantic."""
        try:
            if self.config_path.exists():
                with open(self.config_path, "r", encoding="utf-8") as f:
                    raw_config = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {self.config_path}")
            else:
                raw_config = {}
                logger.debug(f"No config file at {self.config_path}, using defaults")

            config = Config(**raw_config)
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise

        self.api_url = os.environ.get(API_URL_ENV) or config.api.url
        self.api_url = self.api_url.rstrip("/")
        self.list_path = config.api.list_path
        self.order_path = config.api.order_path
        self.retries = config.api.retries

        self.cookie_name = config.session.cookie_name
        self.session_file = Path(config.session.session_file_path)
        self.session_token = os.environ.get(SESSION_TOKEN_ENV, "")

        self.log_level = config.logging.level
        self.web_host = config.web.host
        self.web_port = config.web.port


# Singleton cache for settings
_SETTINGS_SINGLETON = None

def get_settings() -> Settings:
    """Get (cached) application settings singleton."""
    global _SETTINGS_SINGLETON
    if _SETTINGS_SINGLETON is None:
        _SETTINGS_SINGLETON = Settings()
    return _SETTINGS_SINGLETON

def reload_settings() -> Settings:
    """Force reload of application settings singleton."""
    global _SETTINGS_SINGLETON
    _SETTINGS_SINGLETON = Settings()
    return _SETTINGS_SINGLETON
