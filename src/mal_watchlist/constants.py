"""Constants used throughout the application."""

# HTTP Status Codes
HTTP_UNAUTHORIZED = 401
HTTP_CONFLICT = 409
HTTP_TOO_MANY_REQUESTS = 429
HTTP_BAD_GATEWAY = 502

# Statuses retried by the HTTP adapter (401 is terminal and never retried)
RETRY_STATUS_CODES = [HTTP_TOO_MANY_REQUESTS, 500, 502, 503, 504]

# API paths
AUTH_ME_PATH = "/api/v1/auth/me"
LIST_PATH = "/api/v1/user/list"
ORDER_PATH = "/api/v1/user/list"
ANIME_PATH = "/api/v1/anime/{anime_id}"
LOGIN_PATH = "/oauth/mal/redirect"

# Default values
DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_SESSION_COOKIE = "token"
DEFAULT_RETRY_COUNT = 3
DEFAULT_TIMEOUT_SECONDS = 15
DEFAULT_WEB_UI_PORT = 8080
MAL_ANIME_URL = "https://myanimelist.net/anime/{anime_id}"
