import os
from dotenv import load_dotenv

load_dotenv()

TRAKT_API_BASE = os.getenv("TRAKT_API_BASE", "https://api.trakt.tv").rstrip("/")
TRAKT_CONFIG_PATH = os.getenv("TRAKT_CONFIG_PATH", "config.json")
TRAKT_TOKEN_PATH = os.getenv("TRAKT_TOKEN_PATH", "trakt_token.json")
TRAKT_CLIENT_ID = os.getenv("TRAKT_CLIENT_ID", "")
TRAKT_CLIENT_SECRET = os.getenv("TRAKT_CLIENT_SECRET", "")
TRAKT_REDIRECT_URI = os.getenv("TRAKT_REDIRECT_URI", "http://localhost:8000")
TRAKT_HTTP_TIMEOUT = float(os.getenv("TRAKT_HTTP_TIMEOUT", "15"))
# 0 or unset → wait for the browser callback indefinitely
TRAKT_OAUTH_TIMEOUT = float(os.getenv("TRAKT_OAUTH_TIMEOUT", "0")) or None
OAUTH_SHUTDOWN_DELAY = float(os.getenv("TRAKT_OAUTH_SHUTDOWN_DELAY", "1.0"))
MAX_LIST_BATCH_SIZE = 10


def _batch_size(raw: str) -> int:
    # list uploads are capped at 10 items per request
    return min(max(int(raw), 1), MAX_LIST_BATCH_SIZE)


LIST_BATCH_SIZE = _batch_size(os.getenv("TRAKT_LIST_BATCH_SIZE", "10"))
LIST_BATCH_DELAY = float(os.getenv("TRAKT_LIST_BATCH_DELAY", "1.0"))
