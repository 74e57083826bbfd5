"""
mapshare configuration.

Values are read from the process environment once, at import time, after
loading a local ``.env`` file. Hosted deployments (Vercel, Upstash
integrations) expose the same settings under different names, so every
lookup accepts a list of aliases.
"""
import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

from mapshare.errors import ConfigError

load_dotenv()


def _get_env_var(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return default


# =============================================================================
# Key-value store (Upstash Redis REST API)
# =============================================================================

UPSTASH_REDIS_REST_URL = _get_env_var("UPSTASH_REDIS_REST_URL", "KV_REST_API_URL")
UPSTASH_REDIS_REST_TOKEN = _get_env_var("UPSTASH_REDIS_REST_TOKEN", "KV_REST_API_TOKEN")

# Every store call is bounded by this timeout; expiry surfaces as StoreUnavailable
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

# Upper bound on keys returned by one prefix listing
STORE_SCAN_LIMIT = int(os.getenv("STORE_SCAN_LIMIT", "1000"))

# COUNT hint sent with each SCAN page
STORE_SCAN_PAGE_SIZE = int(os.getenv("STORE_SCAN_PAGE_SIZE", "200"))

# =============================================================================
# Auth and retention
# =============================================================================

# Shared secret for admin-only listings (X-Admin-Token header)
STATE_ADMIN_TOKEN = _get_env_var("STATE_ADMIN_TOKEN")

AUTH_TOKEN_TTL_SECONDS = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", 7 * 24 * 60 * 60))

# 0 keeps map sessions until deleted
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "0"))

EMPLOYEE_HISTORY_LIMIT = int(os.getenv("EMPLOYEE_HISTORY_LIMIT", "100"))

# Largest upstream body the image proxy will relay
IMAGE_PROXY_MAX_BYTES = int(os.getenv("IMAGE_PROXY_MAX_BYTES", str(10 * 1024 * 1024)))

# =============================================================================
# HTTP server
# =============================================================================

HTTP_SERVER_CONFIG = {
    "host": os.getenv("HTTP_HOST", "0.0.0.0"),
    "port": int(os.getenv("HTTP_PORT", "8000")),
    "cors_origins": ["*"],
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class StoreSettings:
    """Validated connection settings for the REST key-value service."""

    url: str
    token: str
    timeout: float = STORE_TIMEOUT_SECONDS


_REDIS_URL_RE = re.compile(r"^rediss?://(?:[^@]+@)?([^:/]+)(?::\d+)?", re.IGNORECASE)
_REDIS_CLI_RE = re.compile(r"-u\s+(\S+)")


def normalize_upstash_url(raw: str | None) -> str | None:
    """Turn whatever the dashboard gave us into a REST base URL.

    Accepts a plain ``https://<id>.upstash.io`` URL, a
    ``redis://default:<pw>@<host>:<port>`` connection string, or a whole
    ``redis-cli -u redis://...`` command line. Returns ``None`` for empty
    input and the stripped input when nothing matches.
    """
    if not raw:
        return None
    raw = raw.strip()
    if raw.startswith("redis-cli"):
        m = _REDIS_CLI_RE.search(raw)
        if m:
            raw = m.group(1)
    m = _REDIS_URL_RE.match(raw)
    if m:
        return f"https://{m.group(1)}"
    return raw.rstrip("/")


def get_store_settings(
    url: str | None = None,
    token: str | None = None,
    timeout: float | None = None,
) -> StoreSettings:
    """Build store settings from arguments or the environment.

    Raises:
        ConfigError: URL or token missing, or URL not https.
    """
    raw_url = url if url is not None else UPSTASH_REDIS_REST_URL
    token = token if token is not None else UPSTASH_REDIS_REST_TOKEN
    if not raw_url or not token:
        raise ConfigError(
            "Missing UPSTASH_REDIS_REST_URL or UPSTASH_REDIS_REST_TOKEN environment variables."
        )
    normalized = normalize_upstash_url(raw_url)
    if not normalized or not normalized.lower().startswith("https://"):
        raise ConfigError(
            "Invalid UPSTASH_REDIS_REST_URL. Expected an https URL like "
            f'https://<id>.upstash.io or a redis:// connection string; received: "{raw_url}"'
        )
    return StoreSettings(
        url=normalized,
        token=token,
        timeout=timeout if timeout is not None else STORE_TIMEOUT_SECONDS,
    )
