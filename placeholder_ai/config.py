"""Service-level runtime configuration.

Architectural role:
    Centralizes dimension limits, cache lifetimes, sweep intervals and server
    binding used by `api.http_api`, `api.main` and the app factory that
    wires `core.coordinator` and `core.result_cache`.

Determinism:
    Values are resolved once at import time from the process environment (after
    `.env` loading). Changing the environment afterwards has no effect.

Failure behavior:
    Malformed numeric overrides raise `ValueError` at import time.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_number(name, default):
    """Read a numeric override from the environment, keeping `default`'s type."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return type(default)(raw)


# Accepted image dimension range (inclusive on both ends).
MIN_DIMENSION = 1
MAX_DIMENSION = 2048

# Used when the query string omits width/height.
DEFAULT_WIDTH = 400
DEFAULT_HEIGHT = 300

# Cache lifetimes for terminal generation records.
SUCCESS_TTL_SECONDS = _env_number("SUCCESS_TTL_SECONDS", 24 * 60 * 60)
FAILURE_TTL_SECONDS = _env_number("FAILURE_TTL_SECONDS", 5 * 60)

# Background housekeeping.
CACHE_SWEEP_INTERVAL_SECONDS = _env_number("CACHE_SWEEP_INTERVAL_SECONDS", 5 * 60)
RECORD_MAX_AGE_SECONDS = _env_number("RECORD_MAX_AGE_SECONDS", 60 * 60)
RECORD_CLEANUP_INTERVAL_SECONDS = _env_number("RECORD_CLEANUP_INTERVAL_SECONDS", 60 * 60)

# Suggested client re-poll delay returned with every placeholder.
REFRESH_AFTER_SECONDS = _env_number("REFRESH_AFTER_SECONDS", 30)

# Server binding and diagnostics.
HOST = os.getenv("HOST", "127.0.0.1")
PORT = _env_number("PORT", 8000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = os.getenv("DEBUG") == "true"
