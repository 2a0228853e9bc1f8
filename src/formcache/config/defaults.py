"""Package-level default configuration values."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Default server settings
DEFAULT_SERVER_URL = "http://localhost:8005"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Default store settings
DEFAULT_DB_PATH = Path.home() / ".formcache" / "forms.db"

# Default staleness check schedule (seconds)
DEFAULT_INITIAL_CHECK_DELAY = 1.0
DEFAULT_CHECK_INTERVAL = 20 * 60.0

# Most recent cache events kept in memory
DEFAULT_EVENT_LOG_SIZE = 1000

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "server_url": DEFAULT_SERVER_URL,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "db_path": str(DEFAULT_DB_PATH),
        "initial_check_delay": DEFAULT_INITIAL_CHECK_DELAY,
        "check_interval": DEFAULT_CHECK_INTERVAL,
        "log_level": DEFAULT_LOG_LEVEL,
    }
