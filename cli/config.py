from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_TIMEOUT = 60.0
DEFAULT_FEED_INTERVAL = 5.0
DEFAULT_CACHE_PATH = Path.home() / ".reservoir_monitor" / "cache.json"

_BASE_URL_ENV = "API_BASE_URL"
_POLL_INTERVAL_ENV = "CLI_POLL_INTERVAL"
_TIMEOUT_ENV = "CLI_POLL_TIMEOUT"
_FEED_INTERVAL_ENV = "CLI_FEED_INTERVAL"
_USER_ID_ENV = "RESERVOIR_USER_ID"
_CACHE_PATH_ENV = "RESERVOIR_CACHE_PATH"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_TIMEOUT
    feed_interval: float = DEFAULT_FEED_INTERVAL
    user_id: Optional[str] = None
    cache_path: Path = DEFAULT_CACHE_PATH


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_timeout: Optional[float] = None,
    user_id: Optional[str] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if poll_interval is None:
        poll_interval = _read_float(os.getenv(_POLL_INTERVAL_ENV), DEFAULT_POLL_INTERVAL)
    if poll_timeout is None:
        poll_timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    user = (user_id or os.getenv(_USER_ID_ENV) or "").strip() or None
    cache_path = (os.getenv(_CACHE_PATH_ENV) or "").strip()
    return CLIConfig(
        base_url=url.rstrip("/"),
        poll_interval=poll_interval,
        poll_timeout=poll_timeout,
        feed_interval=_read_float(os.getenv(_FEED_INTERVAL_ENV), DEFAULT_FEED_INTERVAL),
        user_id=user,
        cache_path=Path(cache_path).expanduser() if cache_path else DEFAULT_CACHE_PATH,
    )
