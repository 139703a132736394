from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DATA_PATH_ENV = "RESERVOIR_DATA_PATH"
_UPLOAD_ROOT_ENV = "RESERVOIR_UPLOAD_ROOT"
_UPLOAD_BUCKET_ENV = "RESERVOIR_UPLOAD_BUCKET"
_WORKER_COUNT_ENV = "IMPORT_WORKER_COUNT"
_FEED_SEED_ENV = "MOCK_FEED_SEED"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    data_path: Optional[str]
    upload_root_path: Optional[str]
    upload_bucket_name: str
    import_workers: int
    feed_seed: Optional[int]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_worker_count(default: int) -> int:
    value = os.getenv(_WORKER_COUNT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_seed() -> Optional[int]:
    value = os.getenv(_FEED_SEED_ENV)
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_path=_read_optional_env(_DATA_PATH_ENV, "./tmp/reservoir_db"),
        upload_root_path=_read_optional_env(_UPLOAD_ROOT_ENV, "./tmp/uploads"),
        upload_bucket_name=_read_str_env(_UPLOAD_BUCKET_ENV, "history-uploads"),
        import_workers=_read_worker_count(4),
        feed_seed=_read_seed(),
        log_level=_read_log_level("INFO"),
    )
