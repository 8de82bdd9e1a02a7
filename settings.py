from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_DB_PATH_ENV = "BINLYTICS_DB_PATH"
_CORS_ORIGINS_ENV = "BINLYTICS_CORS_ORIGINS"
_RECENT_LIMIT_ENV = "BINLYTICS_RECENT_LIMIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    db_path: Optional[str]
    cors_origins: Tuple[str, ...]
    recent_limit: int
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(part.strip() for part in value.split(",") if part.strip())
    return origins or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
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
        db_path=_read_optional_env(_DB_PATH_ENV, "./data/db.json"),
        cors_origins=_read_origins(("*",)),
        recent_limit=_read_positive_int(_RECENT_LIMIT_ENV, 50),
        log_level=_read_log_level("INFO"),
    )
