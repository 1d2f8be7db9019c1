from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_API_KEY_ENVS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
_MODEL_NAME_ENV = "GEMINI_MODEL_NAME"
_MAX_UPLOAD_ENV = "MAX_UPLOAD_BYTES"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    model_name: str
    max_upload_bytes: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_api_key() -> Optional[str]:
    for name in _API_KEY_ENVS:
        value = os.getenv(name)
        if value is None:
            continue
        candidate = value.strip()
        if candidate:
            return candidate
    return None


def _read_max_upload(default: int) -> int:
    value = os.getenv(_MAX_UPLOAD_ENV)
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
        api_key=_read_api_key(),
        model_name=_read_str_env(_MODEL_NAME_ENV, DEFAULT_MODEL_NAME),
        max_upload_bytes=_read_max_upload(DEFAULT_MAX_UPLOAD_BYTES),
        log_level=_read_log_level("INFO"),
    )
