"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class PriceCatalogSettings:
    """
    Runtime settings for price archive ingestion and catalog export.
    """

    api_path: str = "/api/v0/prices"
    max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES
    csv_suffix: str = ".csv"
    export_archive_name: str = "response"
    export_entry_name: str = "data.csv"
    scratch_dir: str | None = None


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@lru_cache(maxsize=1)
def get_price_catalog_settings() -> PriceCatalogSettings:
    """
    Return cached price catalog settings from environment variables.
    """

    api_path = _get_str_env("PRICES_API_PATH", "/api/v0/prices")
    if not api_path.startswith("/"):
        api_path = f"/{api_path}"

    suffix = _get_str_env("PRICES_CSV_SUFFIX", ".csv").lower()
    if not suffix.startswith("."):
        suffix = f".{suffix}"

    return PriceCatalogSettings(
        api_path=api_path.rstrip("/") or "/api/v0/prices",
        max_upload_bytes=max(1, _get_int_env("PRICES_MAX_UPLOAD_BYTES", _DEFAULT_MAX_UPLOAD_BYTES)),
        csv_suffix=suffix,
        export_archive_name=_get_str_env("PRICES_EXPORT_ARCHIVE_NAME", "response"),
        export_entry_name=_get_str_env("PRICES_EXPORT_ENTRY_NAME", "data.csv"),
        scratch_dir=_get_optional_str_env("PRICES_SCRATCH_DIR"),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """
    Return cached logging settings.
    """

    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
