"""
listimport/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files
from listimport.domain.list_import import ErrorMode, FailedRowPolicy
from listimport.mappers.type_mapper import DEFAULT_LONG_TEXT_THRESHOLD

_ALLOWED_STORES = {"sharepoint", "memory"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


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


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
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
class StoreHTTPSettings:
    """
    Shared HTTP behavior settings for remote store clients.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class SharePointSettings:
    """
    SharePoint site and credential settings.
    """

    site_url: str | None = None
    username: str | None = None
    password: str | None = None
    access_token: str | None = None
    verify_tls: bool = True


@dataclass(frozen=True)
class ListImportSettings:
    """
    Default switches for list import runs.
    """

    store: str = "sharepoint"
    auto_create: bool = False
    quiet: bool = False
    error_mode: ErrorMode = ErrorMode.SOFT
    failed_row_policy: FailedRowPolicy = FailedRowPolicy.SKIP
    long_text_threshold: int = DEFAULT_LONG_TEXT_THRESHOLD


@lru_cache(maxsize=1)
def get_store_http_settings() -> StoreHTTPSettings:
    """
    Return shared store HTTP settings from environment variables.
    """

    return StoreHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("STORE_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("STORE_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("STORE_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("STORE_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("STORE_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_sharepoint_settings() -> SharePointSettings:
    """
    Return SharePoint connection settings from environment variables.
    """

    site_url = _get_optional_str_env("SHAREPOINT_SITE_URL")
    return SharePointSettings(
        site_url=site_url.rstrip("/") if site_url else None,
        username=_get_optional_str_env("SHAREPOINT_USERNAME"),
        password=_get_optional_str_env("SHAREPOINT_PASSWORD"),
        access_token=_get_optional_str_env("SHAREPOINT_ACCESS_TOKEN"),
        verify_tls=_get_bool_env("SHAREPOINT_VERIFY_TLS", True),
    )


@lru_cache(maxsize=1)
def get_list_import_settings() -> ListImportSettings:
    """
    Return list import defaults from environment variables.

    Raises RuntimeError when an enumerated setting holds an unknown value.
    """

    store = _get_str_env("LIST_IMPORT_STORE", "sharepoint").lower()
    if store not in _ALLOWED_STORES:
        raise RuntimeError(
            f"LIST_IMPORT_STORE '{store}' is not valid. Allowed values: {sorted(_ALLOWED_STORES)}."
        )

    raw_error_mode = _get_str_env("LIST_IMPORT_ERROR_MODE", ErrorMode.SOFT.value).lower()
    raw_policy = _get_str_env("LIST_IMPORT_FAILED_ROW_POLICY", FailedRowPolicy.SKIP.value).lower()
    try:
        error_mode = ErrorMode(raw_error_mode)
        failed_row_policy = FailedRowPolicy(raw_policy)
    except ValueError as exc:
        raise RuntimeError(f"Invalid list import setting: {exc}") from exc

    return ListImportSettings(
        store=store,
        auto_create=_get_bool_env("LIST_IMPORT_AUTO_CREATE", False),
        quiet=_get_bool_env("LIST_IMPORT_QUIET", False),
        error_mode=error_mode,
        failed_row_policy=failed_row_policy,
        long_text_threshold=max(1, _get_int_env("LIST_IMPORT_LONG_TEXT_THRESHOLD", DEFAULT_LONG_TEXT_THRESHOLD)),
    )
