from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_LOCALE = "en"
DEFAULT_DEBOUNCE_MS = 500
DEFAULT_SYNC_MAX_RETRIES = 5
DEFAULT_SYNC_BASE_BACKOFF_MS = 30_000
DEFAULT_SYNC_MAX_BACKOFF_MS = 30 * 60 * 1000
DEFAULT_SYNC_POLL_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class SyncConfig:
    max_retries: int = DEFAULT_SYNC_MAX_RETRIES
    base_backoff_ms: int = DEFAULT_SYNC_BASE_BACKOFF_MS
    max_backoff_ms: int = DEFAULT_SYNC_MAX_BACKOFF_MS
    poll_seconds: float = DEFAULT_SYNC_POLL_SECONDS
    endpoint: str | None = None


@dataclass(frozen=True)
class NavCaddyConfig:
    locale: str = DEFAULT_LOCALE
    connectivity_debounce_ms: int = DEFAULT_DEBOUNCE_MS
    sync: SyncConfig = field(default_factory=SyncConfig)


def load_config() -> NavCaddyConfig:
    return NavCaddyConfig(
        locale=get_locale(),
        connectivity_debounce_ms=get_connectivity_debounce_ms(),
        sync=SyncConfig(
            max_retries=get_sync_max_retries(),
            base_backoff_ms=get_sync_base_backoff_ms(),
            max_backoff_ms=get_sync_max_backoff_ms(),
            poll_seconds=get_sync_poll_seconds(),
            endpoint=get_sync_endpoint(),
        ),
    )


def get_locale() -> str:
    configured = os.getenv("NAVCADDY_LOCALE")
    locale = (
        configured.strip().lower()
        if isinstance(configured, str) and configured.strip()
        else DEFAULT_LOCALE
    )
    if not locale.startswith(("en", "es")):
        return DEFAULT_LOCALE
    return locale


def get_log_level() -> str:
    configured = str(os.getenv("NAVCADDY_LOG_LEVEL") or "").strip().upper()
    if configured in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        return configured
    return DEFAULT_LOG_LEVEL


def get_connectivity_debounce_ms() -> int:
    return _as_int(os.getenv("NAVCADDY_CONNECTIVITY_DEBOUNCE_MS"), DEFAULT_DEBOUNCE_MS, minimum=1)


def get_sync_max_retries() -> int:
    return _as_int(os.getenv("NAVCADDY_SYNC_MAX_RETRIES"), DEFAULT_SYNC_MAX_RETRIES, minimum=1)


def get_sync_base_backoff_ms() -> int:
    return _as_int(
        os.getenv("NAVCADDY_SYNC_BASE_BACKOFF_MS"),
        DEFAULT_SYNC_BASE_BACKOFF_MS,
        minimum=0,
    )


def get_sync_max_backoff_ms() -> int:
    base = get_sync_base_backoff_ms()
    configured = _as_int(
        os.getenv("NAVCADDY_SYNC_MAX_BACKOFF_MS"),
        DEFAULT_SYNC_MAX_BACKOFF_MS,
        minimum=0,
    )
    return max(configured, base)


def get_sync_poll_seconds() -> float:
    configured = os.getenv("NAVCADDY_SYNC_POLL_SECONDS")
    if configured is None:
        return DEFAULT_SYNC_POLL_SECONDS
    try:
        value = float(configured)
    except (TypeError, ValueError):
        return DEFAULT_SYNC_POLL_SECONDS
    return max(value, 0.1)


def get_sync_endpoint() -> str | None:
    configured = str(os.getenv("NAVCADDY_SYNC_URL") or "").strip().rstrip("/")
    if not configured.startswith(("http://", "https://")):
        return None
    return configured


def _as_int(raw: str | None, default: int, *, minimum: int | None = None) -> int:
    try:
        value = int(str(raw).strip()) if raw is not None else default
    except (TypeError, ValueError):
        value = default
    if minimum is not None:
        return max(minimum, value)
    return value
