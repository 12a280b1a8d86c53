from __future__ import annotations

import pytest

from navcaddy.cognition.entities import IntentType
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind
from navcaddy.cognition.recovery import RECOVERY_STRATEGIES, recovery_for
from navcaddy.cognition.safe_fallbacks import get_safe_fallback, render_safe_message
from navcaddy.config.settings import (
    get_connectivity_debounce_ms,
    get_locale,
    get_log_level,
    get_sync_endpoint,
    get_sync_poll_seconds,
    load_config,
)


def test_defaults() -> None:
    config = load_config()

    assert config.locale == "en"
    assert config.connectivity_debounce_ms == 500
    assert config.sync.max_retries == 5
    assert config.sync.base_backoff_ms == 30_000
    assert config.sync.max_backoff_ms == 1_800_000
    assert config.sync.endpoint is None


def test_invalid_values_fall_back_or_clamp(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVCADDY_CONNECTIVITY_DEBOUNCE_MS", "soon")
    monkeypatch.setenv("NAVCADDY_SYNC_POLL_SECONDS", "0")
    monkeypatch.setenv("NAVCADDY_SYNC_MAX_RETRIES", "-2")
    monkeypatch.setenv("NAVCADDY_SYNC_BASE_BACKOFF_MS", "60000")
    monkeypatch.setenv("NAVCADDY_SYNC_MAX_BACKOFF_MS", "1000")
    monkeypatch.setenv("NAVCADDY_LOG_LEVEL", "chatty")
    monkeypatch.setenv("NAVCADDY_LOCALE", "fr-FR")
    monkeypatch.setenv("NAVCADDY_SYNC_URL", "ftp://sync.example.test")

    config = load_config()

    assert get_connectivity_debounce_ms() == 500
    assert get_sync_poll_seconds() == 0.1
    assert config.sync.max_retries == 1
    assert config.sync.max_backoff_ms == 60_000
    assert get_log_level() == "INFO"
    assert get_locale() == "en"
    assert get_sync_endpoint() is None


def test_sync_endpoint_is_trimmed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVCADDY_SYNC_URL", " https://sync.example.test/ ")

    assert get_sync_endpoint() == "https://sync.example.test"


def test_spanish_locale_with_english_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVCADDY_LOCALE", "es-MX")

    assert render_safe_message("ack.cancelled") == "Listo, lo dejamos."
    assert get_safe_fallback("answer.feedback") == "Thanks for the feedback! It helps make the caddy better."
    assert get_safe_fallback("no.such.key", "en") == "I can't do that right now."


def test_every_error_kind_has_a_recovery_strategy() -> None:
    assert set(RECOVERY_STRATEGIES) == set(ClassificationErrorKind)
    network = recovery_for(ClassificationError(ClassificationErrorKind.NETWORK_ERROR))
    assert network.use_offline is True
    assert recovery_for(ClassificationErrorKind.INVALID_INPUT).suggested_intents == (IntentType.HELP_REQUEST,)
    assert recovery_for(ClassificationErrorKind.PARSE_ERROR).use_offline is False
