from __future__ import annotations

import logging
import os
from typing import Any

from navcaddy.cognition.providers.ollama import OllamaClient
from navcaddy.cognition.providers.openai import OpenAIClient

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("ollama", "openai")


def build_llm_client() -> Any:
    provider = str(os.getenv("NAVCADDY_LLM_PROVIDER", "ollama")).strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        logger.warning("Unknown NAVCADDY_LLM_PROVIDER=%s, using ollama", provider)
    if provider == "openai":
        return _build_openai_client()
    return _build_ollama_client()


def _build_ollama_client() -> OllamaClient:
    base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    model = os.getenv("NAVCADDY_LLM_MODEL", "mistral:7b-instruct")
    timeout_seconds = _parse_float(
        os.getenv("NAVCADDY_LLM_TIMEOUT_SECONDS"),
        default=30.0,
    )
    return OllamaClient(
        base_url=base_url,
        model=model,
        timeout=timeout_seconds,
    )


def _build_openai_client() -> OpenAIClient:
    base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    timeout_seconds = _parse_float(os.getenv("OPENAI_TIMEOUT_SECONDS"), default=30.0)
    return OpenAIClient(
        base_url=base_url,
        model=model,
        api_key_env=os.getenv("OPENAI_API_KEY_ENV", "OPENAI_API_KEY"),
        timeout=timeout_seconds,
    )


def _parse_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default
