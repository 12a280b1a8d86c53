from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

import requests
from pydantic import ValidationError

from navcaddy.cognition.classification import ClassifyResponse
from navcaddy.cognition.entities import EntityType
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind
from navcaddy.cognition.intent_registry import IntentRegistry, get_registry
from navcaddy.cognition.providers.json_parse import parse_json_object
from navcaddy.cognition.providers.payload import ClassifyPayload
from navcaddy.session.context import describe_context

if TYPE_CHECKING:
    from navcaddy.session.context import SessionContext

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT_HEADER = """You are the intent classifier of a golf caddy assistant.
Read the golfer's message and answer with ONE JSON object and nothing else:
{"intent": "<intent id>", "confidence": <0.0-1.0>, "entities": {...}, "user_goal": "<short goal>"}
Use only the intent ids listed below. Only include entities you actually heard.
Lower the confidence when the message is ambiguous."""


class LLMClassifyClient:
    """Classify capability backed by a chat-completion client.

    `llm` is anything with `complete(system_prompt, user_prompt) -> str`; the
    Ollama and OpenAI clients from `build_llm_client()` both qualify.
    """

    def __init__(self, llm: Any, registry: IntentRegistry | None = None) -> None:
        self._llm = llm
        self._registry = registry or get_registry()
        self._system_prompt = build_system_prompt(self._registry)

    @property
    def model_name(self) -> str:
        return str(getattr(self._llm, "model", "") or type(self._llm).__name__)

    def classify(self, normalized_input: str, context: SessionContext | None) -> ClassifyResponse:
        user_prompt = build_user_prompt(normalized_input, context)
        started = time.monotonic()
        try:
            raw = self._llm.complete(self._system_prompt, user_prompt)
        except requests.Timeout as exc:
            raise ClassificationError(ClassificationErrorKind.TIMEOUT, str(exc)) from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise ClassificationError.from_http_status(status, str(exc)) from exc
        except requests.JSONDecodeError as exc:
            raise ClassificationError(ClassificationErrorKind.PARSE_ERROR, str(exc)) from exc
        except requests.RequestException as exc:
            raise ClassificationError(ClassificationErrorKind.NETWORK_ERROR, str(exc)) from exc
        except ValueError as exc:
            # Provider clients raise ValueError when the API key is missing.
            raise ClassificationError(ClassificationErrorKind.AUTH_ERROR, str(exc)) from exc
        except (KeyError, IndexError, TypeError) as exc:
            raise ClassificationError(ClassificationErrorKind.PARSE_ERROR, f"unexpected reply shape: {exc}") from exc
        latency_ms = int((time.monotonic() - started) * 1000)

        parsed = parse_json_object(raw)
        if parsed is None:
            logger.warning("classify reply was not JSON model=%s raw=%s", self.model_name, str(raw)[:200])
            raise ClassificationError(ClassificationErrorKind.PARSE_ERROR, "reply was not a JSON object")
        try:
            payload = ClassifyPayload.model_validate(parsed)
        except ValidationError as exc:
            logger.warning("classify reply failed validation model=%s errors=%s", self.model_name, exc.error_count())
            raise ClassificationError(ClassificationErrorKind.PARSE_ERROR, str(exc)) from exc

        return payload.to_response(
            {
                "raw_response": raw,
                "latency_ms": latency_ms,
                "model_name": self.model_name,
            }
        )


def build_system_prompt(registry: IntentRegistry) -> str:
    lines = [_SYSTEM_PROMPT_HEADER, "", "Intents:"]
    for schema in registry.get_all_schemas():
        required = ", ".join(sorted(item.value for item in schema.required_entities)) or "none"
        lines.append(f"- {schema.intent.value}: {schema.description} (required entities: {required})")
        lines.append(f"  e.g. {json.dumps(list(schema.example_phrases[:2]))}")
    lines.append("")
    lines.append("Entities: " + ", ".join(item.value for item in EntityType))
    lines.append("lie is one of tee, fairway, rough, bunker, green, fringe, hazard.")
    lines.append("yardage and hole_number are integers; fatigue is 1-10.")
    return "\n".join(lines)


def build_user_prompt(normalized_input: str, context: SessionContext | None) -> str:
    return f"Context:\n{describe_context(context)}\n\nGolfer: {normalized_input}"
