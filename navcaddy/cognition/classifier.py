from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from navcaddy.cognition.clarification import ClarificationGenerator
from navcaddy.cognition.classification import (
    ClassificationResult,
    ClassifyClient,
    Confirm,
    ConfidenceTier,
    Failed,
    Route,
    confidence_tier,
)
from navcaddy.cognition.entities import ExtractedEntities, ParsedIntent
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind
from navcaddy.cognition.intent_registry import (
    IntentRegistry,
    IntentSchema,
    MissingEntities,
    get_registry,
)
from navcaddy.cognition.safe_fallbacks import render_safe_message
from navcaddy.observability.log_manager import LogManager, get_log_manager

if TYPE_CHECKING:
    from navcaddy.session.context import SessionContext

logger = logging.getLogger(__name__)


class ConfidenceClassifier:
    """Turns normalized text into a Route, Confirm, Clarify or Failed decision.

    The external classify call is the only blocking step. Each call takes a new
    generation number for its session; when the reply lands and a newer call
    has started in the meantime, the reply is dropped and `classify` returns
    None (latest wins).
    """

    def __init__(
        self,
        client: ClassifyClient,
        *,
        registry: IntentRegistry | None = None,
        clarifier: ClarificationGenerator | None = None,
        log_manager: LogManager | None = None,
    ) -> None:
        self._client = client
        self._registry = registry or get_registry()
        self._clarifier = clarifier or ClarificationGenerator(self._registry)
        self._log = log_manager or get_log_manager()
        self._lock = threading.Lock()
        self._generations: dict[str, int] = {}

    def classify(
        self,
        normalized_text: str,
        context: SessionContext | None = None,
        *,
        session_id: str = "default",
    ) -> ClassificationResult | None:
        text = str(normalized_text or "").strip()
        if not text:
            return Failed(
                cause=ClassificationError(ClassificationErrorKind.EMPTY_INPUT),
                message=render_safe_message("error.empty_input"),
            )

        generation = self._begin(session_id)
        started = time.monotonic()
        try:
            response = self._client.classify(text, context)
        except ClassificationError as exc:
            if not self.is_current(session_id, generation):
                return self._discard(session_id, generation)
            logger.warning("classify failed kind=%s detail=%s", exc.kind.value, exc.detail)
            self._log.emit(
                level="warning",
                event="pipeline.classify_failed",
                component="classifier",
                session_id=session_id,
                error_code=exc.kind.value,
                latency_ms=_elapsed_ms(started),
            )
            return Failed(cause=exc, message=render_safe_message("error.classification"))
        except Exception as exc:
            if not self.is_current(session_id, generation):
                return self._discard(session_id, generation)
            self._log.emit_exception(
                event="pipeline.classify_crashed",
                exc=exc,
                component="classifier",
                session_id=session_id,
            )
            return Failed(
                cause=ClassificationError(ClassificationErrorKind.PARSE_ERROR, str(exc)),
                message=render_safe_message("error.unexpected"),
            )

        if not self.is_current(session_id, generation):
            return self._discard(session_id, generation)

        parsed = response.to_parsed_intent()
        result = self.decide(parsed, original_input=text)
        self._log.emit(
            event="pipeline.classified",
            component="classifier",
            session_id=session_id,
            intent=parsed.intent.value,
            status=type(result).__name__.lower(),
            latency_ms=_elapsed_ms(started),
            payload={"confidence": round(parsed.confidence, 3)},
        )
        return result

    def decide(self, parsed: ParsedIntent, *, original_input: str) -> ClassificationResult:
        schema = self._registry.get_schema(parsed.intent)
        validation = self._registry.validate_entities(parsed.intent, parsed.entities)
        if isinstance(validation, MissingEntities):
            return self._clarifier.for_missing_entities(schema, validation, original_input)

        tier = confidence_tier(parsed.confidence)
        if tier is ConfidenceTier.ROUTE:
            if not schema.requires_navigation or schema.routing_target is None:
                return Confirm(intent=parsed, message=render_safe_message("ack.generic"))
            return Route(intent=parsed, target=parsed.routing_target or schema.routing_target)
        if tier is ConfidenceTier.CONFIRM:
            return Confirm(intent=parsed, message=confirmation_message(schema, parsed.entities))
        return self._clarifier.generate(original_input, parsed)

    def cancel(self, session_id: str = "default") -> None:
        """Supersede whatever classification is in flight for the session."""
        self._begin(session_id)

    def is_current(self, session_id: str, generation: int) -> bool:
        with self._lock:
            return self._generations.get(session_id) == generation

    def _begin(self, session_id: str) -> int:
        with self._lock:
            generation = self._generations.get(session_id, 0) + 1
            self._generations[session_id] = generation
            return generation

    def _discard(self, session_id: str, generation: int) -> None:
        logger.info(
            "discarding stale classification session=%s generation=%s",
            session_id,
            generation,
        )
        return None


def confirmation_message(schema: IntentSchema, entities: ExtractedEntities) -> str:
    details: list[str] = []
    if entities.club:
        details.append(f"with {entities.club}")
    if entities.yardage is not None:
        details.append(f"at {entities.yardage} yards")
    if entities.lie is not None:
        details.append(f"from the {entities.lie.value}")
    suffix = f" ({', '.join(details)})" if details else ""
    return render_safe_message(
        "confirm.intent",
        variables={"action": schema.display_name.lower(), "details": suffix},
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
