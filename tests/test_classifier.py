from __future__ import annotations

import threading

from navcaddy.cognition.classification import (
    Clarify,
    ClassifyResponse,
    Confirm,
    ConfidenceTier,
    Failed,
    Route,
    confidence_tier,
)
from navcaddy.cognition.classifier import ConfidenceClassifier
from navcaddy.cognition.entities import (
    EntityType,
    ExtractedEntities,
    IntentType,
    Lie,
    Module,
    RoutingTarget,
)
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind


class _StubClient:
    def __init__(self, response: ClassifyResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, object]] = []

    def classify(self, normalized_input, context):
        self.calls.append((normalized_input, context))
        if self.error is not None:
            raise self.error
        return self.response


def _response(intent: IntentType, confidence: float, **kwargs) -> ClassifyResponse:
    return ClassifyResponse(intent=intent, confidence=confidence, **kwargs)


def test_tier_boundaries_are_inclusive() -> None:
    assert confidence_tier(0.75) == ConfidenceTier.ROUTE
    assert confidence_tier(0.7499) == ConfidenceTier.CONFIRM
    assert confidence_tier(0.50) == ConfidenceTier.CONFIRM
    assert confidence_tier(0.4999) == ConfidenceTier.CLARIFY


def test_empty_input_fails_without_calling_client() -> None:
    client = _StubClient(_response(IntentType.HELP_REQUEST, 0.9))
    classifier = ConfidenceClassifier(client)

    result = classifier.classify("   ")

    assert isinstance(result, Failed)
    assert result.cause.kind == ClassificationErrorKind.EMPTY_INPUT
    assert client.calls == []


def test_high_confidence_routes_to_schema_target() -> None:
    target = RoutingTarget(Module.CADDY, "weather")
    classifier = ConfidenceClassifier(
        _StubClient(_response(IntentType.WEATHER_CHECK, 0.80, routing_target=target))
    )

    result = classifier.classify("how windy is it")

    assert isinstance(result, Route)
    assert result.intent.intent == IntentType.WEATHER_CHECK
    assert result.target == target


def test_route_tier_without_target_asks_for_acknowledgement() -> None:
    classifier = ConfidenceClassifier(_StubClient(_response(IntentType.HELP_REQUEST, 0.95)))

    result = classifier.classify("what can you do")

    assert isinstance(result, Confirm)
    assert result.message == "I'll help you with that."


def test_mid_confidence_confirms_with_entity_summary() -> None:
    entities = ExtractedEntities(club="7-iron", yardage=150, lie=Lie.ROUGH)
    classifier = ConfidenceClassifier(
        _StubClient(_response(IntentType.SHOT_RECOMMENDATION, 0.6, entities=entities))
    )

    result = classifier.classify("7-iron 150 from the rough")

    assert isinstance(result, Confirm)
    assert "shot recommendation" in result.message
    assert "with 7-iron" in result.message
    assert "at 150 yards" in result.message
    assert "from the rough" in result.message


def test_missing_required_entity_clarifies_despite_high_confidence() -> None:
    classifier = ConfidenceClassifier(_StubClient(_response(IntentType.CLUB_ADJUSTMENT, 0.95)))

    result = classifier.classify("my club is flying long")

    assert isinstance(result, Clarify)
    assert result.suggestions == (IntentType.CLUB_ADJUSTMENT,)
    assert EntityType.CLUB.value in result.message


def test_low_confidence_clarifies_with_bounded_unique_suggestions() -> None:
    classifier = ConfidenceClassifier(_StubClient(_response(IntentType.DRILL_REQUEST, 0.35)))

    result = classifier.classify("something feels off with my swing today")

    assert isinstance(result, Clarify)
    assert 1 <= len(result.suggestions) <= 3
    assert len(set(result.suggestions)) == len(result.suggestions)
    assert result.suggestions[0] == IntentType.DRILL_REQUEST


def test_transport_error_returns_safe_failure() -> None:
    error = ClassificationError(ClassificationErrorKind.TIMEOUT, "read timed out after 30s")
    classifier = ConfidenceClassifier(_StubClient(error=error))

    result = classifier.classify("what club")

    assert isinstance(result, Failed)
    assert result.cause.kind == ClassificationErrorKind.TIMEOUT
    assert "timed out" not in result.message


def test_unexpected_client_error_is_reported_as_parse_error() -> None:
    classifier = ConfidenceClassifier(_StubClient(error=RuntimeError("boom")))

    result = classifier.classify("what club")

    assert isinstance(result, Failed)
    assert result.cause.kind == ClassificationErrorKind.PARSE_ERROR
    assert "boom" not in result.message


class _BlockingClient:
    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.first = True

    def classify(self, normalized_input, context):
        if self.first:
            self.first = False
            self.entered.set()
            self.release.wait(timeout=5)
        return ClassifyResponse(intent=IntentType.WEATHER_CHECK, confidence=0.9)


def test_newer_utterance_supersedes_in_flight_classification() -> None:
    client = _BlockingClient()
    classifier = ConfidenceClassifier(client)
    results: list[object] = []

    worker = threading.Thread(target=lambda: results.append(classifier.classify("first", session_id="s1")))
    worker.start()
    assert client.entered.wait(timeout=5)

    second = classifier.classify("second", session_id="s1")
    client.release.set()
    worker.join(timeout=5)

    assert isinstance(second, Route)
    assert results == [None]


def test_sessions_do_not_supersede_each_other() -> None:
    classifier = ConfidenceClassifier(_StubClient(_response(IntentType.WEATHER_CHECK, 0.9)))

    classifier.cancel("other")

    assert isinstance(classifier.classify("weather", session_id="mine"), Route)
