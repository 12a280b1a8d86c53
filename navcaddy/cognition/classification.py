from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from navcaddy.cognition.entities import (
    ExtractedEntities,
    IntentType,
    ParsedIntent,
    RoutingTarget,
)
from navcaddy.cognition.errors import ClassificationError

if TYPE_CHECKING:
    from navcaddy.session.context import SessionContext

ROUTE_THRESHOLD = 0.75
CONFIRM_THRESHOLD = 0.50
MAX_SUGGESTIONS = 3


class ConfidenceTier(str, Enum):
    ROUTE = "route"
    CONFIRM = "confirm"
    CLARIFY = "clarify"


def confidence_tier(confidence: float) -> ConfidenceTier:
    if confidence >= ROUTE_THRESHOLD:
        return ConfidenceTier.ROUTE
    if confidence >= CONFIRM_THRESHOLD:
        return ConfidenceTier.CONFIRM
    return ConfidenceTier.CLARIFY


@dataclass(frozen=True)
class Route:
    intent: ParsedIntent
    target: RoutingTarget


@dataclass(frozen=True)
class Confirm:
    intent: ParsedIntent
    message: str


@dataclass(frozen=True)
class Clarify:
    suggestions: tuple[IntentType, ...]
    message: str
    original_input: str

    def __post_init__(self) -> None:
        if not 1 <= len(self.suggestions) <= MAX_SUGGESTIONS:
            raise ValueError("Clarify needs between 1 and 3 suggestions")
        if len(set(self.suggestions)) != len(self.suggestions):
            raise ValueError("Clarify suggestions must be unique")


@dataclass(frozen=True)
class Failed:
    cause: ClassificationError
    message: str
    suggestions: tuple[IntentType, ...] = field(default_factory=tuple)


ClassificationResult = Route | Confirm | Clarify | Failed


@dataclass(frozen=True)
class ClassifyResponse:
    """What the external classify capability hands back."""

    intent: IntentType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    routing_target: RoutingTarget | None = None
    user_goal: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)

    def to_parsed_intent(self) -> ParsedIntent:
        return ParsedIntent(
            intent=self.intent,
            confidence=self.confidence,
            entities=self.entities,
            routing_target=self.routing_target,
            user_goal=self.user_goal,
        )


class ClassifyClient(Protocol):
    def classify(
        self,
        normalized_input: str,
        context: SessionContext | None,
    ) -> ClassifyResponse:
        """Raise ClassificationError on transport or parse failure."""
        ...
