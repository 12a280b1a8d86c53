from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from navcaddy.cognition.classification import (
    Clarify,
    ClassificationResult,
    Confirm,
    Failed,
    Route,
)
from navcaddy.cognition.entities import IntentType, ParsedIntent, RoutingTarget
from navcaddy.cognition.errors import NavCaddyError
from navcaddy.cognition.intent_registry import IntentRegistry, get_registry
from navcaddy.cognition.memory.miss_patterns import MissRecord, patterns_for, summarize_patterns
from navcaddy.cognition.safe_fallbacks import has_safe_fallback, render_safe_message
from navcaddy.navigation.destinations import enrich_with_entities
from navcaddy.navigation.prerequisites import (
    Prerequisite,
    PrerequisiteChecker,
    StaticPrerequisiteChecker,
    check_all,
    prerequisite_message,
)


@dataclass(frozen=True)
class Navigate:
    target: RoutingTarget
    intent: ParsedIntent


@dataclass(frozen=True)
class NoNavigation:
    response: str
    suggestions: tuple[IntentType, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PrerequisiteMissing:
    missing: tuple[Prerequisite, ...]
    message: str
    intent: ParsedIntent


@dataclass(frozen=True)
class ConfirmationRequired:
    message: str
    intent: ParsedIntent


RoutingResult = Navigate | NoNavigation | PrerequisiteMissing | ConfirmationRequired

logger = logging.getLogger(__name__)


class NavigationRouter:
    def __init__(
        self,
        checker: PrerequisiteChecker | None = None,
        registry: IntentRegistry | None = None,
        *,
        misses: Callable[[], Iterable[MissRecord]] | None = None,
    ) -> None:
        self._checker = checker or StaticPrerequisiteChecker()
        self._registry = registry or get_registry()
        self._misses = misses

    def route(self, result: ClassificationResult) -> RoutingResult:
        if isinstance(result, Route):
            return self._navigate(result.intent, result.target)
        if isinstance(result, Confirm):
            return ConfirmationRequired(message=result.message, intent=result.intent)
        if isinstance(result, Clarify):
            return NoNavigation(response=result.message, suggestions=result.suggestions)
        if isinstance(result, Failed):
            return NoNavigation(response=result.message, suggestions=result.suggestions)
        raise TypeError(f"Unhandled classification result: {type(result).__name__}")

    def route_confirmed(self, parsed: ParsedIntent) -> RoutingResult:
        """Route an intent the user explicitly accepted."""
        schema = self._registry.get_schema(parsed.intent)
        target = parsed.routing_target or schema.routing_target
        if not schema.requires_navigation or target is None:
            return NoNavigation(response=self._answer(parsed))
        return self._navigate(parsed, target)

    def _navigate(self, parsed: ParsedIntent, target: RoutingTarget) -> RoutingResult:
        missing = check_all(self._checker, parsed.intent)
        if missing:
            return PrerequisiteMissing(
                missing=missing,
                message=prerequisite_message(missing),
                intent=parsed,
            )
        return Navigate(target=enrich_with_entities(target, parsed.entities), intent=parsed)

    def _answer(self, parsed: ParsedIntent) -> str:
        if parsed.intent is IntentType.PATTERN_QUERY and self._misses is not None:
            club = parsed.entities.club
            try:
                records = list(self._misses())
            except NavCaddyError as exc:
                logger.warning("miss log unavailable for pattern answer: %s", exc)
                return answer_for(parsed.intent)
            return summarize_patterns(patterns_for(records, club=club), club=club)
        return answer_for(parsed.intent)


def answer_for(intent: IntentType) -> str:
    key = f"answer.{intent.value}"
    if has_safe_fallback(key):
        return render_safe_message(key)
    return render_safe_message("answer.default")
