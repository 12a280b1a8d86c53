from __future__ import annotations

import re
from dataclasses import dataclass

from navcaddy.cognition.classification import MAX_SUGGESTIONS, Clarify
from navcaddy.cognition.entities import IntentType, ParsedIntent
from navcaddy.cognition.intent_registry import (
    IntentRegistry,
    IntentSchema,
    MissingEntities,
    get_registry,
)
from navcaddy.cognition.safe_fallbacks import render_safe_message

SALVAGE_THRESHOLD = 0.30
_MIN_SHARED_WORD_LENGTH = 4
_VAGUE_WORD_COUNT = 3
_WORD = re.compile(r"[a-z0-9']+")


@dataclass(frozen=True)
class KeywordFamily:
    name: str
    keywords: frozenset[str]
    intents: tuple[IntentType, ...]
    message_key: str


# Checked in order; the first family with a keyword in the input wins.
KEYWORD_FAMILIES: tuple[KeywordFamily, ...] = (
    KeywordFamily(
        name="physical",
        keywords=frozenset({"feel", "feeling", "pain", "sore", "tired", "ready", "hurt", "body"}),
        intents=(IntentType.RECOVERY_CHECK, IntentType.PATTERN_QUERY, IntentType.STATS_LOOKUP),
        message_key="clarify.physical",
    ),
    KeywordFamily(
        name="problem",
        keywords=frozenset({"off", "wrong", "bad", "problem", "issue", "fix", "broken"}),
        intents=(IntentType.CLUB_ADJUSTMENT, IntentType.PATTERN_QUERY, IntentType.DRILL_REQUEST),
        message_key="clarify.problem",
    ),
    KeywordFamily(
        name="advice",
        keywords=frozenset({"what", "should", "help", "advice", "recommend", "how"}),
        intents=(IntentType.SHOT_RECOMMENDATION, IntentType.HELP_REQUEST, IntentType.DRILL_REQUEST),
        message_key="clarify.advice",
    ),
    KeywordFamily(
        name="equipment",
        keywords=frozenset({"club", "clubs", "bag", "equipment", "distance", "yardage"}),
        intents=(IntentType.CLUB_ADJUSTMENT, IntentType.EQUIPMENT_INFO, IntentType.STATS_LOOKUP),
        message_key="clarify.equipment",
    ),
    KeywordFamily(
        name="round",
        keywords=frozenset({"score", "round", "play", "game", "hole"}),
        intents=(IntentType.SCORE_ENTRY, IntentType.ROUND_START, IntentType.STATS_LOOKUP),
        message_key="clarify.round",
    ),
)

DEFAULT_SUGGESTIONS: tuple[IntentType, ...] = (
    IntentType.SHOT_RECOMMENDATION,
    IntentType.HELP_REQUEST,
    IntentType.STATS_LOOKUP,
)

SUGGESTION_LABELS: dict[IntentType, str] = {
    IntentType.CLUB_ADJUSTMENT: "Adjust Club",
    IntentType.RECOVERY_CHECK: "Check Recovery",
    IntentType.SHOT_RECOMMENDATION: "Get Shot Advice",
    IntentType.SCORE_ENTRY: "Enter Score",
    IntentType.PATTERN_QUERY: "View Miss Patterns",
    IntentType.DRILL_REQUEST: "Find a Drill",
    IntentType.WEATHER_CHECK: "Check Weather",
    IntentType.STATS_LOOKUP: "View Stats",
    IntentType.ROUND_START: "Start Round",
    IntentType.ROUND_END: "End Round",
    IntentType.EQUIPMENT_INFO: "View Equipment",
    IntentType.COURSE_INFO: "Course Info",
    IntentType.SETTINGS_CHANGE: "Open Settings",
    IntentType.HELP_REQUEST: "Get Help",
    IntentType.FEEDBACK: "Send Feedback",
    IntentType.BAILOUT_QUERY: "Find Bailout",
    IntentType.READINESS_CHECK: "Check Readiness",
}


def suggestion_label(intent: IntentType) -> str:
    return SUGGESTION_LABELS.get(intent) or intent.value.replace("_", " ").title()


class ClarificationGenerator:
    """Builds the 1-3 alternatives offered when the classifier is unsure."""

    def __init__(self, registry: IntentRegistry | None = None) -> None:
        self._registry = registry or get_registry()
        self._phrase_words = {
            schema.intent: _significant_words(" ".join(schema.example_phrases))
            for schema in self._registry.get_all_schemas()
        }

    def generate(self, original_input: str, parsed: ParsedIntent | None = None) -> Clarify:
        words = _words(original_input)
        suggestions: list[IntentType] = []
        if parsed is not None and parsed.confidence >= SALVAGE_THRESHOLD:
            suggestions.append(parsed.intent)

        for intent in self._ranked_by_shared_words(words):
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
            if intent not in suggestions:
                suggestions.append(intent)

        family = _match_family(words)
        if len(suggestions) < MAX_SUGGESTIONS:
            fallback = family.intents if family is not None else DEFAULT_SUGGESTIONS
            for intent in fallback:
                if len(suggestions) >= MAX_SUGGESTIONS:
                    break
                if intent not in suggestions:
                    suggestions.append(intent)

        return Clarify(
            suggestions=tuple(suggestions),
            message=_clarification_message(words, family),
            original_input=original_input,
        )

    def for_missing_entities(
        self,
        schema: IntentSchema,
        validation: MissingEntities,
        original_input: str,
    ) -> Clarify:
        entities = ", ".join(item.value.replace("_", " ") for item in validation.missing)
        message = render_safe_message(
            "clarify.missing_entities",
            variables={"description": _lower_first(schema.description), "entities": entities},
        )
        return Clarify(suggestions=(schema.intent,), message=message, original_input=original_input)

    def _ranked_by_shared_words(self, words: list[str]) -> list[IntentType]:
        significant = {word for word in words if len(word) >= _MIN_SHARED_WORD_LENGTH}
        if not significant:
            return []
        scored: list[tuple[int, int, IntentType]] = []
        for position, (intent, phrase_words) in enumerate(self._phrase_words.items()):
            score = len(significant & phrase_words)
            if score > 0:
                scored.append((-score, position, intent))
        scored.sort()
        return [intent for _, _, intent in scored]


def _clarification_message(words: list[str], family: KeywordFamily | None) -> str:
    if len(words) <= _VAGUE_WORD_COUNT:
        return render_safe_message("clarify.vague")
    if family is not None:
        return render_safe_message(family.message_key)
    return render_safe_message("clarify.default")


def _match_family(words: list[str]) -> KeywordFamily | None:
    present = set(words)
    for family in KEYWORD_FAMILIES:
        if family.keywords & present:
            return family
    return None


def _words(text: str) -> list[str]:
    return _WORD.findall(str(text or "").lower())


def _significant_words(text: str) -> set[str]:
    return {word for word in _words(text) if len(word) >= _MIN_SHARED_WORD_LENGTH}


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:] if text else text
