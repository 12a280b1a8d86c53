from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from navcaddy.cognition.classification import MAX_SUGGESTIONS
from navcaddy.cognition.entities import ExtractedEntities, IntentType, ParsedIntent
from navcaddy.cognition.safe_fallbacks import has_safe_fallback, render_safe_message

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.6

OFFLINE_CAPABLE_INTENTS: frozenset[IntentType] = frozenset(
    {
        IntentType.SCORE_ENTRY,
        IntentType.STATS_LOOKUP,
        IntentType.EQUIPMENT_INFO,
        IntentType.ROUND_START,
        IntentType.ROUND_END,
        IntentType.SETTINGS_CHANGE,
        IntentType.HELP_REQUEST,
        IntentType.CLUB_ADJUSTMENT,
        IntentType.PATTERN_QUERY,
    }
)

# Tie-break order when two intents score the same.
OFFLINE_PRIORITY: tuple[IntentType, ...] = (
    IntentType.SCORE_ENTRY,
    IntentType.STATS_LOOKUP,
    IntentType.EQUIPMENT_INFO,
    IntentType.PATTERN_QUERY,
    IntentType.CLUB_ADJUSTMENT,
    IntentType.ROUND_START,
    IntentType.ROUND_END,
    IntentType.SETTINGS_CHANGE,
    IntentType.HELP_REQUEST,
)

_KEYWORDS: dict[IntentType, tuple[tuple[str, float], ...]] = {
    IntentType.SCORE_ENTRY: (
        ("score", 1.0),
        ("enter", 0.6),
        ("record", 0.6),
        ("par", 0.6),
        ("birdie", 0.7),
        ("bogey", 0.7),
        ("eagle", 0.7),
        ("hole", 0.3),
    ),
    IntentType.STATS_LOOKUP: (
        ("stats", 1.0),
        ("statistics", 1.0),
        ("performance", 0.8),
        ("average", 0.7),
        ("handicap", 0.7),
    ),
    IntentType.EQUIPMENT_INFO: (
        ("equipment", 1.0),
        ("bag", 0.8),
        ("clubs", 0.6),
        ("specs", 0.7),
    ),
    IntentType.ROUND_START: (
        ("new round", 1.0),
        ("start", 0.7),
        ("begin", 0.7),
        ("tee off", 0.9),
    ),
    IntentType.ROUND_END: (
        ("end round", 1.0),
        ("finish", 0.8),
        ("done playing", 0.9),
        ("round summary", 0.9),
        ("end", 0.6),
    ),
    IntentType.SETTINGS_CHANGE: (
        ("settings", 1.0),
        ("preferences", 0.9),
        ("options", 0.7),
        ("configure", 0.8),
    ),
    IntentType.HELP_REQUEST: (
        ("help", 1.0),
        ("how do i", 0.8),
        ("instructions", 0.8),
        ("tutorial", 0.7),
    ),
    IntentType.CLUB_ADJUSTMENT: (
        ("adjust", 0.8),
        ("distance", 0.6),
        ("yardage", 0.6),
        ("recalibrate", 1.0),
        ("flying long", 0.7),
        ("flying short", 0.7),
    ),
    IntentType.PATTERN_QUERY: (
        ("pattern", 1.0),
        ("patterns", 1.0),
        ("miss", 0.7),
        ("tendency", 0.9),
        ("tendencies", 0.9),
        ("slice", 0.5),
        ("hook", 0.5),
    ),
    IntentType.SHOT_RECOMMENDATION: (
        ("what club", 1.0),
        ("which club", 1.0),
        ("recommend", 0.8),
        ("advice", 0.7),
        ("shot", 0.5),
        ("play", 0.3),
    ),
    IntentType.RECOVERY_CHECK: (
        ("recovery", 1.0),
        ("sore", 0.7),
        ("tired", 0.6),
        ("sleep", 0.6),
    ),
    IntentType.READINESS_CHECK: (
        ("readiness", 1.0),
        ("ready", 0.5),
        ("conservative", 0.6),
    ),
    IntentType.DRILL_REQUEST: (
        ("drill", 1.0),
        ("drills", 1.0),
        ("practice", 0.8),
        ("exercise", 0.7),
    ),
    IntentType.WEATHER_CHECK: (
        ("weather", 1.0),
        ("forecast", 1.0),
        ("wind", 0.7),
        ("rain", 0.7),
    ),
    IntentType.COURSE_INFO: (
        ("course", 0.7),
        ("layout", 0.9),
        ("map", 0.7),
    ),
    IntentType.FEEDBACK: (
        ("feedback", 1.0),
        ("bug", 0.8),
        ("suggestion", 0.8),
    ),
    IntentType.BAILOUT_QUERY: (
        ("bailout", 1.0),
        ("bail out", 1.0),
        ("safe play", 0.8),
        ("safest", 0.7),
    ),
}

_ROUND_ACTIVE_SUGGESTIONS = (IntentType.SCORE_ENTRY, IntentType.STATS_LOOKUP, IntentType.CLUB_ADJUSTMENT)
_NO_ROUND_SUGGESTIONS = (IntentType.ROUND_START, IntentType.STATS_LOOKUP, IntentType.EQUIPMENT_INFO)

_CLUB_PATTERN = re.compile(
    r"\b(driver|putter|[2-9]-iron|[3-7]-wood|[2-5]-hybrid|(?:pitching|gap|approach|sand|lob) wedge)\b"
)
_HOLE_PATTERN = re.compile(r"\bhole\s+(\d{1,2})\b")
_YARDAGE_PATTERN = re.compile(r"\b(\d{2,3})\s*(?:yards?|yds?)?\b")
_SCORE_WORDS = ("albatross", "eagle", "birdie", "par", "double bogey", "bogey")


def is_offline_capable(intent: IntentType) -> bool:
    return intent in OFFLINE_CAPABLE_INTENTS


def offline_limitation_message(intent: IntentType | None) -> str:
    if intent is not None and has_safe_fallback(f"offline.unavailable.{intent.value}"):
        return render_safe_message(f"offline.unavailable.{intent.value}")
    return render_safe_message("offline.unavailable.default")


def offline_suggestions(
    *,
    round_active: bool,
    exclude: IntentType | None = None,
) -> tuple[IntentType, ...]:
    preferred = _ROUND_ACTIVE_SUGGESTIONS if round_active else _NO_ROUND_SUGGESTIONS
    suggestions: list[IntentType] = []
    for intent in (*preferred, *OFFLINE_PRIORITY):
        if len(suggestions) >= MAX_SUGGESTIONS:
            break
        if intent == exclude or intent in suggestions:
            continue
        if not round_active and intent in {IntentType.SCORE_ENTRY, IntentType.ROUND_END}:
            continue
        suggestions.append(intent)
    return tuple(suggestions)


@dataclass(frozen=True)
class OfflineMatch:
    intent: ParsedIntent
    score: float


@dataclass(frozen=True)
class OfflineUnavailable:
    candidate: IntentType | None
    message: str
    suggestions: tuple[IntentType, ...] = field(default_factory=tuple)


OfflineResult = OfflineMatch | OfflineUnavailable


class OfflineClassifier:
    """Keyword matching that works without the network.

    At most one candidate intent is picked. Only offline-capable candidates come
    back as a match; everything else gets the fixed "needs a connection" message
    and up to three offline-capable suggestions.
    """

    def __init__(self, threshold: float = MATCH_THRESHOLD) -> None:
        self._threshold = threshold
        self._patterns = {
            intent: tuple(
                (re.compile(rf"(?<![\w']){re.escape(keyword)}(?![\w'])"), weight)
                for keyword, weight in keywords
            )
            for intent, keywords in _KEYWORDS.items()
        }

    def classify(self, normalized_text: str, *, round_active: bool = False) -> OfflineResult:
        text = " ".join(str(normalized_text or "").lower().split())
        candidate, score = self.best_candidate(text)
        if candidate is not None and is_offline_capable(candidate):
            logger.info("offline match intent=%s score=%.2f", candidate.value, score)
            return OfflineMatch(
                intent=ParsedIntent(
                    intent=candidate,
                    confidence=1.0,
                    entities=extract_offline_entities(text, candidate),
                ),
                score=score,
            )
        if candidate is None:
            message = render_safe_message("offline.no_match")
        else:
            message = offline_limitation_message(candidate)
        logger.info(
            "offline unavailable candidate=%s",
            candidate.value if candidate is not None else None,
        )
        return OfflineUnavailable(
            candidate=candidate,
            message=message,
            suggestions=offline_suggestions(round_active=round_active, exclude=candidate),
        )

    def best_candidate(self, text: str) -> tuple[IntentType | None, float]:
        best: IntentType | None = None
        best_score = 0.0
        for intent in _ordered_intents():
            score = self._score(text, intent)
            if score > best_score:
                best, best_score = intent, score
        if best is None or best_score < self._threshold:
            return None, best_score
        return best, best_score

    def _score(self, text: str, intent: IntentType) -> float:
        total = sum(weight for pattern, weight in self._patterns.get(intent, ()) if pattern.search(text))
        return min(total, 1.0)


def extract_offline_entities(text: str, intent: IntentType) -> ExtractedEntities:
    club_match = _CLUB_PATTERN.search(text)
    club = club_match.group(1) if club_match else None
    if intent == IntentType.SCORE_ENTRY:
        hole_match = _HOLE_PATTERN.search(text)
        score_context = next((word for word in _SCORE_WORDS if re.search(rf"\b{word}\b", text)), None)
        return ExtractedEntities(
            hole_number=int(hole_match.group(1)) if hole_match else None,
            score_context=score_context,
        )
    if intent == IntentType.CLUB_ADJUSTMENT:
        yardage_match = _YARDAGE_PATTERN.search(text)
        return ExtractedEntities(
            club=club,
            yardage=int(yardage_match.group(1)) if yardage_match else None,
        )
    if intent in {IntentType.EQUIPMENT_INFO, IntentType.PATTERN_QUERY, IntentType.STATS_LOOKUP}:
        return ExtractedEntities(club=club)
    return ExtractedEntities()


def _ordered_intents() -> list[IntentType]:
    rest = [intent for intent in _KEYWORDS if intent not in OFFLINE_PRIORITY]
    return [*OFFLINE_PRIORITY, *rest]
