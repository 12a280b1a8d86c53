from __future__ import annotations

from navcaddy.cognition.entities import IntentType
from navcaddy.cognition.offline_classifier import (
    OfflineClassifier,
    OfflineMatch,
    OfflineUnavailable,
    is_offline_capable,
    offline_suggestions,
)


def test_score_entry_matches_with_hole_and_context() -> None:
    result = OfflineClassifier().classify("birdie on hole 3")

    assert isinstance(result, OfflineMatch)
    assert result.intent.intent == IntentType.SCORE_ENTRY
    assert result.intent.confidence == 1.0
    assert result.intent.entities.hole_number == 3
    assert result.intent.entities.score_context == "birdie"


def test_club_adjustment_extracts_club_and_yardage() -> None:
    result = OfflineClassifier().classify("adjust my 7-iron distance to 165 yards")

    assert isinstance(result, OfflineMatch)
    assert result.intent.intent == IntentType.CLUB_ADJUSTMENT
    assert result.intent.entities.club == "7-iron"
    assert result.intent.entities.yardage == 165


def test_online_only_intent_is_refused_with_suggestions() -> None:
    result = OfflineClassifier().classify("what club for 150")

    assert isinstance(result, OfflineUnavailable)
    assert result.candidate == IntentType.SHOT_RECOMMENDATION
    assert result.message.startswith("Shot recommendations need an internet connection.")
    assert result.suggestions == (
        IntentType.ROUND_START,
        IntentType.STATS_LOOKUP,
        IntentType.EQUIPMENT_INFO,
    )
    assert all(is_offline_capable(intent) for intent in result.suggestions)


def test_no_keyword_match() -> None:
    result = OfflineClassifier().classify("banana")

    assert isinstance(result, OfflineUnavailable)
    assert result.candidate is None
    assert result.message.startswith("I'm offline and didn't catch that.")


def test_weak_match_stays_below_threshold() -> None:
    candidate, score = OfflineClassifier().best_candidate("which hole is this")

    assert candidate is None
    assert score == 0.3


def test_ties_follow_priority_order() -> None:
    candidate, _ = OfflineClassifier().best_candidate("stats and score")

    assert candidate == IntentType.SCORE_ENTRY


def test_keywords_match_whole_words_only() -> None:
    candidate, _ = OfflineClassifier().best_candidate("my scorecard looks endless")

    assert candidate is None


def test_suggestions_depend_on_round_state() -> None:
    assert offline_suggestions(round_active=True, exclude=IntentType.SCORE_ENTRY) == (
        IntentType.STATS_LOOKUP,
        IntentType.CLUB_ADJUSTMENT,
        IntentType.EQUIPMENT_INFO,
    )
    without_round = offline_suggestions(round_active=False, exclude=IntentType.ROUND_START)
    assert IntentType.SCORE_ENTRY not in without_round
    assert IntentType.ROUND_END not in without_round
    assert len(without_round) == 3
