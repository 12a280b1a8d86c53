from __future__ import annotations

from navcaddy.cognition.entities import (
    EntityType,
    ExtractedEntities,
    IntentType,
    Lie,
    Module,
    ParsedIntent,
    RoutingTarget,
    parse_intent_type,
)


def test_out_of_range_values_are_dropped_or_clamped() -> None:
    entities = ExtractedEntities(yardage=-10, hole_number=19, fatigue=14, lie="sand trap")

    assert entities.yardage is None
    assert entities.hole_number is None
    assert entities.fatigue == 10
    assert entities.lie is None


def test_wrong_types_never_raise() -> None:
    entities = ExtractedEntities(yardage="far", club=["7-iron"], fatigue=True)

    assert entities.yardage is None
    assert entities.club is None
    assert entities.fatigue is None


def test_from_mapping_accepts_camel_case_and_units() -> None:
    entities = ExtractedEntities.from_mapping(
        {"club": " 7-iron ", "yardage": "150 yards", "lie": "Rough", "holeNumber": 7}
    )

    assert entities.club == "7-iron"
    assert entities.yardage == 150
    assert entities.lie == Lie.ROUGH
    assert entities.hole_number == 7
    assert entities.present() == [EntityType.CLUB, EntityType.YARDAGE, EntityType.LIE, EntityType.HOLE_NUMBER]
    assert entities.to_dict() == {"club": "7-iron", "yardage": 150, "lie": "rough", "hole_number": 7}


def test_from_mapping_ignores_non_mapping() -> None:
    assert ExtractedEntities.from_mapping("club=7-iron") == ExtractedEntities()


def test_parsed_intent_clamps_confidence() -> None:
    assert ParsedIntent(IntentType.HELP_REQUEST, 1.7).confidence == 1.0
    assert ParsedIntent(IntentType.HELP_REQUEST, -0.2).confidence == 0.0
    assert ParsedIntent(IntentType.HELP_REQUEST, float("nan")).confidence == 0.0


def test_parse_intent_type_variants() -> None:
    assert parse_intent_type("WEATHER_CHECK") == IntentType.WEATHER_CHECK
    assert parse_intent_type("weather check") == IntentType.WEATHER_CHECK
    assert parse_intent_type("tee_times") is None


def test_routing_target_existing_parameters_win() -> None:
    target = RoutingTarget(Module.CADDY, "score_entry", {"hole": 3})

    merged = target.with_parameters({"hole": 7, "extra": True})

    assert merged.parameters == {"hole": 3, "extra": True}
    assert merged.describe() == "caddy/score_entry"
