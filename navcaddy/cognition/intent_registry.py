from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable

from navcaddy.cognition.entities import (
    EntityType,
    ExtractedEntities,
    IntentType,
    Module,
    RoutingTarget,
)
from navcaddy.cognition.errors import UnknownIntentError


@dataclass(frozen=True)
class IntentSchema:
    intent: IntentType
    display_name: str
    description: str
    required_entities: frozenset[EntityType] = field(default_factory=frozenset)
    optional_entities: frozenset[EntityType] = field(default_factory=frozenset)
    routing_target: RoutingTarget | None = None
    requires_navigation: bool = False
    example_phrases: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.requires_navigation != (self.routing_target is not None):
            raise ValueError(
                f"{self.intent.value}: requires_navigation must match routing_target presence"
            )
        if len(self.example_phrases) < 3:
            raise ValueError(f"{self.intent.value}: at least 3 example phrases are required")
        if self.required_entities & self.optional_entities:
            raise ValueError(f"{self.intent.value}: entity listed as both required and optional")


@dataclass(frozen=True)
class Valid:
    pass


@dataclass(frozen=True)
class MissingEntities:
    missing: tuple[EntityType, ...]


ValidationResult = Valid | MissingEntities


class IntentRegistry:
    def __init__(self, schemas: Iterable[IntentSchema]) -> None:
        table: dict[IntentType, IntentSchema] = {}
        for schema in schemas:
            if schema.intent in table:
                raise ValueError(f"Duplicate intent schema: {schema.intent.value}")
            table[schema.intent] = schema
        self._schemas = MappingProxyType(table)

    def get_schema(self, intent: IntentType | str) -> IntentSchema:
        key = intent if isinstance(intent, IntentType) else _coerce_intent(intent)
        schema = self._schemas.get(key) if key is not None else None
        if schema is None:
            raise UnknownIntentError(intent)
        return schema

    def get_all_schemas(self) -> list[IntentSchema]:
        return list(self._schemas.values())

    def get_intents_for_module(self, module: Module) -> list[IntentType]:
        return [
            schema.intent
            for schema in self._schemas.values()
            if schema.routing_target is not None and schema.routing_target.module == module
        ]

    def get_no_navigation_intents(self) -> list[IntentType]:
        return [schema.intent for schema in self._schemas.values() if not schema.requires_navigation]

    def validate_entities(
        self,
        intent: IntentType | str,
        entities: ExtractedEntities,
    ) -> ValidationResult:
        schema = self.get_schema(intent)
        missing = tuple(
            entity_type
            for entity_type in EntityType
            if entity_type in schema.required_entities and not entities.has(entity_type)
        )
        if missing:
            return MissingEntities(missing=missing)
        return Valid()


def _coerce_intent(raw: str) -> IntentType | None:
    try:
        return IntentType(str(raw or "").strip().lower())
    except ValueError:
        return None


def _target(module: Module, screen: str, **parameters: object) -> RoutingTarget:
    return RoutingTarget(module=module, screen=screen, parameters=dict(parameters))


def builtin_schemas() -> list[IntentSchema]:
    return [
        IntentSchema(
            intent=IntentType.CLUB_ADJUSTMENT,
            display_name="Club Adjustment",
            description="Adjust club distances or yardage expectations",
            required_entities=frozenset({EntityType.CLUB}),
            optional_entities=frozenset({EntityType.YARDAGE}),
            routing_target=_target(Module.CADDY, "club_adjustment"),
            requires_navigation=True,
            example_phrases=(
                "My 7-iron is flying long today",
                "I need to adjust my driver distance",
                "Set my pitching wedge to 120 yards",
                "Change the yardage on my 5-iron",
                "Recalibrate my 3-wood",
            ),
        ),
        IntentSchema(
            intent=IntentType.RECOVERY_CHECK,
            display_name="Recovery Check",
            description="Check recovery status and readiness",
            optional_entities=frozenset({EntityType.FATIGUE, EntityType.PAIN}),
            routing_target=_target(Module.RECOVERY, "overview"),
            requires_navigation=True,
            example_phrases=(
                "How is my recovery looking?",
                "Am I recovered enough to play today?",
                "Check my recovery status",
                "My back is sore after yesterday",
                "How tired am I today?",
            ),
        ),
        IntentSchema(
            intent=IntentType.SHOT_RECOMMENDATION,
            display_name="Shot Recommendation",
            description="Get shot advice based on the current situation",
            optional_entities=frozenset(
                {EntityType.CLUB, EntityType.YARDAGE, EntityType.LIE, EntityType.WIND}
            ),
            routing_target=_target(Module.CADDY, "live_caddy", expand_strategy=True),
            requires_navigation=True,
            example_phrases=(
                "What club should I hit?",
                "150 into the wind, what's the play?",
                "Big tee shot here, what should I do?",
                "Recommend a shot from the rough",
                "Help me with this approach shot",
            ),
        ),
        IntentSchema(
            intent=IntentType.SCORE_ENTRY,
            display_name="Score Entry",
            description="Enter or update the score for a hole",
            optional_entities=frozenset({EntityType.HOLE_NUMBER, EntityType.SCORE_CONTEXT}),
            routing_target=_target(Module.CADDY, "score_entry"),
            requires_navigation=True,
            example_phrases=(
                "I made birdie on this hole",
                "Mark down a par",
                "Enter my score for hole 7",
                "I made a 5 on the last hole",
                "Update my score",
            ),
        ),
        IntentSchema(
            intent=IntentType.PATTERN_QUERY,
            display_name="Pattern Query",
            description="Ask about historical miss patterns or tendencies",
            optional_entities=frozenset({EntityType.CLUB, EntityType.LIE}),
            example_phrases=(
                "What are my miss patterns with the 7-iron?",
                "Do I slice when I'm under pressure?",
                "Show my tendencies off the tee",
                "What's my usual miss with wedges?",
                "Have I been pushing my irons lately?",
            ),
        ),
        IntentSchema(
            intent=IntentType.DRILL_REQUEST,
            display_name="Drill Request",
            description="Request a practice drill or training exercise",
            optional_entities=frozenset({EntityType.CLUB, EntityType.DRILL_TYPE}),
            routing_target=_target(Module.COACH, "drill"),
            requires_navigation=True,
            example_phrases=(
                "Give me a drill for my slice",
                "I need some putting practice",
                "Which drill fixes a push?",
                "Recommend a chipping drill",
                "Show me some driver drills",
            ),
        ),
        IntentSchema(
            intent=IntentType.WEATHER_CHECK,
            display_name="Weather Check",
            description="Check current or forecast weather conditions",
            routing_target=_target(Module.CADDY, "weather"),
            requires_navigation=True,
            example_phrases=(
                "What's the weather looking like?",
                "How strong is the wind today?",
                "Check the forecast",
                "Is it going to rain?",
                "Show me the weather",
            ),
        ),
        IntentSchema(
            intent=IntentType.STATS_LOOKUP,
            display_name="Stats Lookup",
            description="Look up statistics and performance data",
            optional_entities=frozenset({EntityType.STAT_TYPE, EntityType.CLUB}),
            routing_target=_target(Module.CADDY, "stats"),
            requires_navigation=True,
            example_phrases=(
                "Show my stats",
                "What's my average score?",
                "How am I doing with my driver?",
                "Show my fairways hit percentage",
                "What are my putting stats?",
            ),
        ),
        IntentSchema(
            intent=IntentType.ROUND_START,
            display_name="Round Start",
            description="Start a new round of golf",
            optional_entities=frozenset({EntityType.COURSE_NAME}),
            routing_target=_target(Module.CADDY, "round_start"),
            requires_navigation=True,
            example_phrases=(
                "Start a new round",
                "I'm playing Pebble Beach today",
                "Begin my round",
                "Let's tee off",
                "Starting a round at my home course",
            ),
        ),
        IntentSchema(
            intent=IntentType.ROUND_END,
            display_name="Round End",
            description="End the current round and view the summary",
            routing_target=_target(Module.CADDY, "round_end"),
            requires_navigation=True,
            example_phrases=(
                "Finish this round",
                "End my round",
                "I'm done playing",
                "Show me the round summary",
                "Wrap up this round",
            ),
        ),
        IntentSchema(
            intent=IntentType.EQUIPMENT_INFO,
            display_name="Equipment Info",
            description="Get information about equipment and bag contents",
            optional_entities=frozenset({EntityType.EQUIPMENT_TYPE, EntityType.CLUB}),
            routing_target=_target(Module.SETTINGS, "equipment"),
            requires_navigation=True,
            example_phrases=(
                "What's in my bag?",
                "Show my club specs",
                "Tell me about my driver",
                "What equipment am I using?",
                "Show my club distances",
            ),
        ),
        IntentSchema(
            intent=IntentType.COURSE_INFO,
            display_name="Course Info",
            description="Get course information and hole details",
            optional_entities=frozenset({EntityType.COURSE_NAME, EntityType.HOLE_NUMBER}),
            routing_target=_target(Module.CADDY, "course_info"),
            requires_navigation=True,
            example_phrases=(
                "Tell me about this hole",
                "How long is hole 7?",
                "Show the course layout",
                "Course information please",
                "What does this hole look like?",
            ),
        ),
        IntentSchema(
            intent=IntentType.SETTINGS_CHANGE,
            display_name="Settings Change",
            description="Change app settings or preferences",
            optional_entities=frozenset({EntityType.SETTING_KEY}),
            routing_target=_target(Module.SETTINGS, "settings"),
            requires_navigation=True,
            example_phrases=(
                "Change my settings",
                "Update my preferences",
                "Turn on notifications",
                "Switch units to metric",
                "Open settings",
            ),
        ),
        IntentSchema(
            intent=IntentType.HELP_REQUEST,
            display_name="Help Request",
            description="Get help or instructions about the app",
            example_phrases=(
                "Help me",
                "How do I use this?",
                "What can you do?",
                "I need help",
                "Show me what you can do",
            ),
        ),
        IntentSchema(
            intent=IntentType.FEEDBACK,
            display_name="Feedback",
            description="Provide feedback about the app",
            optional_entities=frozenset({EntityType.FEEDBACK_TEXT}),
            routing_target=_target(Module.SETTINGS, "feedback"),
            requires_navigation=True,
            example_phrases=(
                "I have some feedback",
                "Report a problem",
                "Send feedback",
                "I found a bug",
                "Suggestion for improvement",
            ),
        ),
        IntentSchema(
            intent=IntentType.BAILOUT_QUERY,
            display_name="Bailout Query",
            description="Ask where the safe miss or bailout area is",
            routing_target=_target(Module.CADDY, "live_caddy", expand_strategy=True, highlight_bailout=True),
            requires_navigation=True,
            example_phrases=(
                "Where's the bailout?",
                "Where should I miss this one?",
                "What's the safe play here?",
                "Where can I bail out?",
                "Which side is the safest miss?",
            ),
        ),
        IntentSchema(
            intent=IntentType.READINESS_CHECK,
            display_name="Readiness Check",
            description="Check the readiness score and how it affects strategy",
            routing_target=_target(Module.CADDY, "live_caddy", expand_readiness=True),
            requires_navigation=True,
            example_phrases=(
                "How am I feeling out here?",
                "What's my readiness?",
                "Am I ready for this shot?",
                "How's my body holding up?",
                "Should I play conservative today?",
            ),
        ),
    ]


_GLOBAL_REGISTRY = IntentRegistry(builtin_schemas())


def get_registry() -> IntentRegistry:
    return _GLOBAL_REGISTRY
