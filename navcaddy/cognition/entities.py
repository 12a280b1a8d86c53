from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class IntentType(str, Enum):
    CLUB_ADJUSTMENT = "club_adjustment"
    RECOVERY_CHECK = "recovery_check"
    SHOT_RECOMMENDATION = "shot_recommendation"
    SCORE_ENTRY = "score_entry"
    PATTERN_QUERY = "pattern_query"
    DRILL_REQUEST = "drill_request"
    WEATHER_CHECK = "weather_check"
    STATS_LOOKUP = "stats_lookup"
    ROUND_START = "round_start"
    ROUND_END = "round_end"
    EQUIPMENT_INFO = "equipment_info"
    COURSE_INFO = "course_info"
    SETTINGS_CHANGE = "settings_change"
    HELP_REQUEST = "help_request"
    FEEDBACK = "feedback"
    BAILOUT_QUERY = "bailout_query"
    READINESS_CHECK = "readiness_check"


class EntityType(str, Enum):
    CLUB = "club"
    YARDAGE = "yardage"
    LIE = "lie"
    WIND = "wind"
    FATIGUE = "fatigue"
    PAIN = "pain"
    SCORE_CONTEXT = "score_context"
    HOLE_NUMBER = "hole_number"
    DRILL_TYPE = "drill_type"
    STAT_TYPE = "stat_type"
    COURSE_NAME = "course_name"
    EQUIPMENT_TYPE = "equipment_type"
    SETTING_KEY = "setting_key"
    FEEDBACK_TEXT = "feedback_text"


class Module(str, Enum):
    CADDY = "caddy"
    COACH = "coach"
    RECOVERY = "recovery"
    SETTINGS = "settings"


class Lie(str, Enum):
    TEE = "tee"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    BUNKER = "bunker"
    GREEN = "green"
    FRINGE = "fringe"
    HAZARD = "hazard"


def parse_intent_type(raw: Any) -> IntentType | None:
    """Accept `weather_check`, `WEATHER_CHECK` or `weather check`."""
    if isinstance(raw, IntentType):
        return raw
    key = str(raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return None
    try:
        return IntentType(key)
    except ValueError:
        return None


def parse_module(raw: Any) -> Module | None:
    if isinstance(raw, Module):
        return raw
    try:
        return Module(str(raw or "").strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class RoutingTarget:
    module: Module
    screen: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def with_parameters(self, extra: Mapping[str, Any]) -> RoutingTarget:
        merged = dict(extra)
        merged.update(self.parameters)
        return RoutingTarget(module=self.module, screen=self.screen, parameters=merged)

    def describe(self) -> str:
        return f"{self.module.value}/{self.screen}"


_TEXT_ENTITIES = (
    "club",
    "wind",
    "pain",
    "score_context",
    "drill_type",
    "stat_type",
    "course_name",
    "equipment_type",
    "setting_key",
    "feedback_text",
)


@dataclass(frozen=True)
class ExtractedEntities:
    """Entities pulled from an utterance.

    Upstream extraction is noisy, so construction sanitizes instead of raising:
    non-positive yardage, holes outside 1-18, unknown lies and values of the
    wrong type are dropped, and fatigue is clamped to 1-10.
    """

    club: str | None = None
    yardage: int | None = None
    lie: Lie | None = None
    wind: str | None = None
    fatigue: int | None = None
    pain: str | None = None
    score_context: str | None = None
    hole_number: int | None = None
    drill_type: str | None = None
    stat_type: str | None = None
    course_name: str | None = None
    equipment_type: str | None = None
    setting_key: str | None = None
    feedback_text: str | None = None

    def __post_init__(self) -> None:
        for name in _TEXT_ENTITIES:
            object.__setattr__(self, name, _clean_text(getattr(self, name)))
        yardage = _as_int(self.yardage)
        object.__setattr__(self, "yardage", yardage if yardage is not None and yardage > 0 else None)
        object.__setattr__(self, "lie", _as_lie(self.lie))
        fatigue = _as_int(self.fatigue)
        object.__setattr__(self, "fatigue", min(max(fatigue, 1), 10) if fatigue is not None else None)
        hole = _as_int(self.hole_number)
        object.__setattr__(self, "hole_number", hole if hole is not None and 1 <= hole <= 18 else None)

    @classmethod
    def from_mapping(cls, raw: Any) -> ExtractedEntities:
        if not isinstance(raw, Mapping):
            return cls()
        values: dict[str, Any] = {}
        for entity_type in EntityType:
            value = raw.get(entity_type.value)
            if value is None:
                value = raw.get(_camel_case(entity_type.value))
            if value is not None:
                values[entity_type.value] = value
        return cls(**values)

    def has(self, entity_type: EntityType) -> bool:
        return getattr(self, entity_type.value) is not None

    def present(self) -> list[EntityType]:
        return [entity_type for entity_type in EntityType if self.has(entity_type)]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for entity_type in self.present():
            value = getattr(self, entity_type.value)
            result[entity_type.value] = value.value if isinstance(value, Enum) else value
        return result


@dataclass(frozen=True)
class ParsedIntent:
    intent: IntentType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    routing_target: RoutingTarget | None = None
    user_goal: str | None = None

    def __post_init__(self) -> None:
        try:
            confidence = float(self.confidence)
        except (TypeError, ValueError):
            confidence = 0.0
        if math.isnan(confidence):
            confidence = 0.0
        object.__setattr__(self, "confidence", min(max(confidence, 0.0), 1.0))


def _clean_text(value: Any) -> str | None:
    if value is None or isinstance(value, (bool, dict, list, tuple, set)):
        return None
    text = " ".join(str(value).split())
    return text or None


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    text = str(value).strip().lower()
    for suffix in ("yards", "yard", "yds", "yd", "y"):
        if text.endswith(suffix):
            text = text[: -len(suffix)].strip()
            break
    try:
        return int(float(text))
    except (TypeError, ValueError, OverflowError):
        return None


def _as_lie(value: Any) -> Lie | None:
    if value is None:
        return None
    if isinstance(value, Lie):
        return value
    try:
        return Lie(str(value).strip().lower())
    except ValueError:
        return None


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
