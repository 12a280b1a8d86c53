from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from navcaddy.cognition.classification import ClassifyResponse
from navcaddy.cognition.entities import (
    ExtractedEntities,
    IntentType,
    RoutingTarget,
    parse_intent_type,
    parse_module,
)


class RoutingTargetPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    module: str
    screen: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    def to_target(self) -> RoutingTarget | None:
        module = parse_module(self.module)
        screen = str(self.screen or "").strip()
        if module is None or not screen:
            return None
        return RoutingTarget(module=module, screen=screen, parameters=dict(self.parameters))


class ClassifyPayload(BaseModel):
    """Shape of the JSON object the classify model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    intent: str
    confidence: float
    entities: dict[str, Any] = Field(default_factory=dict)
    user_goal: str | None = None
    routing_target: RoutingTargetPayload | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        values = dict(data)
        for alias in ("intent_type", "intentType"):
            if "intent" not in values and alias in values:
                values["intent"] = values.pop(alias)
        if "user_goal" not in values and "userGoal" in values:
            values["user_goal"] = values.pop("userGoal")
        if "routing_target" not in values and "routingTarget" in values:
            values["routing_target"] = values.pop("routingTarget")
        if not isinstance(values.get("entities"), dict):
            values["entities"] = {}
        if not isinstance(values.get("routing_target"), dict):
            values["routing_target"] = None
        return values

    @model_validator(mode="after")
    def _normalize(self) -> "ClassifyPayload":
        intent = parse_intent_type(self.intent)
        if intent is None:
            raise ValueError(f"unknown intent: {self.intent}")
        self.intent = intent.value
        confidence = float(self.confidence)
        if math.isnan(confidence):
            raise ValueError("confidence is NaN")
        self.confidence = min(max(confidence, 0.0), 1.0)
        goal = str(self.user_goal or "").strip()
        self.user_goal = goal or None
        return self

    def to_response(self, raw_payload: dict[str, Any] | None = None) -> ClassifyResponse:
        return ClassifyResponse(
            intent=IntentType(self.intent),
            confidence=self.confidence,
            entities=ExtractedEntities.from_mapping(self.entities),
            routing_target=self.routing_target.to_target() if self.routing_target else None,
            user_goal=self.user_goal,
            raw_payload=dict(raw_payload or {}),
        )
