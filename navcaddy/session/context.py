from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from navcaddy.cognition.entities import Lie
from navcaddy.cognition.errors import SessionValidationError

MAX_HISTORY = 10
MIN_PAR = 3
MAX_PAR = 5
HOLES_PER_ROUND = 18


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str
    timestamp_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "timestamp_ms": self.timestamp_ms}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ConversationTurn:
        return cls(
            role=Role(str(raw.get("role") or "user")),
            content=str(raw.get("content") or ""),
            timestamp_ms=int(raw.get("timestamp_ms") or 0),
        )


@dataclass(frozen=True)
class CourseConditions:
    weather: str | None = None
    wind_speed_mph: int | None = None
    wind_direction: str | None = None
    temperature_f: int | None = None

    def __post_init__(self) -> None:
        if self.wind_speed_mph is not None and self.wind_speed_mph < 0:
            raise SessionValidationError("wind speed must be >= 0")

    def to_description(self) -> str:
        parts: list[str] = []
        if self.weather:
            parts.append(self.weather)
        if self.wind_speed_mph is not None:
            wind = f"wind {self.wind_speed_mph} mph"
            if self.wind_direction:
                wind = f"{wind} {self.wind_direction}"
            parts.append(wind)
        if self.temperature_f is not None:
            parts.append(f"{self.temperature_f}F")
        return ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "weather": self.weather,
            "wind_speed_mph": self.wind_speed_mph,
            "wind_direction": self.wind_direction,
            "temperature_f": self.temperature_f,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> CourseConditions | None:
        if not raw:
            return None
        return cls(
            weather=raw.get("weather"),
            wind_speed_mph=raw.get("wind_speed_mph"),
            wind_direction=raw.get("wind_direction"),
            temperature_f=raw.get("temperature_f"),
        )


@dataclass(frozen=True)
class RoundState:
    round_id: str
    course_name: str
    current_hole: int = 1
    current_par: int = 4
    total_score: int = 0
    holes_completed: int = 0
    conditions: CourseConditions | None = None

    def __post_init__(self) -> None:
        if not str(self.round_id or "").strip():
            raise SessionValidationError("round_id is required")
        validate_hole(self.current_hole, self.current_par)
        validate_score(self.total_score, self.holes_completed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_id": self.round_id,
            "course_name": self.course_name,
            "current_hole": self.current_hole,
            "current_par": self.current_par,
            "total_score": self.total_score,
            "holes_completed": self.holes_completed,
            "conditions": self.conditions.to_dict() if self.conditions else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> RoundState | None:
        if not raw:
            return None
        return cls(
            round_id=str(raw.get("round_id") or ""),
            course_name=str(raw.get("course_name") or ""),
            current_hole=int(raw.get("current_hole") or 1),
            current_par=int(raw.get("current_par") or 4),
            total_score=int(raw.get("total_score") or 0),
            holes_completed=int(raw.get("holes_completed") or 0),
            conditions=CourseConditions.from_dict(raw.get("conditions")),
        )


@dataclass(frozen=True)
class ShotRecord:
    club: str
    distance_yards: int | None = None
    lie: Lie | None = None
    result: str | None = None
    timestamp_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "club": self.club,
            "distance_yards": self.distance_yards,
            "lie": self.lie.value if self.lie else None,
            "result": self.result,
            "timestamp_ms": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> ShotRecord | None:
        if not raw:
            return None
        lie = raw.get("lie")
        return cls(
            club=str(raw.get("club") or ""),
            distance_yards=raw.get("distance_yards"),
            lie=Lie(lie) if lie else None,
            result=raw.get("result"),
            timestamp_ms=int(raw.get("timestamp_ms") or 0),
        )


@dataclass(frozen=True)
class SessionContext:
    """Read-only snapshot of one device session."""

    current_round: RoundState | None = None
    last_shot: ShotRecord | None = None
    last_recommendation: str | None = None
    conversation_history: tuple[ConversationTurn, ...] = field(default_factory=tuple)

    @property
    def has_active_round(self) -> bool:
        return self.current_round is not None

    def with_turns(self, *turns: ConversationTurn) -> SessionContext:
        history = (*self.conversation_history, *turns)[-MAX_HISTORY:]
        return replace(self, conversation_history=history)

    def recent_conversation(self, count: int = MAX_HISTORY) -> tuple[ConversationTurn, ...]:
        if count <= 0:
            return ()
        return self.conversation_history[-count:]

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_round": self.current_round.to_dict() if self.current_round else None,
            "last_shot": self.last_shot.to_dict() if self.last_shot else None,
            "last_recommendation": self.last_recommendation,
            "conversation_history": [turn.to_dict() for turn in self.conversation_history],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> SessionContext:
        if not raw:
            return cls()
        history = raw.get("conversation_history") or []
        return cls(
            current_round=RoundState.from_dict(raw.get("current_round")),
            last_shot=ShotRecord.from_dict(raw.get("last_shot")),
            last_recommendation=raw.get("last_recommendation"),
            conversation_history=tuple(ConversationTurn.from_dict(item) for item in history)[-MAX_HISTORY:],
        )


def validate_hole(hole: int, par: int) -> None:
    if not 1 <= hole <= HOLES_PER_ROUND:
        raise SessionValidationError(f"hole must be between 1 and {HOLES_PER_ROUND}, got {hole}")
    if not MIN_PAR <= par <= MAX_PAR:
        raise SessionValidationError(f"par must be between {MIN_PAR} and {MAX_PAR}, got {par}")


def validate_score(total_score: int, holes_completed: int) -> None:
    if total_score < 0:
        raise SessionValidationError(f"total score must be >= 0, got {total_score}")
    if not 0 <= holes_completed <= HOLES_PER_ROUND:
        raise SessionValidationError(
            f"holes completed must be between 0 and {HOLES_PER_ROUND}, got {holes_completed}"
        )


def describe_context(context: SessionContext | None) -> str:
    """Plain-text summary handed to the classify prompt."""
    if context is None:
        return "No active session."
    lines: list[str] = []
    round_state = context.current_round
    if round_state is not None:
        lines.append(
            f"Round at {round_state.course_name or 'unknown course'}: hole {round_state.current_hole} "
            f"(par {round_state.current_par}), score {round_state.total_score} "
            f"through {round_state.holes_completed}"
        )
        if round_state.conditions is not None:
            conditions = round_state.conditions.to_description()
            if conditions:
                lines.append(f"Conditions: {conditions}")
    else:
        lines.append("No active round.")
    if context.last_shot is not None:
        shot = context.last_shot
        distance = f" {shot.distance_yards} yards" if shot.distance_yards is not None else ""
        lines.append(f"Last shot: {shot.club}{distance}")
    if context.last_recommendation:
        lines.append(f"Last recommendation: {context.last_recommendation}")
    for turn in context.recent_conversation(4):
        lines.append(f"{turn.role.value}: {turn.content}")
    return "\n".join(lines)
