from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import urlencode

from navcaddy.cognition.entities import EntityType, ExtractedEntities, Module, RoutingTarget
from navcaddy.cognition.errors import NavigationError, NavigationErrorKind


@dataclass(frozen=True)
class ParameterSpec:
    kind: type
    required: bool = False
    entity: EntityType | None = None


@dataclass(frozen=True)
class Destination:
    module: Module
    screen: str
    parameters: dict[str, Any] = field(default_factory=dict)

    @property
    def route(self) -> str:
        base = f"{self.module.value}/{self.screen}"
        if not self.parameters:
            return base
        query = urlencode([(key, _render(value)) for key, value in sorted(self.parameters.items())])
        return f"{base}?{query}"


def _screens(**screens: Mapping[str, ParameterSpec]) -> Mapping[str, Mapping[str, ParameterSpec]]:
    return MappingProxyType({name: MappingProxyType(dict(params)) for name, params in screens.items()})


_DESTINATIONS: Mapping[Module, Mapping[str, Mapping[str, ParameterSpec]]] = MappingProxyType(
    {
        Module.CADDY: _screens(
            club_adjustment={"club": ParameterSpec(str, entity=EntityType.CLUB)},
            shot_recommendation={
                "yardage": ParameterSpec(int, entity=EntityType.YARDAGE),
                "lie": ParameterSpec(str, entity=EntityType.LIE),
                "wind": ParameterSpec(str, entity=EntityType.WIND),
            },
            live_caddy={
                "expand_strategy": ParameterSpec(bool),
                "highlight_bailout": ParameterSpec(bool),
                "expand_readiness": ParameterSpec(bool),
            },
            round_start={"course_name": ParameterSpec(str, entity=EntityType.COURSE_NAME)},
            score_entry={"hole": ParameterSpec(int, entity=EntityType.HOLE_NUMBER)},
            round_end={},
            round_summary={"round_id": ParameterSpec(str, required=True)},
            weather={},
            stats={"stat_type": ParameterSpec(str, entity=EntityType.STAT_TYPE)},
            course_info={
                "course_id": ParameterSpec(str),
                "course_name": ParameterSpec(str, entity=EntityType.COURSE_NAME),
            },
        ),
        Module.COACH: _screens(
            drill={
                "drill_id": ParameterSpec(str),
                "focus_area": ParameterSpec(str, entity=EntityType.DRILL_TYPE),
            },
            practice={},
        ),
        Module.RECOVERY: _screens(
            overview={},
            data_entry={"data_type": ParameterSpec(str)},
        ),
        Module.SETTINGS: _screens(
            equipment={},
            settings={"setting_key": ParameterSpec(str, entity=EntityType.SETTING_KEY)},
            feedback={},
            help={},
        ),
    }
)


def known_screens(module: Module) -> list[str]:
    return list(_DESTINATIONS.get(module, {}).keys())


def screen_parameters(module: Module, screen: str) -> Mapping[str, ParameterSpec]:
    screens = _DESTINATIONS.get(module)
    if screens is None or screen not in screens:
        known = ", ".join(known_screens(module)) or "none"
        raise NavigationError(
            NavigationErrorKind.INVALID_TARGET,
            f"unknown destination {module.value}/{screen} (known: {known})",
        )
    return screens[screen]


def resolve_destination(target: RoutingTarget) -> Destination:
    """Check a routing target against the destination table.

    Raises NavigationError(INVALID_TARGET) for an unknown screen, an unknown or
    missing parameter, or a value of the wrong type.
    """
    specs = screen_parameters(target.module, target.screen)
    resolved: dict[str, Any] = {}
    for name, value in target.parameters.items():
        spec = specs.get(name)
        if spec is None:
            raise NavigationError(
                NavigationErrorKind.INVALID_TARGET,
                f"{target.describe()} has no parameter {name!r}",
            )
        if value is None:
            continue
        resolved[name] = _coerce(target, name, value, spec.kind)
    for name, spec in specs.items():
        if spec.required and name not in resolved:
            raise NavigationError(
                NavigationErrorKind.INVALID_TARGET,
                f"{target.describe()} requires parameter {name!r}",
            )
    return Destination(module=target.module, screen=target.screen, parameters=resolved)


def enrich_with_entities(target: RoutingTarget, entities: ExtractedEntities) -> RoutingTarget:
    """Fill screen parameters from matching entities; explicit parameters win."""
    screens = _DESTINATIONS.get(target.module)
    if screens is None or target.screen not in screens:
        return target
    extra: dict[str, Any] = {}
    for name, spec in screens[target.screen].items():
        if spec.entity is None or not entities.has(spec.entity):
            continue
        value = getattr(entities, spec.entity.value)
        extra[name] = getattr(value, "value", value)
    if not extra:
        return target
    return target.with_parameters(extra)


def _coerce(target: RoutingTarget, name: str, value: Any, kind: type) -> Any:
    if kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    elif kind is str:
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise NavigationError(
        NavigationErrorKind.INVALID_TARGET,
        f"{target.describe()} parameter {name!r} expects {kind.__name__}, got {type(value).__name__}",
    )


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
