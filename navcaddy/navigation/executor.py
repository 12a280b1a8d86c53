from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from navcaddy.cognition.entities import IntentType, ParsedIntent, RoutingTarget
from navcaddy.cognition.errors import NavigationError
from navcaddy.cognition.safe_fallbacks import render_safe_message
from navcaddy.navigation.destinations import Destination, resolve_destination
from navcaddy.navigation.prerequisites import Prerequisite
from navcaddy.navigation.router import (
    ConfirmationRequired,
    Navigate,
    NoNavigation,
    PrerequisiteMissing,
    RoutingResult,
)

logger = logging.getLogger(__name__)

Navigator = Callable[[Destination], None]


@dataclass(frozen=True)
class Navigated:
    destination: Destination
    route: str


@dataclass(frozen=True)
class ShowInlineResponse:
    response: str
    suggestions: tuple[IntentType, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PromptPrerequisites:
    missing: tuple[Prerequisite, ...]
    message: str


@dataclass(frozen=True)
class RequestConfirmation:
    message: str
    intent: ParsedIntent


@dataclass(frozen=True)
class NavigationFailed:
    reason: str
    target: RoutingTarget
    detail: str = ""


NavigationAction = Navigated | ShowInlineResponse | PromptPrerequisites | RequestConfirmation | NavigationFailed


class NavigationExecutor:
    """Turns a routing decision into something the host app can act on.

    A bad destination never escapes as an exception; it becomes
    NavigationFailed so the session keeps going.
    """

    def __init__(self, navigator: Navigator | None = None) -> None:
        self._navigator = navigator

    def execute(self, routing: RoutingResult) -> NavigationAction:
        if isinstance(routing, Navigate):
            return self._navigate(routing.target)
        if isinstance(routing, NoNavigation):
            return ShowInlineResponse(response=routing.response, suggestions=routing.suggestions)
        if isinstance(routing, PrerequisiteMissing):
            return PromptPrerequisites(missing=routing.missing, message=routing.message)
        if isinstance(routing, ConfirmationRequired):
            return RequestConfirmation(message=routing.message, intent=routing.intent)
        raise TypeError(f"Unhandled routing result: {type(routing).__name__}")

    def _navigate(self, target: RoutingTarget) -> NavigationAction:
        try:
            destination = resolve_destination(target)
        except NavigationError as exc:
            logger.error("navigation target rejected target=%s detail=%s", target.describe(), exc.detail)
            return NavigationFailed(
                reason=render_safe_message("navigation.failed"),
                target=target,
                detail=exc.detail,
            )
        if self._navigator is not None:
            try:
                self._navigator(destination)
            except Exception as exc:
                logger.exception("navigator failed route=%s", destination.route)
                return NavigationFailed(
                    reason=render_safe_message("navigation.failed"),
                    target=target,
                    detail=str(exc),
                )
        return Navigated(destination=destination, route=destination.route)


def describe_action(action: NavigationAction) -> str:
    if isinstance(action, Navigated):
        screen = action.destination.screen.replace("_", " ")
        return render_safe_message("navigation.opening", variables={"screen": screen})
    if isinstance(action, ShowInlineResponse):
        return action.response
    if isinstance(action, PromptPrerequisites):
        return action.message
    if isinstance(action, RequestConfirmation):
        return action.message
    if isinstance(action, NavigationFailed):
        return action.reason
    raise TypeError(f"Unhandled navigation action: {type(action).__name__}")
