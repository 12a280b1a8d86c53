from __future__ import annotations

from enum import Enum
from typing import Iterable, Protocol

from navcaddy.cognition.entities import IntentType
from navcaddy.cognition.safe_fallbacks import render_safe_message
from navcaddy.session.manager import SessionContextManager


class Prerequisite(str, Enum):
    RECOVERY_DATA = "recovery_data"
    ROUND_ACTIVE = "round_active"
    BAG_CONFIGURED = "bag_configured"
    COURSE_SELECTED = "course_selected"


INTENT_PREREQUISITES: dict[IntentType, tuple[Prerequisite, ...]] = {
    IntentType.RECOVERY_CHECK: (Prerequisite.RECOVERY_DATA,),
    IntentType.SCORE_ENTRY: (Prerequisite.ROUND_ACTIVE,),
    IntentType.ROUND_END: (Prerequisite.ROUND_ACTIVE,),
    IntentType.CLUB_ADJUSTMENT: (Prerequisite.BAG_CONFIGURED,),
    IntentType.SHOT_RECOMMENDATION: (Prerequisite.BAG_CONFIGURED,),
    IntentType.COURSE_INFO: (Prerequisite.COURSE_SELECTED,),
}


class PrerequisiteChecker(Protocol):
    def check(self, prerequisite: Prerequisite) -> bool:
        ...


class StaticPrerequisiteChecker:
    def __init__(self, satisfied: Iterable[Prerequisite] = ()) -> None:
        self._satisfied = frozenset(satisfied)

    def check(self, prerequisite: Prerequisite) -> bool:
        return prerequisite in self._satisfied


class SessionPrerequisiteChecker:
    """Reads round state from the live session; everything else from a fixed set."""

    def __init__(
        self,
        session: SessionContextManager,
        satisfied: Iterable[Prerequisite] = (),
    ) -> None:
        self._session = session
        self._satisfied = frozenset(satisfied)

    def check(self, prerequisite: Prerequisite) -> bool:
        context = self._session.snapshot()
        if prerequisite == Prerequisite.ROUND_ACTIVE:
            return context.has_active_round
        if prerequisite == Prerequisite.COURSE_SELECTED:
            if context.current_round is not None and context.current_round.course_name:
                return True
        return prerequisite in self._satisfied


def prerequisites_for(intent: IntentType) -> tuple[Prerequisite, ...]:
    return INTENT_PREREQUISITES.get(intent, ())


def check_all(checker: PrerequisiteChecker, intent: IntentType) -> tuple[Prerequisite, ...]:
    """Return the unmet prerequisites in declaration order."""
    return tuple(item for item in prerequisites_for(intent) if not checker.check(item))


def prerequisite_message(missing: Iterable[Prerequisite], locale: str | None = None) -> str:
    items = list(missing)
    if not items:
        return ""
    head = render_safe_message(f"prerequisite.{items[0].value}", locale)
    if len(items) == 1:
        return head
    rest = ", ".join(item.value.replace("_", " ") for item in items[1:])
    tail = render_safe_message("prerequisite.also_missing", locale, {"missing": rest})
    return f"{head} {tail}"
