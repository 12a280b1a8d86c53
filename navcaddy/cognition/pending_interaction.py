from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from navcaddy.cognition.entities import IntentType, ParsedIntent

PENDING_TTL_MINUTES = 5

_YES = {"yes", "y", "yeah", "yep", "ok", "okay", "sure", "go ahead", "do it", "si", "sí", "dale"}
_NO = {"no", "n", "nope", "nah", "cancel", "never mind", "nevermind", "stop"}


class PendingInteractionType(str, Enum):
    CONFIRMATION = "CONFIRMATION"
    OPTION_SELECTION = "OPTION_SELECTION"


@dataclass(frozen=True)
class PendingInteraction:
    type: PendingInteractionType
    created_at: str
    expires_at: str | None = None
    intent: ParsedIntent | None = None
    choices: tuple[IntentType, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PendingResolution:
    consumed: bool
    confirmed: bool | None = None
    selected: IntentType | None = None
    error: str | None = None


def build_pending_confirmation(
    intent: ParsedIntent,
    ttl_minutes: int | None = PENDING_TTL_MINUTES,
) -> PendingInteraction:
    created_at, expires_at = _window(ttl_minutes)
    return PendingInteraction(
        type=PendingInteractionType.CONFIRMATION,
        created_at=created_at,
        expires_at=expires_at,
        intent=intent,
    )


def build_pending_selection(
    choices: tuple[IntentType, ...],
    ttl_minutes: int | None = PENDING_TTL_MINUTES,
) -> PendingInteraction:
    created_at, expires_at = _window(ttl_minutes)
    return PendingInteraction(
        type=PendingInteractionType.OPTION_SELECTION,
        created_at=created_at,
        expires_at=expires_at,
        choices=tuple(choices),
    )


def is_expired(pending: PendingInteraction, now: datetime | None = None) -> bool:
    if not pending.expires_at:
        return False
    try:
        expires = datetime.fromisoformat(pending.expires_at)
    except ValueError:
        return False
    return (now or datetime.now(timezone.utc)) >= expires


def try_consume(
    message_text: str,
    pending: PendingInteraction,
    now: datetime | None = None,
) -> PendingResolution:
    """Interpret a reply against the parked question.

    Anything that is not a recognisable answer is left unconsumed so the
    caller can classify it as a fresh utterance.
    """
    if is_expired(pending, now):
        return PendingResolution(consumed=False, error="expired")
    text = " ".join(str(message_text or "").lower().split()).strip(" .!?")
    if pending.type == PendingInteractionType.CONFIRMATION:
        return _consume_confirmation(text)
    if pending.type == PendingInteractionType.OPTION_SELECTION:
        return _consume_option_selection(text, pending)
    return PendingResolution(consumed=False)


def _consume_confirmation(text: str) -> PendingResolution:
    if text in _YES:
        return PendingResolution(consumed=True, confirmed=True)
    if text in _NO:
        return PendingResolution(consumed=True, confirmed=False)
    return PendingResolution(consumed=False)


def _consume_option_selection(text: str, pending: PendingInteraction) -> PendingResolution:
    if not pending.choices:
        return PendingResolution(consumed=False)
    if text in _NO:
        return PendingResolution(consumed=True, confirmed=False)
    if text.isdigit():
        idx = int(text) - 1
        if 0 <= idx < len(pending.choices):
            return PendingResolution(consumed=True, confirmed=True, selected=pending.choices[idx])
        return PendingResolution(consumed=False, error="out_of_range")
    for choice in pending.choices:
        if text in {choice.value, choice.value.replace("_", " ")}:
            return PendingResolution(consumed=True, confirmed=True, selected=choice)
    return PendingResolution(consumed=False)


def _window(ttl_minutes: int | None) -> tuple[str, str | None]:
    now = datetime.now(timezone.utc)
    expires_at = None
    if ttl_minutes is not None:
        expires_at = (now + timedelta(minutes=ttl_minutes)).isoformat()
    return now.isoformat(), expires_at
