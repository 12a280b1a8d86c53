from __future__ import annotations

from dataclasses import dataclass

from navcaddy.cognition.entities import IntentType
from navcaddy.cognition.errors import ClassificationError, ClassificationErrorKind
from navcaddy.cognition.safe_fallbacks import render_safe_message


@dataclass(frozen=True)
class RecoveryStrategy:
    message_key: str
    suggested_intents: tuple[IntentType, ...]
    use_offline: bool = False

    def message(self, locale: str | None = None) -> str:
        return render_safe_message(self.message_key, locale)


_OFFLINE_SUGGESTIONS = (IntentType.SCORE_ENTRY, IntentType.STATS_LOOKUP, IntentType.EQUIPMENT_INFO)
_COMMON_SUGGESTIONS = (IntentType.SHOT_RECOMMENDATION, IntentType.SCORE_ENTRY, IntentType.HELP_REQUEST)

RECOVERY_STRATEGIES: dict[ClassificationErrorKind, RecoveryStrategy] = {
    ClassificationErrorKind.TIMEOUT: RecoveryStrategy("recovery.timeout", _COMMON_SUGGESTIONS, use_offline=True),
    ClassificationErrorKind.NETWORK_ERROR: RecoveryStrategy("recovery.network", _OFFLINE_SUGGESTIONS, use_offline=True),
    ClassificationErrorKind.AUTH_ERROR: RecoveryStrategy("recovery.service", _OFFLINE_SUGGESTIONS, use_offline=True),
    ClassificationErrorKind.RATE_LIMITED: RecoveryStrategy("recovery.service", _OFFLINE_SUGGESTIONS, use_offline=True),
    ClassificationErrorKind.PARSE_ERROR: RecoveryStrategy("recovery.classification", _COMMON_SUGGESTIONS),
    ClassificationErrorKind.INVALID_INPUT: RecoveryStrategy("recovery.invalid_input", (IntentType.HELP_REQUEST,)),
    ClassificationErrorKind.EMPTY_INPUT: RecoveryStrategy("error.empty_input", ()),
}


def recovery_for(error: ClassificationError | ClassificationErrorKind) -> RecoveryStrategy:
    kind = error.kind if isinstance(error, ClassificationError) else error
    return RECOVERY_STRATEGIES[kind]
