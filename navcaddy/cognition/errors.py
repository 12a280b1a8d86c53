from __future__ import annotations

from enum import Enum
from typing import Iterable


class NavCaddyError(RuntimeError):
    pass


class UnknownIntentError(NavCaddyError):
    def __init__(self, intent: object) -> None:
        super().__init__(f"Unknown intent: {intent}")
        self.intent = intent


class EntityValidationError(NavCaddyError):
    def __init__(self, intent: object, missing: Iterable[object]) -> None:
        self.intent = intent
        self.missing = tuple(missing)
        names = ", ".join(str(getattr(item, "value", item)) for item in self.missing)
        super().__init__(f"Missing entities for {intent}: {names}")


class SessionValidationError(NavCaddyError, ValueError):
    pass


class ClassificationErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    PARSE_ERROR = "parse_error"
    INVALID_INPUT = "invalid_input"
    EMPTY_INPUT = "empty_input"


class ClassificationError(NavCaddyError):
    def __init__(self, kind: ClassificationErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = str(detail or "")
        super().__init__(f"{kind.value}: {self.detail}" if self.detail else kind.value)

    @classmethod
    def from_http_status(cls, status_code: int | None, detail: str = "") -> ClassificationError:
        if status_code in {401, 403}:
            return cls(ClassificationErrorKind.AUTH_ERROR, detail)
        if status_code == 429:
            return cls(ClassificationErrorKind.RATE_LIMITED, detail)
        if status_code is not None and 400 <= status_code < 500:
            return cls(ClassificationErrorKind.INVALID_INPUT, detail)
        return cls(ClassificationErrorKind.NETWORK_ERROR, detail)


class NavigationErrorKind(str, Enum):
    INVALID_TARGET = "invalid_target"
    PREREQUISITE_UNMET = "prerequisite_unmet"


class NavigationError(NavCaddyError):
    def __init__(self, kind: NavigationErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = str(detail or "")
        super().__init__(f"{kind.value}: {self.detail}" if self.detail else kind.value)


class QueueError(NavCaddyError):
    """Persistence failure in the operation queue."""

    def __init__(self, detail: str, *, operation_id: str | None = None) -> None:
        self.operation_id = operation_id
        super().__init__(detail)
