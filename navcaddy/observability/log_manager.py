from __future__ import annotations

import json
import logging
import traceback
from typing import Any

_BASE_LOGGER_NAME = "navcaddy.events"
_TEXT_PREVIEW_CHARS = 160
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Milestones other modules emit; anything else is logged with known=false.
KNOWN_EVENTS = frozenset(
    {
        "pipeline.classified",
        "pipeline.classify_failed",
        "pipeline.classify_crashed",
        "pipeline.routed",
        "queue.claimed",
        "queue.failed",
        "connectivity.changed",
    }
)


class LogManager:
    """Milestone events for the caddy pipeline, one JSON line each.

    Events go to `navcaddy.events.<component>` so a noisy component can be
    turned down on its own. Long string values are cut to a preview; golfer
    utterances never land in the log in full.
    """

    def __init__(self, base_logger_name: str = _BASE_LOGGER_NAME) -> None:
        self._base_logger_name = base_logger_name

    def emit(
        self,
        *,
        level: str = "info",
        event: str,
        message: str | None = None,
        component: str | None = None,
        session_id: str | None = None,
        intent: str | None = None,
        status: str | None = None,
        error_code: str | None = None,
        latency_ms: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        name = str(event or "unknown_event")
        record: dict[str, Any] = {
            "event": name,
            "component": component,
            "session_id": session_id,
            "intent": intent,
            "status": status,
            "error_code": error_code,
            "latency_ms": latency_ms,
            "message": message,
        }
        if name not in KNOWN_EVENTS:
            record["known"] = False
        if isinstance(payload, dict):
            for key, value in payload.items():
                record.setdefault(key, value)
        self._write(level, component, record)

    def emit_exception(
        self,
        *,
        event: str,
        exc: BaseException,
        message: str | None = None,
        component: str | None = None,
        session_id: str | None = None,
        intent: str | None = None,
        error_code: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        details = dict(payload or {})
        details["exception_type"] = type(exc).__name__
        details["stack_excerpt"] = traceback.format_exc(limit=10)
        self.emit(
            level="error",
            event=event,
            message=message or str(exc),
            component=component,
            session_id=session_id,
            intent=intent,
            status="crashed",
            error_code=error_code or type(exc).__name__,
            payload=details,
        )

    def _write(self, level: str, component: str | None, record: dict[str, Any]) -> None:
        logger = logging.getLogger(
            f"{self._base_logger_name}.{component}" if component else self._base_logger_name
        )
        numeric = _LEVELS.get(str(level or "info").lower(), logging.INFO)
        if not logger.isEnabledFor(numeric):
            return
        compact = {key: _preview(value) for key, value in record.items() if value is not None}
        logger.log(numeric, "event %s", json.dumps(compact, ensure_ascii=False, separators=(",", ":"), default=str))


def _preview(value: Any) -> Any:
    if isinstance(value, str) and len(value) > _TEXT_PREVIEW_CHARS:
        return value[:_TEXT_PREVIEW_CHARS] + "..."
    return value


_DEFAULT_MANAGER: LogManager | None = None


def get_log_manager() -> LogManager:
    global _DEFAULT_MANAGER
    if _DEFAULT_MANAGER is None:
        _DEFAULT_MANAGER = LogManager()
    return _DEFAULT_MANAGER
