from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable

from navcaddy.cognition.errors import SessionValidationError
from navcaddy.cognition.pending_interaction import PendingInteraction, is_expired
from navcaddy.session.context import (
    MAX_HISTORY,
    ConversationTurn,
    CourseConditions,
    Role,
    RoundState,
    SessionContext,
    ShotRecord,
    validate_hole,
    validate_score,
)

logger = logging.getLogger(__name__)

Listener = Callable[[SessionContext], None]


class SessionContextManager:
    """Single writer for one device session.

    Readers take `snapshot()` and never see a half-applied update; every
    mutator validates first and then swaps the whole snapshot under the lock.
    """

    def __init__(self, session_id: str = "default", context: SessionContext | None = None) -> None:
        self.session_id = session_id
        self._lock = threading.RLock()
        self._context = context or SessionContext()
        self._pending: PendingInteraction | None = None
        self._listeners: list[Listener] = []
        self._last_timestamp_ms = max(
            (turn.timestamp_ms for turn in self._context.conversation_history),
            default=0,
        )

    def snapshot(self) -> SessionContext:
        with self._lock:
            return self._context

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def has_active_round(self) -> bool:
        return self.snapshot().has_active_round

    def update_round(
        self,
        round_id: str,
        course_name: str,
        *,
        current_hole: int = 1,
        current_par: int = 4,
        total_score: int = 0,
        holes_completed: int = 0,
        conditions: CourseConditions | None = None,
    ) -> SessionContext:
        round_state = RoundState(
            round_id=round_id,
            course_name=course_name,
            current_hole=current_hole,
            current_par=current_par,
            total_score=total_score,
            holes_completed=holes_completed,
            conditions=conditions,
        )
        return self._apply(lambda ctx: replace(ctx, current_round=round_state))

    def end_round(self) -> SessionContext:
        return self._apply(lambda ctx: replace(ctx, current_round=None))

    def update_hole(self, hole: int, par: int) -> SessionContext:
        validate_hole(hole, par)
        return self._apply(
            lambda ctx: replace(ctx, current_round=replace(_require_round(ctx), current_hole=hole, current_par=par))
        )

    def update_conditions(self, conditions: CourseConditions) -> SessionContext:
        return self._apply(
            lambda ctx: replace(ctx, current_round=replace(_require_round(ctx), conditions=conditions))
        )

    def update_score(self, total_score: int, holes_completed: int) -> SessionContext:
        validate_score(total_score, holes_completed)
        return self._apply(
            lambda ctx: replace(
                ctx,
                current_round=replace(
                    _require_round(ctx),
                    total_score=total_score,
                    holes_completed=holes_completed,
                ),
            )
        )

    def record_shot(self, shot: ShotRecord) -> SessionContext:
        if not str(shot.club or "").strip():
            raise SessionValidationError("shot club is required")
        if shot.distance_yards is not None and shot.distance_yards <= 0:
            raise SessionValidationError("shot distance must be > 0")
        return self._apply(lambda ctx: replace(ctx, last_shot=shot))

    def record_recommendation(self, recommendation: str) -> SessionContext:
        text = str(recommendation or "").strip()
        if not text:
            raise SessionValidationError("recommendation must not be blank")
        return self._apply(lambda ctx: replace(ctx, last_recommendation=text))

    def add_conversation_turn(self, user_input: str, assistant_response: str) -> SessionContext:
        with self._lock:
            user_turn = ConversationTurn(Role.USER, str(user_input or ""), self._next_timestamp())
            assistant_turn = ConversationTurn(Role.ASSISTANT, str(assistant_response or ""), self._next_timestamp())
            return self._apply(lambda ctx: ctx.with_turns(user_turn, assistant_turn))

    def add_turn(self, role: Role, content: str) -> SessionContext:
        with self._lock:
            turn = ConversationTurn(role, str(content or ""), self._next_timestamp())
            return self._apply(lambda ctx: ctx.with_turns(turn))

    def get_recent_conversation(self, count: int = MAX_HISTORY) -> tuple[ConversationTurn, ...]:
        return self.snapshot().recent_conversation(count)

    def clear_conversation_history(self) -> SessionContext:
        return self._apply(lambda ctx: replace(ctx, conversation_history=()))

    def clear_session(self) -> SessionContext:
        with self._lock:
            self._pending = None
            return self._apply(lambda _ctx: SessionContext())

    def restore(self, context: SessionContext) -> SessionContext:
        with self._lock:
            self._last_timestamp_ms = max(
                [self._last_timestamp_ms, *(turn.timestamp_ms for turn in context.conversation_history)]
            )
            return self._apply(lambda _ctx: context)

    def set_pending(self, pending: PendingInteraction | None) -> None:
        with self._lock:
            self._pending = pending

    def take_pending(self) -> PendingInteraction | None:
        """Return the parked interaction if still live, and clear it."""
        with self._lock:
            pending, self._pending = self._pending, None
        if pending is not None and is_expired(pending):
            logger.info("pending interaction expired session=%s type=%s", self.session_id, pending.type.value)
            return None
        return pending

    def peek_pending(self) -> PendingInteraction | None:
        with self._lock:
            return self._pending

    def _apply(self, change: Callable[[SessionContext], SessionContext]) -> SessionContext:
        with self._lock:
            updated = change(self._context)
            self._context = updated
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(updated)
            except Exception:
                logger.exception("session listener failed session=%s", self.session_id)
        return updated

    def _next_timestamp(self) -> int:
        now_ms = int(time.time() * 1000)
        self._last_timestamp_ms = max(now_ms, self._last_timestamp_ms + 1)
        return self._last_timestamp_ms


def _require_round(context: SessionContext) -> RoundState:
    if context.current_round is None:
        raise SessionValidationError("no active round")
    return context.current_round
