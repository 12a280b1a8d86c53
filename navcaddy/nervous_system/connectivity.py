from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable

from navcaddy.config.settings import get_connectivity_debounce_ms
from navcaddy.observability.log_manager import LogManager, get_log_manager

logger = logging.getLogger(__name__)

Listener = Callable[["ConnectivityState", "ConnectivityState"], None]
TimerFactory = Callable[..., Any]


class ConnectivityState(str, Enum):
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectivityMonitor:
    """Debounced online/offline state.

    Every raw signal cancels the pending timer. A signal that differs from the
    committed state starts a new one; the change is committed only if the
    timer fires before anything else arrives.
    """

    def __init__(
        self,
        debounce_ms: int | None = None,
        *,
        timer_factory: TimerFactory = threading.Timer,
        initial_state: ConnectivityState = ConnectivityState.UNKNOWN,
        log_manager: LogManager | None = None,
    ) -> None:
        self._debounce_ms = debounce_ms if debounce_ms is not None else get_connectivity_debounce_ms()
        self._timer_factory = timer_factory
        self._state = initial_state
        self._log = log_manager or get_log_manager()
        self._lock = threading.Lock()
        self._timer: Any = None
        self._generation = 0
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    @property
    def is_offline(self) -> bool:
        return self.state == ConnectivityState.OFFLINE

    @property
    def change_pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def report(self, reachable: bool) -> None:
        candidate = ConnectivityState.ONLINE if reachable else ConnectivityState.OFFLINE
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            if candidate == self._state:
                return
            generation = self._generation
            timer = self._timer_factory(
                self._debounce_ms / 1000.0,
                self._commit,
                args=(generation, candidate),
            )
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._timer = timer
        timer.start()

    def stop(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1

    def _commit(self, generation: int, candidate: ConnectivityState) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            previous = self._state
            if previous == candidate:
                return
            self._state = candidate
            listeners = list(self._listeners)
        logger.info("connectivity changed %s -> %s", previous.value, candidate.value)
        self._log.emit(
            event="connectivity.changed",
            component="connectivity",
            status=candidate.value,
            payload={"previous": previous.value},
        )
        for listener in listeners:
            try:
                listener(previous, candidate)
            except Exception:
                logger.exception("connectivity listener failed")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
