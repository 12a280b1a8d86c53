from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

import requests

from navcaddy.cognition.errors import QueueError
from navcaddy.config.settings import SyncConfig, load_config
from navcaddy.nervous_system import operation_queue
from navcaddy.nervous_system.operation_queue import OperationStatus, QueuedOperation
from navcaddy.observability.log_manager import LogManager, get_log_manager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    base_ms: int
    max_ms: int

    def delay_ms(self, retry_count: int) -> int:
        return min(self.base_ms * (2 ** max(retry_count, 0)), self.max_ms)

    def ready(self, operation: QueuedOperation, now_ms: int) -> bool:
        if operation.last_attempt_at is None:
            return True
        return now_ms - operation.last_attempt_at >= self.delay_ms(operation.retry_count)


class SyncTransport(Protocol):
    def push(self, operation: QueuedOperation) -> None:
        """Raise on failure."""
        ...


class HttpSyncTransport:
    def __init__(self, endpoint: str, timeout: float = 15.0) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    def push(self, operation: QueuedOperation) -> None:
        response = requests.post(
            f"{self.endpoint}/{operation.type.value}",
            json={"id": operation.id, "enqueued_at": operation.enqueued_at, "payload": operation.payload},
            timeout=self.timeout,
        )
        response.raise_for_status()


@dataclass
class SyncReport:
    synced: list[str] = field(default_factory=list)
    retried: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    # pushed or attempted, but the queue row could not be updated afterwards
    unsettled: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.synced) + len(self.retried) + len(self.failed)


class SyncWorker:
    """Drains the operation queue in FIFO order.

    Several workers may run against the same database; the atomic claim
    decides which one pushes a given operation.
    """

    def __init__(
        self,
        transport: SyncTransport,
        *,
        config: SyncConfig | None = None,
        is_online: Callable[[], bool] | None = None,
        log_manager: LogManager | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or load_config().sync
        self._backoff = BackoffPolicy(self._config.base_backoff_ms, self._config.max_backoff_ms)
        self._is_online = is_online
        self._log = log_manager or get_log_manager()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._unsettled: set[str] = set()

    def run_once(self, now_ms: int | None = None) -> SyncReport:
        report = SyncReport()
        if self._is_online is not None and not self._is_online():
            logger.info("sync skipped while offline")
            return report
        now = now_ms if now_ms is not None else int(time.time() * 1000)
        self._release_unsettled()
        for operation in operation_queue.get_pending_operations():
            if not self._backoff.ready(operation, now):
                report.skipped.append(operation.id)
                continue
            if not operation_queue.claim_operation(operation.id, now_ms=now):
                report.skipped.append(operation.id)
                continue
            self._log.emit(
                event="queue.claimed",
                component="sync_worker",
                payload={"operation_id": operation.id, "type": operation.type.value},
            )
            self._push(operation, report)
        return report

    def _push(self, operation: QueuedOperation, report: SyncReport) -> None:
        try:
            self._transport.push(operation)
        except Exception as exc:
            logger.warning("sync push failed id=%s error=%s", operation.id, exc)
            self._settle_failure(operation, exc, report)
            return
        try:
            operation_queue.mark_synced(operation.id)
        except QueueError as exc:
            self._hold(operation.id, exc, report)
            return
        report.synced.append(operation.id)

    def _settle_failure(self, operation: QueuedOperation, exc: Exception, report: SyncReport) -> None:
        try:
            updated = operation_queue.record_failed_attempt(
                operation.id,
                str(exc) or type(exc).__name__,
                max_retries=self._config.max_retries,
            )
        except QueueError as queue_exc:
            self._hold(operation.id, queue_exc, report)
            return
        if updated.status == OperationStatus.FAILED:
            report.failed.append(operation.id)
            self._log.emit(
                level="warning",
                event="queue.failed",
                component="sync_worker",
                error_code=type(exc).__name__,
                payload={"operation_id": operation.id, "retry_count": updated.retry_count},
            )
        else:
            report.retried.append(operation.id)

    def _hold(self, op_id: str, exc: QueueError, report: SyncReport) -> None:
        # Row is still syncing; the next pass hands it back to pending.
        logger.warning("sync bookkeeping failed id=%s error=%s", op_id, exc)
        self._unsettled.add(op_id)
        report.unsettled.append(op_id)

    def _release_unsettled(self) -> None:
        for op_id in sorted(self._unsettled):
            try:
                operation_queue.release_claim(op_id)
            except QueueError as exc:
                logger.warning("sync release failed id=%s error=%s", op_id, exc)
                continue
            self._unsettled.discard(op_id)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        released = operation_queue.release_stale_claims()
        if released:
            logger.info("Sync worker released stale claims count=%s", released)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info("Sync worker started")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        logger.info("Sync worker stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                report = self.run_once()
                if report.synced:
                    operation_queue.delete_synced()
            except QueueError as exc:
                logger.warning("Sync pass failed: %s", exc)
            self._stop_event.wait(self._config.poll_seconds)
