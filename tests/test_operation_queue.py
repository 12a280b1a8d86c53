from __future__ import annotations

import threading

import pytest

from navcaddy.cognition.errors import QueueError
from navcaddy.nervous_system import operation_queue as queue
from navcaddy.nervous_system.migrate import apply_schema
from navcaddy.nervous_system.operation_queue import OperationStatus, OperationType
from navcaddy.nervous_system.paths import resolve_db_path


@pytest.fixture(autouse=True)
def _schema() -> None:
    apply_schema(resolve_db_path())


def test_enqueue_persists_payload_and_defaults() -> None:
    op = queue.enqueue_operation(OperationType.SHOT_LOG, {"club": "7-iron", "yards": 150})

    stored = queue.get_operation(op.id)

    assert stored == op
    assert stored is not None
    assert stored.status == OperationStatus.PENDING
    assert stored.retry_count == 0
    assert stored.payload == {"club": "7-iron", "yards": 150}
    assert queue.get_pending_count() == 1


def test_unknown_operation_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        queue.enqueue_operation("tee_time")


def test_pending_operations_are_fifo_by_enqueue_time() -> None:
    late = queue.enqueue_operation(OperationType.ROUND_SYNC, enqueued_at=2_000)
    early = queue.enqueue_operation(OperationType.SHOT_LOG, enqueued_at=1_000)
    tie = queue.enqueue_operation(OperationType.MISS_PATTERN_SYNC, enqueued_at=2_000)

    ids = [op.id for op in queue.get_pending_operations()]

    assert ids == [early.id, late.id, tie.id]
    assert [op.id for op in queue.get_pending_operations(limit=1)] == [early.id]


def test_claim_is_exclusive() -> None:
    op = queue.enqueue_operation(OperationType.SHOT_LOG)

    assert queue.claim_operation(op.id, now_ms=5_000) is True
    assert queue.claim_operation(op.id, now_ms=5_001) is False

    claimed = queue.get_operation(op.id)
    assert claimed is not None
    assert claimed.status == OperationStatus.SYNCING
    assert claimed.last_attempt_at == 5_000


def test_mark_synced_requires_claim() -> None:
    op = queue.enqueue_operation(OperationType.SHOT_LOG)

    assert queue.mark_synced(op.id) is False
    queue.claim_operation(op.id)
    assert queue.mark_synced(op.id) is True
    assert queue.delete_synced() == 1
    assert queue.get_operation(op.id) is None


def test_failed_attempts_retry_until_cap() -> None:
    op = queue.enqueue_operation(OperationType.ROUND_SYNC)

    for attempt in range(1, 3):
        queue.claim_operation(op.id)
        updated = queue.record_failed_attempt(op.id, "503 Service Unavailable", max_retries=3)
        assert updated.status == OperationStatus.PENDING
        assert updated.retry_count == attempt

    queue.claim_operation(op.id)
    final = queue.record_failed_attempt(op.id, "503 Service Unavailable", max_retries=3)

    assert final.status == OperationStatus.FAILED
    assert final.retry_count == 3
    assert final.error_message == "503 Service Unavailable"
    assert queue.get_pending_count() == 0


def test_failed_attempt_without_claim_raises() -> None:
    op = queue.enqueue_operation(OperationType.ROUND_SYNC)

    with pytest.raises(QueueError):
        queue.record_failed_attempt(op.id, "boom")


def test_requeue_failed_resets_retries() -> None:
    op = queue.enqueue_operation(OperationType.ROUND_SYNC)
    queue.claim_operation(op.id)
    queue.record_failed_attempt(op.id, "boom", max_retries=1)

    assert queue.requeue_failed() == 1

    restored = queue.get_operation(op.id)
    assert restored is not None
    assert restored.status == OperationStatus.PENDING
    assert restored.retry_count == 0
    assert restored.last_attempt_at is None


def test_release_stale_claims() -> None:
    op = queue.enqueue_operation(OperationType.SHOT_LOG)
    queue.claim_operation(op.id)

    assert queue.release_stale_claims() == 1
    assert [item.id for item in queue.get_pending_operations()] == [op.id]


def test_release_claim_only_touches_syncing_rows() -> None:
    claimed = queue.enqueue_operation(OperationType.SHOT_LOG)
    idle = queue.enqueue_operation(OperationType.SHOT_LOG)
    queue.claim_operation(claimed.id, now_ms=5_000)

    assert queue.release_claim(claimed.id) is True
    assert queue.release_claim(idle.id) is False

    restored = queue.get_operation(claimed.id)
    assert restored is not None
    assert restored.status == OperationStatus.PENDING
    assert restored.retry_count == 0
    assert restored.last_attempt_at == 5_000


def test_status_filter_and_delete() -> None:
    keep = queue.enqueue_operation(OperationType.SHOT_LOG)
    drop = queue.enqueue_operation(OperationType.SHOT_LOG)
    queue.update_operation_status(drop.id, OperationStatus.FAILED, error_message="bad payload")

    failed = queue.get_operations_by_status("failed")

    assert [op.id for op in failed] == [drop.id]
    assert failed[0].error_message == "bad payload"
    assert queue.delete_operation(drop.id) is True
    assert queue.delete_operation(drop.id) is False
    assert [op.id for op in queue.list_operations()] == [keep.id]


def test_concurrent_claims_have_a_single_winner() -> None:
    op = queue.enqueue_operation(OperationType.SHOT_LOG)
    start = threading.Barrier(4)
    results: list[bool] = []
    lock = threading.Lock()

    def claim() -> None:
        start.wait(timeout=5)
        won = queue.claim_operation(op.id, now_ms=1_000)
        with lock:
            results.append(won)

    threads = [threading.Thread(target=claim) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert sorted(results) == [False, False, False, True]
    stored = queue.get_operation(op.id)
    assert stored is not None
    assert stored.status == OperationStatus.SYNCING
