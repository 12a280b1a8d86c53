from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from navcaddy.cognition.errors import QueueError
from navcaddy.config.settings import get_sync_max_retries
from navcaddy.nervous_system.paths import resolve_db_path

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    SHOT_LOG = "shot_log"
    ROUND_SYNC = "round_sync"
    MISS_PATTERN_SYNC = "miss_pattern_sync"


class OperationStatus(str, Enum):
    PENDING = "pending"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


@dataclass(frozen=True)
class QueuedOperation:
    id: str
    type: OperationType
    payload: dict[str, Any]
    enqueued_at: int
    status: OperationStatus = OperationStatus.PENDING
    retry_count: int = 0
    last_attempt_at: int | None = None
    error_message: str | None = None
    created_at: str = field(default="", compare=False)
    updated_at: str = field(default="", compare=False)

    def can_retry(self, max_retries: int) -> bool:
        return self.retry_count < max_retries

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "payload": self.payload,
            "enqueued_at": self.enqueued_at,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "last_attempt_at": self.last_attempt_at,
            "error_message": self.error_message,
        }


_COLUMNS = """
  id,
  type,
  payload_json,
  enqueued_at,
  status,
  retry_count,
  last_attempt_at,
  error_message,
  created_at,
  updated_at
"""


def enqueue_operation(
    op_type: OperationType | str,
    payload: dict[str, Any] | None = None,
    *,
    enqueued_at: int | None = None,
) -> QueuedOperation:
    kind = OperationType(op_type)
    op_id = str(uuid.uuid4())
    now = _now_iso()
    enqueued = int(enqueued_at) if enqueued_at is not None else _now_ms()
    with _session("enqueue") as conn:
        conn.execute(
            f"""
            INSERT INTO sync_queue ({_COLUMNS})
            VALUES (?, ?, ?, ?, 'pending', 0, NULL, NULL, ?, ?)
            """,
            (op_id, kind.value, _to_json(payload or {}), enqueued, now, now),
        )
    logger.info("queue enqueued id=%s type=%s", op_id, kind.value)
    return QueuedOperation(
        id=op_id,
        type=kind,
        payload=dict(payload or {}),
        enqueued_at=enqueued,
        created_at=now,
        updated_at=now,
    )


def get_operation(op_id: str) -> QueuedOperation | None:
    with _session("get") as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM sync_queue WHERE id = ?",
            (str(op_id or "").strip(),),
        ).fetchone()
    return _row_to_operation(row) if row else None


def get_pending_operations(limit: int | None = None) -> list[QueuedOperation]:
    return get_operations_by_status(OperationStatus.PENDING, limit=limit)


def get_operations_by_status(
    status: OperationStatus | str,
    *,
    limit: int | None = None,
) -> list[QueuedOperation]:
    query = f"SELECT {_COLUMNS} FROM sync_queue WHERE status = ? ORDER BY enqueued_at ASC, rowid ASC"
    params: list[Any] = [OperationStatus(status).value]
    if limit is not None:
        query += " LIMIT ?"
        params.append(max(int(limit), 0))
    with _session("list") as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_operation(row) for row in rows]


def list_operations() -> list[QueuedOperation]:
    with _session("list") as conn:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM sync_queue ORDER BY enqueued_at ASC, rowid ASC"
        ).fetchall()
    return [_row_to_operation(row) for row in rows]


def get_pending_count() -> int:
    with _session("count") as conn:
        row = conn.execute("SELECT COUNT(*) FROM sync_queue WHERE status = 'pending'").fetchone()
    return int(row[0]) if row else 0


def claim_operation(op_id: str, *, now_ms: int | None = None) -> bool:
    """Atomically move a pending operation to syncing; only one caller wins."""
    with _session("claim") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET status = 'syncing', last_attempt_at = ?, updated_at = ?
            WHERE id = ? AND status = 'pending'
            """,
            (now_ms if now_ms is not None else _now_ms(), _now_iso(), op_id),
        )
        changed = cur.rowcount
    return changed > 0


def mark_synced(op_id: str) -> bool:
    with _session("mark_synced") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET status = 'synced', error_message = NULL, updated_at = ?
            WHERE id = ? AND status = 'syncing'
            """,
            (_now_iso(), op_id),
        )
        changed = cur.rowcount
    return changed > 0


def record_failed_attempt(
    op_id: str,
    error: str,
    *,
    max_retries: int | None = None,
) -> QueuedOperation:
    """Count a failed sync attempt.

    The operation goes back to pending, or to failed once the retry count
    reaches the cap.
    """
    cap = max_retries if max_retries is not None else get_sync_max_retries()
    with _session("record_failure") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET retry_count = retry_count + 1,
                status = CASE WHEN retry_count + 1 >= ? THEN 'failed' ELSE 'pending' END,
                error_message = ?,
                updated_at = ?
            WHERE id = ? AND status = 'syncing'
            """,
            (cap, _none_if_blank(error), _now_iso(), op_id),
        )
        if cur.rowcount <= 0:
            raise QueueError("operation is not being synced", operation_id=op_id)
        row = conn.execute(f"SELECT {_COLUMNS} FROM sync_queue WHERE id = ?", (op_id,)).fetchone()
    operation = _row_to_operation(row)
    if operation.status == OperationStatus.FAILED:
        logger.warning("queue operation failed id=%s retries=%s", op_id, operation.retry_count)
    return operation


def update_operation_status(
    op_id: str,
    status: OperationStatus | str,
    *,
    error_message: str | None = None,
) -> bool:
    with _session("update_status") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET status = ?, error_message = COALESCE(?, error_message), updated_at = ?
            WHERE id = ?
            """,
            (OperationStatus(status).value, _none_if_blank(error_message), _now_iso(), op_id),
        )
        changed = cur.rowcount
    return changed > 0


def release_claim(op_id: str) -> bool:
    """Hand a single syncing operation back to pending without counting a retry."""
    with _session("release_claim") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET status = 'pending', updated_at = ?
            WHERE id = ? AND status = 'syncing'
            """,
            (_now_iso(), op_id),
        )
        changed = cur.rowcount
    return changed > 0


def requeue_failed() -> int:
    """Give failed operations a fresh set of retries."""
    with _session("requeue") as conn:
        cur = conn.execute(
            """
            UPDATE sync_queue
            SET status = 'pending', retry_count = 0, last_attempt_at = NULL, updated_at = ?
            WHERE status = 'failed'
            """,
            (_now_iso(),),
        )
        changed = cur.rowcount
    return changed


def release_stale_claims() -> int:
    """Return operations stuck in syncing (e.g. after a crash) to pending."""
    with _session("release") as conn:
        cur = conn.execute(
            "UPDATE sync_queue SET status = 'pending', updated_at = ? WHERE status = 'syncing'",
            (_now_iso(),),
        )
        changed = cur.rowcount
    return changed


def delete_operation(op_id: str) -> bool:
    with _session("delete") as conn:
        cur = conn.execute("DELETE FROM sync_queue WHERE id = ?", (op_id,))
        changed = cur.rowcount
    return changed > 0


def delete_synced() -> int:
    with _session("delete_synced") as conn:
        cur = conn.execute("DELETE FROM sync_queue WHERE status = 'synced'")
        removed = cur.rowcount
    if removed:
        logger.info("queue cleanup removed=%s", removed)
    return removed


@contextmanager
def _session(action: str) -> Iterator[sqlite3.Connection]:
    try:
        conn = _connect()
    except sqlite3.Error as exc:
        raise QueueError(f"queue {action} failed: {exc}") from exc
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise QueueError(f"queue {action} failed: {exc}") from exc
    finally:
        conn.close()


def _connect() -> sqlite3.Connection:
    path = resolve_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def _row_to_operation(row: sqlite3.Row) -> QueuedOperation:
    return QueuedOperation(
        id=str(row["id"]),
        type=OperationType(row["type"]),
        payload=_from_json(row["payload_json"]),
        enqueued_at=int(row["enqueued_at"]),
        status=OperationStatus(row["status"]),
        retry_count=int(row["retry_count"] or 0),
        last_attempt_at=int(row["last_attempt_at"]) if row["last_attempt_at"] is not None else None,
        error_message=row["error_message"],
        created_at=str(row["created_at"] or ""),
        updated_at=str(row["updated_at"] or ""),
    )


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _from_json(raw: Any) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("queue payload is not valid JSON")
        return {}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _none_if_blank(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None
