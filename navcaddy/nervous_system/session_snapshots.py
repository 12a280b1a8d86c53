from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone

from navcaddy.cognition.errors import NavCaddyError
from navcaddy.nervous_system.paths import resolve_db_path
from navcaddy.session.context import SessionContext

logger = logging.getLogger(__name__)


class SnapshotError(NavCaddyError):
    pass


def save_session_snapshot(session_id: str, context: SessionContext) -> None:
    key = _session_key(session_id)
    payload = json.dumps(context.to_dict(), ensure_ascii=False, sort_keys=True)
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO session_snapshots (session_id, context_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(session_id) DO UPDATE SET
              context_json = excluded.context_json,
              updated_at = excluded.updated_at
            """,
            (key, payload, _now_iso()),
        )
        conn.commit()


def load_session_snapshot(session_id: str) -> SessionContext | None:
    with _connect() as conn:
        row = conn.execute(
            "SELECT context_json FROM session_snapshots WHERE session_id = ?",
            (_session_key(session_id),),
        ).fetchone()
    if not row:
        return None
    try:
        raw = json.loads(row["context_json"])
        return SessionContext.from_dict(raw if isinstance(raw, dict) else None)
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("discarding unreadable session snapshot session=%s error=%s", session_id, exc)
        return None


def delete_session_snapshot(session_id: str) -> bool:
    with _connect() as conn:
        cur = conn.execute(
            "DELETE FROM session_snapshots WHERE session_id = ?",
            (_session_key(session_id),),
        )
        conn.commit()
        deleted = cur.rowcount
    return deleted > 0


def _session_key(session_id: str) -> str:
    key = str(session_id or "").strip()
    if not key:
        raise SnapshotError("session_id is required")
    return key


def _connect() -> sqlite3.Connection:
    path = resolve_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
