from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from navcaddy.cognition.errors import NavCaddyError
from navcaddy.cognition.memory.decay import within_retention
from navcaddy.cognition.memory.miss_patterns import MissDirection, MissRecord, club_key
from navcaddy.nervous_system.paths import resolve_db_path

logger = logging.getLogger(__name__)


class MissLogError(NavCaddyError):
    pass


def record_miss(
    direction: MissDirection | str,
    *,
    club: str | None = None,
    pressure: bool = False,
    observed_at: datetime | None = None,
) -> MissRecord:
    """Store one manually logged shot outcome.

    Raises ValueError for an unknown direction.
    """
    record = MissRecord(
        direction=MissDirection(direction),
        observed_at=_utc(observed_at or datetime.now(timezone.utc)),
        club=club_key(club),
        pressure=bool(pressure),
    )
    with _session("record") as conn:
        conn.execute(
            """
            INSERT INTO miss_records (id, direction, club, pressure, observed_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                str(uuid.uuid4()),
                record.direction.value,
                record.club,
                1 if record.pressure else 0,
                record.observed_at.isoformat(),
            ),
        )
    logger.info("miss recorded direction=%s club=%s", record.direction.value, record.club)
    return record


def list_misses() -> list[MissRecord]:
    with _session("list") as conn:
        rows = conn.execute(
            "SELECT direction, club, pressure, observed_at FROM miss_records ORDER BY observed_at DESC, rowid DESC"
        ).fetchall()
    return [
        MissRecord(
            direction=MissDirection(row["direction"]),
            observed_at=datetime.fromisoformat(row["observed_at"]),
            club=row["club"],
            pressure=bool(row["pressure"]),
        )
        for row in rows
    ]


def prune_misses(now: datetime | None = None) -> int:
    """Delete misses that fell out of the retention window."""
    current = now or datetime.now(timezone.utc)
    with _session("prune") as conn:
        rows = conn.execute("SELECT id, observed_at FROM miss_records").fetchall()
        stale = [
            (row["id"],)
            for row in rows
            if _expired(datetime.fromisoformat(row["observed_at"]), current)
        ]
        conn.executemany("DELETE FROM miss_records WHERE id = ?", stale)
    if stale:
        logger.info("miss log pruned removed=%s", len(stale))
    return len(stale)


def _expired(observed_at: datetime, now: datetime) -> bool:
    try:
        return not within_retention(observed_at, now)
    except ValueError:
        # logged after `now`; keep it
        return False


@contextmanager
def _session(action: str) -> Iterator[sqlite3.Connection]:
    try:
        conn = _connect()
    except sqlite3.Error as exc:
        raise MissLogError(f"miss log {action} failed: {exc}") from exc
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise MissLogError(f"miss log {action} failed: {exc}") from exc
    finally:
        conn.close()


def _connect() -> sqlite3.Connection:
    path = resolve_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
