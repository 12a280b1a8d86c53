"""Apply schema to the NavCaddy SQLite database."""

from __future__ import annotations

import sqlite3
import sys
from pathlib import Path

from navcaddy.nervous_system.paths import resolve_db_path


def default_db_path() -> Path:
    return resolve_db_path()


def apply_schema(db_path: Path) -> None:
    schema_path = Path(__file__).resolve().parent / "schema.sql"
    schema_sql = schema_path.read_text(encoding="utf-8")
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(schema_sql)
        _ensure_sync_queue_columns(conn)
        conn.commit()
    finally:
        conn.close()


def main() -> None:
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else default_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    apply_schema(db_path)
    print(f"Applied schema to {db_path}")


def _ensure_sync_queue_columns(conn: sqlite3.Connection) -> None:
    columns = {
        "last_attempt_at": "INTEGER",
        "error_message": "TEXT",
    }
    existing = {row[1] for row in conn.execute("PRAGMA table_info(sync_queue)").fetchall()}
    for name, definition in columns.items():
        if name in existing:
            continue
        conn.execute(f"ALTER TABLE sync_queue ADD COLUMN {name} {definition}")


if __name__ == "__main__":
    main()
