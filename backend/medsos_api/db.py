from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from .config import DB_PATH


def init_db(db_path: Path = DB_PATH) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS audit_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action TEXT NOT NULL,
                subject_id TEXT,
                ip_address TEXT,
                details TEXT,
                created_at TEXT NOT NULL
            )
            """
        )


@contextmanager
def get_conn(db_path: Path = DB_PATH):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def write_audit(db_path: Path, action: str, subject_id: str | None, ip_address: str, details: str = "") -> None:
    with get_conn(db_path) as conn:
        conn.execute(
            "INSERT INTO audit_logs (action,subject_id,ip_address,details,created_at) VALUES (?,?,?,?,?)",
            (action, subject_id, ip_address, details, now_iso()),
        )


def recent_audit(db_path: Path, limit: int) -> list[dict]:
    with get_conn(db_path) as conn:
        rows = conn.execute("SELECT * FROM audit_logs ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
    return [dict(r) for r in rows]
