"""SQLite request store for pending requests that survive restarts."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from loguru import logger

from pgpvalidation.application.nonce import nonce_to_string
from pgpvalidation.domain.entities.request_info import RequestInfo
from pgpvalidation.infrastructure.stores.records import RequestRecord


class SQLiteRequestStore:
    """One row per pending request, keyed by the hex-encoded nonce."""

    def __init__(self, db_path: str | Path = "./data/requests.db"):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS requests (
                    nonce TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    record_json TEXT NOT NULL
                );
            """)
            logger.info(f"SQLite request store initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, nonce: bytes) -> Optional[RequestInfo]:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT record_json FROM requests WHERE nonce = ?",
                (nonce_to_string(nonce),),
            ).fetchone()
        if row is None:
            return None
        return RequestRecord.model_validate_json(row["record_json"]).to_request()

    def set(self, nonce: bytes, request: RequestInfo) -> None:
        record = RequestRecord.from_request(request)
        with self._lock, self._connection() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO requests (nonce, email, created_at, record_json)
                   VALUES (?, ?, ?, ?)""",
                (nonce_to_string(nonce), request.email, request.timestamp.isoformat(), record.model_dump_json()),
            )

    def delete(self, nonce: bytes) -> None:
        with self._lock, self._connection() as conn:
            conn.execute("DELETE FROM requests WHERE nonce = ?", (nonce_to_string(nonce),))

    def count(self) -> int:
        with self._lock, self._connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM requests").fetchone()[0]
