import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from src.profile_archive.application.ports import DedupBackendPort


class SQLiteDedupBackend(DedupBackendPort):
    """Durable fingerprint -> CID map so dedup survives restarts.

    Safe to call from worker threads; every statement holds the connection lock.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.Lock()
        try:
            self.init_schema()
        except Exception:
            self.conn.close()
            raise

    def init_schema(self) -> None:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS published_content (
                fingerprint TEXT PRIMARY KEY,
                cid TEXT NOT NULL,
                first_published_at TEXT NOT NULL
            )
            """
        )
        self.conn.commit()

    def get(self, fingerprint: str) -> str | None:
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("SELECT cid FROM published_content WHERE fingerprint = ?", (fingerprint,))
            row = cursor.fetchone()
        return str(row[0]) if row else None

    def put(self, fingerprint: str, cid: str) -> None:
        with self._lock:
            self._put(fingerprint, cid)

    def _put(self, fingerprint: str, cid: str) -> None:
        cursor = self.conn.cursor()
        try:
            # First writer wins; an existing entry is never overwritten.
            cursor.execute(
                """
                INSERT INTO published_content (fingerprint, cid, first_published_at)
                VALUES (?, ?, ?)
                ON CONFLICT(fingerprint) DO NOTHING
                """,
                (fingerprint, cid, datetime.now(timezone.utc).isoformat()),
            )
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    def count(self) -> int:
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM published_content")
            return int(cursor.fetchone()[0])

    def close(self) -> None:
        self.conn.close()
