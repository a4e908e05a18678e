import asyncio
import sqlite3
import threading
import uuid
from contextlib import suppress
from pathlib import Path

from src.profile_archive.application.ports import LedgerPort
from src.profile_archive.domain.errors import LedgerFailure
from src.profile_archive.domain.models import LedgerRecord


class SQLiteLedgerRegistry(LedgerPort):
    """Key/value identity registry: profile key -> latest published profile CID.

    Queries run on a worker thread; the connection is shared and guarded by a lock.
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
            CREATE TABLE IF NOT EXISTS ledger_records (
                record_key TEXT PRIMARY KEY,
                profile_cid TEXT NOT NULL,
                gateway_url TEXT NOT NULL,
                fingerprint TEXT NOT NULL,
                transaction_id TEXT NOT NULL,
                recorded_at TEXT NOT NULL
            )
            """
        )
        self.conn.commit()

    async def register(self, record: LedgerRecord) -> str:
        return await asyncio.to_thread(self._serialized, self._register, record)

    async def lookup(self, key: str) -> LedgerRecord | None:
        return await asyncio.to_thread(self._serialized, self._lookup, key)

    def _serialized(self, fn, *args):
        with self._lock:
            return fn(*args)

    def _register(self, record: LedgerRecord) -> str:
        transaction_id = uuid.uuid4().hex
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO ledger_records (record_key, profile_cid, gateway_url, fingerprint, transaction_id, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(record_key) DO UPDATE SET
                    profile_cid = excluded.profile_cid,
                    gateway_url = excluded.gateway_url,
                    fingerprint = excluded.fingerprint,
                    transaction_id = excluded.transaction_id,
                    recorded_at = excluded.recorded_at
                """,
                (
                    record.key,
                    record.profile_cid,
                    record.gateway_url,
                    record.fingerprint,
                    transaction_id,
                    record.recorded_at,
                ),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            with suppress(sqlite3.Error):
                self.conn.rollback()
            raise LedgerFailure(f"register failed for {record.key}: {exc}") from exc
        return transaction_id

    def _lookup(self, key: str) -> LedgerRecord | None:
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT record_key, profile_cid, gateway_url, fingerprint, recorded_at
                FROM ledger_records
                WHERE record_key = ?
                """,
                (key,),
            )
            row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise LedgerFailure(f"lookup failed for {key}: {exc}") from exc
        if not row:
            return None
        return LedgerRecord(
            key=str(row[0]),
            profile_cid=str(row[1]),
            gateway_url=str(row[2]),
            fingerprint=str(row[3]),
            recorded_at=str(row[4]),
        )

    def close(self) -> None:
        self.conn.close()
