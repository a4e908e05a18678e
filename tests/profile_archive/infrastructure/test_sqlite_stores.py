import asyncio
import threading
import unittest

from src.profile_archive.domain.errors import LedgerFailure
from src.profile_archive.domain.models import LedgerRecord
from src.profile_archive.infrastructure.dedup_sqlite import SQLiteDedupBackend
from src.profile_archive.infrastructure.ledger_sqlite import SQLiteLedgerRegistry
from tests.utils.tempdir import managed_temp_dir


def make_record(key: str = "@alice", cid: str = "bafy1") -> LedgerRecord:
    return LedgerRecord(
        key=key,
        profile_cid=cid,
        gateway_url=f"https://gw/{cid}",
        fingerprint="f" * 64,
        recorded_at="2026-01-01T00:00:00+00:00",
    )


class SQLiteDedupBackendTests(unittest.TestCase):
    def test_put_get_and_survives_reopen(self):
        with managed_temp_dir("dedup_backend") as tmp:
            db_path = tmp / "dedup.db"
            backend = SQLiteDedupBackend(db_path)
            try:
                self.assertIsNone(backend.get("fp"))
                backend.put("fp", "bafy1")
                self.assertEqual(backend.get("fp"), "bafy1")
            finally:
                backend.close()

            reopened = SQLiteDedupBackend(db_path)
            try:
                self.assertEqual(reopened.get("fp"), "bafy1")
                self.assertEqual(reopened.count(), 1)
            finally:
                reopened.close()

    def test_first_cid_for_a_fingerprint_is_kept(self):
        with managed_temp_dir("dedup_backend_conflict") as tmp:
            backend = SQLiteDedupBackend(tmp / "dedup.db")
            try:
                backend.put("fp", "bafy1")
                backend.put("fp", "bafy2")
                self.assertEqual(backend.get("fp"), "bafy1")
            finally:
                backend.close()


class SQLiteLedgerRegistryTests(unittest.IsolatedAsyncioTestCase):
    async def test_register_then_lookup(self):
        with managed_temp_dir("ledger_basic") as tmp:
            ledger = SQLiteLedgerRegistry(tmp / "ledger.db")
            try:
                self.assertIsNone(await ledger.lookup("@alice"))
                transaction = await ledger.register(make_record())
                self.assertEqual(len(transaction), 32)
                self.assertEqual(await ledger.lookup("@alice"), make_record())
            finally:
                ledger.close()

    async def test_register_again_points_key_at_latest_profile(self):
        with managed_temp_dir("ledger_update") as tmp:
            ledger = SQLiteLedgerRegistry(tmp / "ledger.db")
            try:
                first = await ledger.register(make_record(cid="bafy1"))
                second = await ledger.register(make_record(cid="bafy2"))
                self.assertNotEqual(first, second)
                record = await ledger.lookup("@alice")
                self.assertEqual(record.profile_cid, "bafy2")
            finally:
                ledger.close()

    async def test_closed_registry_raises_ledger_failure(self):
        with managed_temp_dir("ledger_closed") as tmp:
            ledger = SQLiteLedgerRegistry(tmp / "ledger.db")
            ledger.close()

            with self.assertRaises(LedgerFailure):
                await ledger.register(make_record())
            with self.assertRaises(LedgerFailure):
                await ledger.lookup("@alice")

    async def test_concurrent_registrations_run_off_the_event_loop(self):
        with managed_temp_dir("ledger_concurrent") as tmp:
            ledger = SQLiteLedgerRegistry(tmp / "ledger.db")
            loop_thread = threading.get_ident()
            query_threads = []
            original = ledger._register

            def recording_register(record):
                query_threads.append(threading.get_ident())
                return original(record)

            ledger._register = recording_register
            try:
                keys = [f"@user{i}" for i in range(10)]
                transactions = await asyncio.gather(*(ledger.register(make_record(key=key)) for key in keys))
                records = await asyncio.gather(*(ledger.lookup(key) for key in keys))
            finally:
                ledger.close()

            self.assertEqual(len(set(transactions)), 10)
            self.assertEqual([record.key for record in records], keys)
            self.assertNotIn(loop_thread, query_threads)

    def test_dedup_backend_accepts_calls_from_worker_threads(self):
        with managed_temp_dir("dedup_threads") as tmp:
            backend = SQLiteDedupBackend(tmp / "dedup.db")
            try:
                workers = [
                    threading.Thread(target=backend.put, args=(f"fp{i}", f"bafy{i}")) for i in range(5)
                ]
                for worker in workers:
                    worker.start()
                for worker in workers:
                    worker.join()
                self.assertEqual(backend.count(), 5)
            finally:
                backend.close()
