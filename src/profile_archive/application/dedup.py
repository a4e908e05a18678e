import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable

from src.config.logger_config import logger
from src.profile_archive.application.ports import DedupBackendPort
from src.profile_archive.domain.models import PublishOutcome, PublishResult


@dataclass(frozen=True)
class DedupLookup:
    fingerprint: str
    cid: str | None

    @property
    def hit(self) -> bool:
        return self.cid is not None


class DedupStore:
    """Process-wide fingerprint -> CID map with single-flight reservations.

    A MISS from `get_or_reserve` leaves the caller holding the per-fingerprint
    lock; every other caller for that fingerprint waits until the holder
    calls `commit` or `release`. Callers must always end a MISS with one of
    those two calls (`get_or_publish` does this for you).

    Backend reads run on a worker thread while the lock is held. Backend
    writes in `commit` run inline; the backend is expected to be a local
    store with single-row inserts.
    """

    def __init__(
        self,
        backend: DedupBackendPort | None = None,
        max_entries: int | None = None,
    ) -> None:
        self.backend = backend
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, fingerprint: str) -> str | None:
        return self._entries.get(fingerprint)

    async def get_or_reserve(self, fingerprint: str) -> DedupLookup:
        lock = self._locks.setdefault(fingerprint, asyncio.Lock())
        self._waiters[fingerprint] = self._waiters.get(fingerprint, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget(fingerprint)
            raise

        try:
            cid = await self._lookup(fingerprint)
        except BaseException:
            self._unlock(fingerprint)
            raise
        if cid is not None:
            self._unlock(fingerprint)
            return DedupLookup(fingerprint=fingerprint, cid=cid)
        return DedupLookup(fingerprint=fingerprint, cid=None)

    def commit(self, fingerprint: str, cid: str) -> None:
        if self.backend is not None:
            try:
                self.backend.put(fingerprint, cid)
            except Exception as exc:
                # The in-memory entry still prevents re-upload for this process.
                logger.warning("Failed to persist dedup entry {}: {}", fingerprint, exc)
        self._remember(fingerprint, cid)
        self._unlock(fingerprint)

    def release(self, fingerprint: str) -> None:
        self._unlock(fingerprint)

    async def get_or_publish(
        self,
        fingerprint: str,
        publish: Callable[[], Awaitable[PublishOutcome]],
    ) -> tuple[DedupLookup, PublishOutcome | None]:
        lookup = await self.get_or_reserve(fingerprint)
        if lookup.hit:
            return lookup, None

        committed = False
        try:
            outcome = await publish()
            if isinstance(outcome, PublishResult):
                self.commit(fingerprint, outcome.cid)
                committed = True
            return lookup, outcome
        finally:
            if not committed:
                self.release(fingerprint)

    async def _lookup(self, fingerprint: str) -> str | None:
        cid = self._entries.get(fingerprint)
        if cid is not None:
            self._entries.move_to_end(fingerprint)
            return cid
        if self.backend is None:
            return None
        try:
            cid = await asyncio.to_thread(self.backend.get, fingerprint)
        except Exception as exc:
            logger.warning("Dedup backend lookup failed for {}: {}", fingerprint, exc)
            return None
        if cid is not None:
            self._remember(fingerprint, cid)
        return cid

    def _remember(self, fingerprint: str, cid: str) -> None:
        self._entries[fingerprint] = cid
        self._entries.move_to_end(fingerprint)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted dedup entry {}", evicted)

    def _unlock(self, fingerprint: str) -> None:
        self._locks[fingerprint].release()
        self._forget(fingerprint)

    def _forget(self, fingerprint: str) -> None:
        remaining = self._waiters.get(fingerprint, 0) - 1
        if remaining > 0:
            self._waiters[fingerprint] = remaining
            return
        self._waiters.pop(fingerprint, None)
        self._locks.pop(fingerprint, None)
