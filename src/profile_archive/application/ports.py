from contextlib import AbstractAsyncContextManager
from typing import Protocol, Sequence, runtime_checkable

from src.profile_archive.domain.canonical import CanonicalForm
from src.profile_archive.domain.models import LedgerRecord, PublishOutcome


@runtime_checkable
class SnapshotPort(Protocol):
    url: str

    def query_text(self, selector: str | None = None) -> str | None: ...
    """Trimmed text of the first match, or None when nothing matches. No selector reads the element itself."""

    def query_attr(self, selector: str, attr: str) -> str | None: ...
    """Attribute value of the first match carrying it, or None."""

    def query_all(self, selector: str) -> Sequence["SnapshotPort"]: ...
    """Every match in document order, each usable as a nested snapshot."""

    async def screenshot(self) -> bytes | None: ...


@runtime_checkable
class SnapshotSourcePort(Protocol):
    def acquire(self, url: str) -> AbstractAsyncContextManager[SnapshotPort]: ...
    """Render `url` and yield a snapshot; the browser is released when the context exits."""


@runtime_checkable
class StorageNetworkPort(Protocol):
    async def submit(self, payload: bytes, label: str) -> str: ...
    """Submit canonical bytes and return the content identifier. Raises StorageNetworkError."""


@runtime_checkable
class PublisherPort(Protocol):
    async def publish(self, form: CanonicalForm, label: str) -> PublishOutcome: ...


@runtime_checkable
class DedupBackendPort(Protocol):
    def get(self, fingerprint: str) -> str | None: ...

    def put(self, fingerprint: str, cid: str) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class LedgerPort(Protocol):
    async def register(self, record: LedgerRecord) -> str: ...
    """Record a profile pointer and return a transaction handle. Raises LedgerFailure."""

    async def lookup(self, key: str) -> LedgerRecord | None: ...


@runtime_checkable
class DiagnosticSinkPort(Protocol):
    async def observe(self, url: str, snapshot: SnapshotPort) -> None: ...
