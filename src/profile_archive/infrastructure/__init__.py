"""Infrastructure adapters for profile archiving."""

from src.profile_archive.infrastructure.dedup_sqlite import SQLiteDedupBackend
from src.profile_archive.infrastructure.diagnostic_sink import ScreenshotDiagnosticSink
from src.profile_archive.infrastructure.journal import PinEventJournal
from src.profile_archive.infrastructure.html_snapshot import HtmlSnapshot
from src.profile_archive.infrastructure.ipfs_client import IpfsHttpClient
from src.profile_archive.infrastructure.ledger_sqlite import SQLiteLedgerRegistry
from src.profile_archive.infrastructure.pinata_client import PinataClient

__all__ = [
    "HtmlSnapshot",
    "IpfsHttpClient",
    "PinataClient",
    "PinEventJournal",
    "ScreenshotDiagnosticSink",
    "SQLiteDedupBackend",
    "SQLiteLedgerRegistry",
]
