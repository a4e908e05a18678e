from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

import aiohttp

from src.config.logger_config import logger
from src.config.settings import Settings
from src.profile_archive.application.contracts import ArchiveResult
from src.profile_archive.application.dedup import DedupStore
from src.profile_archive.application.ports import PublisherPort, SnapshotSourcePort, StorageNetworkPort
from src.profile_archive.application.publisher import DedupPublisher, Publisher, PublisherConfig
from src.profile_archive.application.stages import build_stages
from src.profile_archive.application.workflows.archive_profile import ArchiveProfileWorkflow
from src.profile_archive.domain.rules import validate_profile_url
from src.profile_archive.infrastructure.dedup_sqlite import SQLiteDedupBackend
from src.profile_archive.infrastructure.diagnostic_sink import ScreenshotDiagnosticSink
from src.profile_archive.infrastructure.journal import PinEventJournal
from src.profile_archive.infrastructure.ipfs_client import IpfsHttpClient
from src.profile_archive.infrastructure.ledger_sqlite import SQLiteLedgerRegistry
from src.profile_archive.infrastructure.pinata_client import PinataClient
from src.profile_archive.infrastructure.playwright_source import BrowserConfig, PlaywrightSnapshotSource


@dataclass
class ArchiveComponents:
    workflow: ArchiveProfileWorkflow
    dedup_store: DedupStore | None = None
    dedup_backend: SQLiteDedupBackend | None = None
    ledger: SQLiteLedgerRegistry | None = None
    journal: PinEventJournal | None = None

    def close(self) -> None:
        try:
            if self.journal is not None:
                self.journal.close()
        finally:
            try:
                if self.dedup_backend is not None:
                    self.dedup_backend.close()
            finally:
                if self.ledger is not None:
                    self.ledger.close()


def build_storage_network(
    settings: Settings,
    session: aiohttp.ClientSession,
    journal: PinEventJournal | None = None,
) -> StorageNetworkPort:
    if settings.storage_backend == "ipfs":
        return IpfsHttpClient(
            session,
            project_id=settings.infura_project_id,
            project_secret=settings.infura_project_secret,
            base_url=settings.ipfs_api_url,
            timeout_seconds=settings.publish_timeout_seconds,
            journal=journal,
        )
    return PinataClient(
        session,
        api_key=settings.pinata_api_key,
        secret_api_key=settings.pinata_secret_api_key,
        base_url=settings.pinata_api_url,
        timeout_seconds=settings.publish_timeout_seconds,
        journal=journal,
    )


def build_components(
    settings: Settings,
    session: aiohttp.ClientSession,
    *,
    snapshot_source: SnapshotSourcePort | None = None,
    network: StorageNetworkPort | None = None,
) -> ArchiveComponents:
    journal = None
    if settings.pin_events_dir is not None and network is None:
        journal = PinEventJournal(settings.pin_events_dir, run_id=_build_run_id())
    network = network or build_storage_network(settings, session, journal)

    publisher: PublisherPort = Publisher(
        network,
        PublisherConfig(
            gateway_base_url=settings.gateway_base_url,
            retries=settings.publish_retries,
        ),
    )
    dedup_store = None
    dedup_backend = None
    if settings.dedup_enabled:
        if settings.dedup_db_path is not None:
            dedup_backend = SQLiteDedupBackend(settings.dedup_db_path)
        dedup_store = DedupStore(backend=dedup_backend, max_entries=settings.dedup_max_entries)
        publisher = DedupPublisher(publisher, dedup_store, gateway_base_url=settings.gateway_base_url)

    ledger = SQLiteLedgerRegistry(settings.ledger_db_path) if settings.ledger_enabled else None
    diagnostic_sink = ScreenshotDiagnosticSink(settings.diagnostics_dir) if settings.diagnostics_dir else None

    workflow = ArchiveProfileWorkflow(
        snapshot_source=snapshot_source
        or PlaywrightSnapshotSource(
            BrowserConfig(
                headless=settings.browser_headless,
                nav_timeout_seconds=settings.nav_timeout_seconds,
                ready_selector=settings.ready_selector or None,
                ready_timeout_seconds=settings.ready_timeout_seconds,
                settle_seconds=settings.settle_seconds,
            )
        ),
        stages=build_stages(publisher, ledger=ledger),
        diagnostic_sink=diagnostic_sink,
    )
    logger.info(
        "Archive pipeline ready: storage_backend={}, dedup_enabled={}, dedup_db_path={}, ledger_enabled={}, publish_retries={}",
        settings.storage_backend,
        settings.dedup_enabled,
        settings.dedup_db_path,
        settings.ledger_enabled,
        settings.publish_retries,
    )
    return ArchiveComponents(
        workflow=workflow,
        dedup_store=dedup_store,
        dedup_backend=dedup_backend,
        ledger=ledger,
        journal=journal,
    )


async def run_archive_async(profile_url: str, *, settings: Settings | None = None) -> ArchiveResult:
    url = validate_profile_url(profile_url)
    settings = settings or Settings.from_env()
    async with aiohttp.ClientSession() as session:
        components = build_components(settings, session)
        try:
            return await components.workflow.run(url)
        finally:
            components.close()


def run_archive(profile_url: str, *, settings: Settings | None = None) -> ArchiveResult:
    return asyncio.run(run_archive_async(profile_url, settings=settings))


def _build_run_id() -> str:
    return datetime.now(timezone.utc).strftime("archive_%Y%m%dT%H%M%S%fZ")
