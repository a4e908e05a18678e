from typing import Sequence

from src.config.logger_config import logger
from src.profile_archive.application.contracts import ArchiveResult, ArchiveRun
from src.profile_archive.application.extractor import ProfileExtractor
from src.profile_archive.application.ports import DiagnosticSinkPort, SnapshotPort, SnapshotSourcePort
from src.profile_archive.application.stages import ArchiveStage, PublishProfileStage
from src.profile_archive.domain.errors import PublishFailure, ScrapeFailure
from src.profile_archive.domain.models import ProfileRecord, PublishResult, UploadFailure
from src.profile_archive.domain.rules import profile_label


class ArchiveProfileWorkflow:
    def __init__(
        self,
        snapshot_source: SnapshotSourcePort,
        stages: Sequence[ArchiveStage],
        extractor: ProfileExtractor | None = None,
        diagnostic_sink: DiagnosticSinkPort | None = None,
    ) -> None:
        if not any(isinstance(stage, PublishProfileStage) for stage in stages):
            raise ValueError("Archive pipeline needs a PublishProfileStage")
        self.snapshot_source = snapshot_source
        self.stages = list(stages)
        self.extractor = extractor or ProfileExtractor()
        self.diagnostic_sink = diagnostic_sink

    async def run(self, profile_url: str) -> ArchiveResult:
        logger.info("Archiving profile: {}", profile_url)
        profile = await self._scrape(profile_url)
        logger.info(
            "Extracted profile: name={}, handle={}, listings={}, portfolio={}",
            profile.name,
            profile.handle,
            len(profile.listings),
            len(profile.portfolio),
        )

        run = ArchiveRun(profile_url=profile_url, profile=profile)
        for stage in self.stages:
            await stage.run(run)
            # Only the root record is fatal; listing failures were already folded into the run.
            if isinstance(run.profile_outcome, UploadFailure):
                raise PublishFailure(run.profile_outcome.label, run.profile_outcome.cause)

        if not isinstance(run.profile_outcome, PublishResult):
            raise PublishFailure(profile_label(profile), "profile record was not published")

        logger.info(
            "Archive complete: profile_cid={}, listings_published={}, listings_skipped={}",
            run.profile_outcome.cid,
            len(run.listing_refs),
            len(run.skipped_listings),
        )
        return ArchiveResult(
            profile_url=profile_url,
            profile=run.profile_outcome,
            listings=tuple(run.listing_refs),
            skipped_listings=tuple(run.skipped_listings),
            ledger=run.ledger,
        )

    async def _scrape(self, profile_url: str) -> ProfileRecord:
        try:
            async with self.snapshot_source.acquire(profile_url) as snapshot:
                await self._observe(profile_url, snapshot)
                return self.extractor.extract(snapshot)
        except ScrapeFailure:
            raise
        except Exception as exc:
            logger.exception("Scraping error for {}: {}", profile_url, exc)
            raise ScrapeFailure(profile_url, f"{type(exc).__name__}: {exc}") from exc

    async def _observe(self, profile_url: str, snapshot: SnapshotPort) -> None:
        if self.diagnostic_sink is None:
            return
        try:
            await self.diagnostic_sink.observe(profile_url, snapshot)
        except Exception as exc:
            logger.warning("Diagnostic sink failed for {}: {}", profile_url, exc)
