from datetime import datetime, timezone
from typing import Protocol, Sequence, runtime_checkable

from src.config.logger_config import logger
from src.profile_archive.application.contracts import ArchiveRun, LedgerOutcome
from src.profile_archive.application.ports import LedgerPort, PublisherPort
from src.profile_archive.domain.canonical import canonicalize
from src.profile_archive.domain.errors import LedgerFailure
from src.profile_archive.domain.models import LedgerRecord, ListingRef, PublishResult, UploadFailure
from src.profile_archive.domain.rules import ledger_key, listing_label, profile_label


@runtime_checkable
class ArchiveStage(Protocol):
    name: str

    async def run(self, run: ArchiveRun) -> None: ...


class PublishListingsStage(ArchiveStage):
    name = "publish_listings"

    def __init__(self, publisher: PublisherPort) -> None:
        self.publisher = publisher

    async def run(self, run: ArchiveRun) -> None:
        for listing in run.profile.listings:
            form = canonicalize(listing.to_dict())
            outcome = await self.publisher.publish(form, listing_label(listing.title))
            if isinstance(outcome, UploadFailure):
                logger.warning("Skipping listing '{}': {}", listing.title, outcome.cause)
                run.skipped_listings.append(listing.title)
                continue
            run.listing_refs.append(
                ListingRef(title=listing.title, cid=outcome.cid, gateway_url=outcome.gateway_url)
            )


class PublishProfileStage(ArchiveStage):
    name = "publish_profile"

    def __init__(self, publisher: PublisherPort) -> None:
        self.publisher = publisher

    async def run(self, run: ArchiveRun) -> None:
        document = run.profile.to_document(run.listing_refs)
        form = canonicalize(document)
        run.profile_outcome = await self.publisher.publish(form, profile_label(run.profile))


class RegisterLedgerStage(ArchiveStage):
    name = "register_ledger"

    def __init__(self, ledger: LedgerPort) -> None:
        self.ledger = ledger

    async def run(self, run: ArchiveRun) -> None:
        if not isinstance(run.profile_outcome, PublishResult):
            return
        key = ledger_key(run.profile, run.profile_url)
        record = LedgerRecord(
            key=key,
            profile_cid=run.profile_outcome.cid,
            gateway_url=run.profile_outcome.gateway_url,
            fingerprint=run.profile_outcome.fingerprint,
            recorded_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            transaction = await self.ledger.register(record)
        except LedgerFailure as exc:
            logger.error("Ledger registration failed for {}: {}", key, exc)
            run.ledger = LedgerOutcome(key=key, error=str(exc))
            return
        logger.info("Registered {} -> {} (tx {})", key, record.profile_cid, transaction)
        run.ledger = LedgerOutcome(key=key, transaction=transaction)


def build_stages(publisher: PublisherPort, ledger: LedgerPort | None = None) -> Sequence[ArchiveStage]:
    stages: list[ArchiveStage] = [PublishListingsStage(publisher), PublishProfileStage(publisher)]
    if ledger is not None:
        stages.append(RegisterLedgerStage(ledger))
    return stages
