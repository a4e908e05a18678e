import asyncio
from dataclasses import dataclass

from src.config.logger_config import logger
from src.profile_archive.application.dedup import DedupStore
from src.profile_archive.application.ports import PublisherPort, StorageNetworkPort
from src.profile_archive.domain.canonical import CanonicalForm
from src.profile_archive.domain.errors import StorageNetworkError
from src.profile_archive.domain.models import PublishOutcome, PublishResult, UploadFailure
from src.profile_archive.domain.rules import build_gateway_url


@dataclass(frozen=True)
class PublisherConfig:
    gateway_base_url: str = "https://gateway.pinata.cloud/ipfs"
    retries: int = 0
    retry_backoff_seconds: float = 2.0


class Publisher(PublisherPort):
    """Submit canonical bytes to the storage network.

    Always resolves to a PublishResult or an UploadFailure; nothing raised by
    the network adapter crosses this boundary.
    """

    def __init__(self, network: StorageNetworkPort, config: PublisherConfig | None = None) -> None:
        self.network = network
        self.config = config or PublisherConfig()

    async def publish(self, form: CanonicalForm, label: str) -> PublishOutcome:
        attempts = self.config.retries + 1
        cause = "no attempt made"
        for attempt in range(1, attempts + 1):
            try:
                cid = await self.network.submit(form.payload, label)
            except StorageNetworkError as exc:
                cause = str(exc)
            except Exception as exc:
                logger.exception("Unexpected error while publishing {}: {}", label, exc)
                cause = f"{type(exc).__name__}: {exc}"
            else:
                logger.info("Published {} as {}", label, cid)
                return PublishResult(
                    cid=cid,
                    gateway_url=build_gateway_url(cid, self.config.gateway_base_url),
                    fingerprint=form.fingerprint,
                )

            if attempt < attempts:
                wait_time = self.config.retry_backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Upload of {} failed ({}). Attempt {}/{}, retrying in {}s...",
                    label,
                    cause,
                    attempt,
                    attempts,
                    wait_time,
                )
                await asyncio.sleep(wait_time)

        logger.error("Upload of {} failed after {} attempt(s): {}", label, attempts, cause)
        return UploadFailure(label=label, cause=cause, fingerprint=form.fingerprint)


class DedupPublisher(PublisherPort):
    """Same contract as Publisher, but content already published is never resubmitted."""

    def __init__(self, publisher: PublisherPort, store: DedupStore, gateway_base_url: str) -> None:
        self.publisher = publisher
        self.store = store
        self.gateway_base_url = gateway_base_url

    async def publish(self, form: CanonicalForm, label: str) -> PublishOutcome:
        lookup, outcome = await self.store.get_or_publish(
            form.fingerprint,
            lambda: self.publisher.publish(form, label),
        )
        if lookup.hit:
            logger.info("Duplicate detected ({}). Returning existing CID {}", label, lookup.cid)
            return PublishResult(
                cid=lookup.cid,
                gateway_url=build_gateway_url(lookup.cid, self.gateway_base_url),
                fingerprint=form.fingerprint,
                reused=True,
            )
        return outcome
