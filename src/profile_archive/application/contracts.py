from dataclasses import dataclass, field
from typing import Any

from src.profile_archive.domain.models import ListingRef, ProfileRecord, PublishOutcome, PublishResult


@dataclass(frozen=True)
class LedgerOutcome:
    key: str
    transaction: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"key": self.key, "status": "registered", "transaction": self.transaction}
        return {"key": self.key, "status": "failed", "error": self.error}


@dataclass
class ArchiveRun:
    """Mutable state threaded through the pipeline stages for one request."""

    profile_url: str
    profile: ProfileRecord
    listing_refs: list[ListingRef] = field(default_factory=list)
    skipped_listings: list[str] = field(default_factory=list)
    profile_outcome: PublishOutcome | None = None
    ledger: LedgerOutcome | None = None


@dataclass(frozen=True)
class ArchiveResult:
    profile_url: str
    profile: PublishResult
    listings: tuple[ListingRef, ...]
    skipped_listings: tuple[str, ...] = ()
    ledger: LedgerOutcome | None = None

    def to_response(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "profileCID": self.profile.cid,
            "profileGatewayURL": self.profile.gateway_url,
            "listings": [ref.to_dict() for ref in self.listings],
        }
        if self.ledger is not None:
            payload["ledger"] = self.ledger.to_dict()
        return payload
