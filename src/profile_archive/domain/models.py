from dataclasses import dataclass, field
from typing import Any, Sequence

SENTINEL = "N/A"


@dataclass(frozen=True)
class ListingRecord:
    title: str
    link: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
        }


@dataclass(frozen=True)
class PortfolioItem:
    title: str
    image: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "image": self.image,
        }


@dataclass(frozen=True)
class ListingRef:
    title: str
    cid: str
    gateway_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "cid": self.cid,
            "gatewayUrl": self.gateway_url,
        }


@dataclass(frozen=True)
class ProfileRecord:
    name: str
    handle: str
    heading: str
    rating_count: str
    skills: tuple[str, ...] = field(default_factory=tuple)
    portfolio: tuple[PortfolioItem, ...] = field(default_factory=tuple)
    listings: tuple[ListingRecord, ...] = field(default_factory=tuple)

    def to_document(self, listing_refs: Sequence[ListingRef]) -> dict[str, Any]:
        """Build the published form: listing bodies are replaced by their references."""
        return {
            "name": self.name,
            "handle": self.handle,
            "heading": self.heading,
            "ratingCount": self.rating_count,
            "skills": list(self.skills),
            "portfolio": [item.to_dict() for item in self.portfolio],
            "listings": [ref.to_dict() for ref in listing_refs],
        }


@dataclass(frozen=True)
class PublishResult:
    cid: str
    gateway_url: str
    fingerprint: str
    reused: bool = False


@dataclass(frozen=True)
class UploadFailure:
    label: str
    cause: str
    fingerprint: str


PublishOutcome = PublishResult | UploadFailure


@dataclass(frozen=True)
class LedgerRecord:
    key: str
    profile_cid: str
    gateway_url: str
    fingerprint: str
    recorded_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "profileCID": self.profile_cid,
            "gatewayUrl": self.gateway_url,
            "fingerprint": self.fingerprint,
            "recordedAt": self.recorded_at,
        }
