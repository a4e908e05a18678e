"""Domain models and deterministic rules for profile archiving."""

from src.profile_archive.domain.canonical import CanonicalForm, canonicalize, compute_fingerprint
from src.profile_archive.domain.models import (
    SENTINEL,
    LedgerRecord,
    ListingRecord,
    ListingRef,
    PortfolioItem,
    ProfileRecord,
    PublishOutcome,
    PublishResult,
    UploadFailure,
)
from src.profile_archive.domain.rules import build_gateway_url, validate_profile_url

__all__ = [
    "build_gateway_url",
    "CanonicalForm",
    "canonicalize",
    "compute_fingerprint",
    "LedgerRecord",
    "ListingRecord",
    "ListingRef",
    "PortfolioItem",
    "ProfileRecord",
    "PublishOutcome",
    "PublishResult",
    "SENTINEL",
    "UploadFailure",
    "validate_profile_url",
]
