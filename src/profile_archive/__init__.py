"""Profile archive package: snapshot a public profile and pin it to IPFS."""

from src.profile_archive.domain.errors import (
    ConfigurationError,
    InputError,
    LedgerFailure,
    ProfileArchiveError,
    PublishFailure,
    ScrapeFailure,
    StorageNetworkError,
)

__all__ = [
    "ConfigurationError",
    "InputError",
    "LedgerFailure",
    "ProfileArchiveError",
    "PublishFailure",
    "ScrapeFailure",
    "StorageNetworkError",
]
