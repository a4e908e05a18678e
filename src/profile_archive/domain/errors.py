class ProfileArchiveError(Exception):
    """Base class for every error raised by the archive pipeline."""


class ConfigurationError(ProfileArchiveError):
    """Required configuration is missing or malformed. The process must not start."""


class InputError(ProfileArchiveError):
    """The request is missing a profile URL or the URL is malformed."""


class ScrapeFailure(ProfileArchiveError):
    """The rendered snapshot could not be acquired (navigation, timeout, browser crash)."""

    def __init__(self, url: str, cause: str) -> None:
        super().__init__(f"Failed to scrape {url}: {cause}")
        self.url = url
        self.cause = cause


class PublishFailure(ProfileArchiveError):
    """The root profile record could not be published."""

    def __init__(self, label: str, cause: str) -> None:
        super().__init__(f"Failed to publish {label}: {cause}")
        self.label = label
        self.cause = cause


class StorageNetworkError(ProfileArchiveError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class LedgerFailure(ProfileArchiveError):
    pass
