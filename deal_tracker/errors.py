# deal_tracker/errors.py

"""Exception types shared across the deal_tracker packages."""


class DealTrackerError(Exception):
    """Base class for all deal_tracker failures."""


class FetchError(DealTrackerError):
    """A page or API request failed after every retry attempt."""

    def __init__(self, url: str, attempts: int, reason: str) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Failed to fetch {url} after {attempts} attempts: {reason}"
        )


class ConfigurationError(DealTrackerError):
    """Request cannot run at all, e.g. missing scraping credentials."""


class UnknownActionError(ConfigurationError):
    """The proxy received an action name it does not handle."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Unknown action: {action}")


class ExtractionError(DealTrackerError):
    """A scraped card lacks a field every deal needs."""

    def __init__(self, source: str, field: str) -> None:
        self.source = source
        self.field = field
        super().__init__(f"{source} card has no {field}")
