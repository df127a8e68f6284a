"""Custom exception classes for the application."""


class DealScoutException(Exception):
    """Base exception for all DealScout errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ScraperError(DealScoutException):
    """Raised when a scraper encounters an error it cannot recover from."""


class FetchError(ScraperError):
    """Raised when an outbound fetch fails (network, DNS, TLS, timeout, non-2xx).

    The message is the underlying error text so it can be surfaced verbatim
    in a run result.
    """

    def __init__(self, message: str, url: str = "", status_code: int = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class StoreNotFoundError(DealScoutException):
    """Raised when a source has no active backing store."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(
            f'No store found for source "{source}". Create the store in the admin panel first.'
        )


class ScrapeAlreadyRunningError(DealScoutException):
    """Raised when a scrape run is requested while another one is in progress."""

    def __init__(self):
        super().__init__("A scrape run is already in progress")
