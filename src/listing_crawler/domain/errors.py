class CrawlerError(RuntimeError):
    """Base exception for crawler errors."""


class LaunchError(CrawlerError):
    """Raised when the browser session cannot be started."""


class NavigationError(CrawlerError):
    """Raised when a listing page fails to load (network, timeout, driver)."""


class ExtractionFailure(CrawlerError):
    """Raised when a single field cannot be read from a listing element."""


class StoreError(CrawlerError):
    """Raised when an item cannot be persisted."""
