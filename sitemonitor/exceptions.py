"""Custom exceptions for the site monitor."""
from typing import Optional


class MonitorError(Exception):
    """Base class for all monitor errors."""


class ConfigMissing(MonitorError):
    """Raised when a required run setting is absent or unusable."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class AccessDenied(MonitorError):
    """Raised when the caller is not allowed to start a run."""

    def __init__(self, client_ip: Optional[str]):
        self.client_ip = client_ip
        super().__init__("Not allowed.")


class HttpFetchError(MonitorError):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class PageFetchError(MonitorError):
    """Raised when a page cannot be loaded or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot load {url}: {reason}")


class RunNotFound(MonitorError):
    """Raised when no persisted state exists for a run identifier."""

    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Run '{log_id}' not found")
