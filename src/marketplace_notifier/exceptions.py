from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for errors raised by the notifier."""


class ConfigError(MarketplaceError):
    """Configuration file is missing or fails validation."""


class SourceError(MarketplaceError):
    """The page source could not be reached or returned an unusable payload."""

    def __init__(self, message: str, term: str | None = None) -> None:
        super().__init__(message)
        self.term = term
