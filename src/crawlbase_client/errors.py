"""Custom exceptions for the Crawlbase client."""


class CrawlbaseError(Exception):
    """Base exception for this project."""


class ConfigError(CrawlbaseError):
    """Raised when runtime configuration is invalid."""


class InvalidArgument(CrawlbaseError, ValueError):
    """Raised before any network call when a required argument is missing or malformed."""


class UnsupportedOperation(CrawlbaseError):
    """Raised when an HTTP method is not allowed for an endpoint."""


class TransportError(CrawlbaseError):
    """Raised when the HTTP transport fails to deliver a response."""


class ProjectionFailure(CrawlbaseError):
    """Raised when a JSON body cannot be tokenized."""
