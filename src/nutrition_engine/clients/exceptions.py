"""Exceptions raised by external food-data source clients."""

from __future__ import annotations


class SourceError(Exception):
    """Base exception for external source failures.

    The ETL runner treats every SourceError as recoverable and moves on to
    the next configured source.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            source: Name of the source that failed.
        """
        self.source = source
        super().__init__(message)


class SourceFetchError(SourceError):
    """Raised when a source returns an error response or cannot be reached."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, source)


class SourceTimeoutError(SourceFetchError):
    """Raised when a source does not answer within the configured timeout."""


class SourceParseError(SourceError):
    """Raised when a source record cannot be mapped into a NormalizedFood."""
