"""Exceptions for unit conversion."""

from __future__ import annotations


class ConversionError(Exception):
    """Base exception for unit conversion errors."""

    def __init__(
        self,
        message: str,
        from_unit: str | None = None,
        to_unit: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            from_unit: Source unit of the failed conversion.
            to_unit: Target unit of the failed conversion.
        """
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(message)


class ConversionUnavailableError(ConversionError):
    """Raised when no factor exists at any tier for a unit pair.

    The engine never guesses a factor; callers either try another route
    (such as density) or surface this error.
    """
