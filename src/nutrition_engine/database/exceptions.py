"""Exceptions raised by the persistence layer."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for store access errors."""


class PersistenceConflictError(RepositoryError):
    """Raised when an insert collides with a row written concurrently.

    Callers recover by reading the row that won the race.
    """

    def __init__(self, message: str, constraint: str | None = None) -> None:
        self.constraint = constraint
        super().__init__(message)
