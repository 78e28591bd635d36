"""Protocol implemented by every external food-data source."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from nutrition_engine.schemas.nutrition import NormalizedFood


@runtime_checkable
class SourceAdapter(Protocol):
    """Read-only access to one external food database.

    Adapters never write to the store. ``search_by_name`` and ``fetch_by_id``
    return the source's raw records; ``normalize`` maps one of them into the
    engine's per-100-gram vocabulary.
    """

    @property
    def name(self) -> str:
        """Stable source tag stored on ingredients (e.g. ``usda_fdc``)."""
        ...

    async def initialize(self) -> None:
        """Open network resources."""
        ...

    async def shutdown(self) -> None:
        """Release network resources."""
        ...

    async def search_by_name(self, query: str, limit: int = 5) -> list[dict[str, Any]]:
        """Search the source by free-text name.

        Raises:
            SourceFetchError: If the source cannot be queried.
        """
        ...

    async def fetch_by_id(self, external_id: str) -> dict[str, Any] | None:
        """Fetch one record by the source's own identifier, or None if absent."""
        ...

    def normalize(self, raw: dict[str, Any]) -> NormalizedFood:
        """Map a raw record into a NormalizedFood.

        Raises:
            SourceParseError: If the record lacks required fields.
        """
        ...
