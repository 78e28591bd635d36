"""USDA FoodData Central client.

Searches and fetches foods from the FDC v1 API and maps FDC nutrient ids
into the engine's canonical nutrient vocabulary, per 100 g.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar, Final

from nutrition_engine.clients.base import HttpSourceClient
from nutrition_engine.clients.exceptions import SourceParseError
from nutrition_engine.clients.units import (
    to_canonical_unit,
    to_decimal,
    within_storage_range,
)
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.schemas.enums import DataSource
from nutrition_engine.schemas.nutrition import (
    NUTRIENT_UNITS,
    NormalizedFood,
    NutrientValues,
)


if TYPE_CHECKING:
    import httpx
    from redis.asyncio import Redis

    from nutrition_engine.core.config import SourceSettings

logger = get_logger(__name__)


# FDC nutrient id -> canonical nutrient field
USDA_NUTRIENT_MAP: Final[dict[int, str]] = {
    1008: "calories",
    1003: "protein",
    1004: "total_fat",
    1258: "saturated_fat",
    1257: "trans_fat",
    1005: "carbohydrates",
    1079: "fiber",
    2000: "sugar",
    1093: "sodium",
    1092: "potassium",
    1253: "cholesterol",
    1106: "vitamin_a",
    1162: "vitamin_c",
    1114: "vitamin_d",
    1087: "calcium",
    1089: "iron",
    1090: "magnesium",
}

# Atwater energy values reported by Foundation foods that lack id 1008
USDA_ENERGY_FALLBACK_IDS: Final[tuple[int, ...]] = (2047, 2048)

USDA_CONFIDENCE: Final[Decimal] = Decimal("0.95")

DEMO_API_KEY: Final[str] = "DEMO_KEY"


def _nutrient_entry(entry: dict[str, Any]) -> tuple[int | None, Decimal | None, str]:
    """Read (id, amount, unit) from either FDC nutrient shape.

    Search results use ``nutrientId``/``value``/``unitName``; food details
    nest the definition under ``nutrient`` and use ``amount``.
    """
    nested = entry.get("nutrient")
    if isinstance(nested, dict):
        nutrient_id = nested.get("id")
        unit = nested.get("unitName") or ""
        amount = to_decimal(entry.get("amount"))
    else:
        nutrient_id = entry.get("nutrientId")
        unit = entry.get("unitName") or ""
        amount = to_decimal(entry.get("value"))

    try:
        parsed_id = int(nutrient_id) if nutrient_id is not None else None
    except (TypeError, ValueError):
        parsed_id = None
    return parsed_id, amount, str(unit)


class UsdaFoodDataClient(HttpSourceClient):
    """Client for the USDA FoodData Central API."""

    SOURCE_NAME: ClassVar[str] = DataSource.USDA_FDC.value
    CACHE_PREFIX: ClassVar[str] = "usda"
    SEARCH_ENDPOINT: Final[str] = "/foods/search"
    FOOD_ENDPOINT: Final[str] = "/food/{fdc_id}"

    def __init__(
        self,
        settings: SourceSettings,
        api_key: str = "",
        cache_client: Redis[bytes] | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_backoff: float = 0.5,
    ) -> None:
        super().__init__(settings, cache_client, http_client, retry_backoff)
        if not api_key:
            logger.warning("USDA_API_KEY not set, using the rate-limited demo key")
        self._api_key = api_key or DEMO_API_KEY
        self._data_types = ",".join(settings.data_types)

    async def search_by_name(self, query: str, limit: int = 5) -> list[dict[str, Any]]:
        cached = await self._get_cached_search(query, limit)
        if cached is not None:
            logger.debug("Cache hit for USDA search", query=query)
            return cached

        params: dict[str, Any] = {
            "api_key": self._api_key,
            "query": query,
            "pageSize": limit,
        }
        if self._data_types:
            params["dataType"] = self._data_types

        data = await self._get_json(self.SEARCH_ENDPOINT, params)
        foods = data.get("foods") if isinstance(data, dict) else None
        results = [f for f in foods or [] if isinstance(f, dict)][:limit]

        await self._save_cached_search(query, limit, results)
        return results

    async def fetch_by_id(self, external_id: str) -> dict[str, Any] | None:
        data = await self._get_json(
            self.FOOD_ENDPOINT.format(fdc_id=external_id),
            {"api_key": self._api_key},
            not_found_ok=True,
        )
        return data if isinstance(data, dict) else None

    def normalize(self, raw: dict[str, Any]) -> NormalizedFood:
        fdc_id = raw.get("fdcId")
        description = raw.get("description")
        if fdc_id is None or not isinstance(description, str) or not description:
            msg = "USDA record is missing fdcId or description"
            raise SourceParseError(msg, source=self.name)

        return NormalizedFood(
            source=self.name,
            external_id=str(fdc_id),
            name=description.strip(),
            category=self._category(raw.get("foodCategory")),
            brand_name=raw.get("brandOwner") or raw.get("brandName") or None,
            barcode=raw.get("gtinUpc") or None,
            nutrients=self._nutrients(raw.get("foodNutrients") or []),
            confidence=USDA_CONFIDENCE,
            data_quality=USDA_CONFIDENCE,
        )

    def _category(self, value: Any) -> str | None:
        if isinstance(value, dict):
            value = value.get("description")
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def _nutrients(self, entries: list[Any]) -> NutrientValues:
        values: dict[str, Decimal] = {}
        fallback_energy: Decimal | None = None

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            nutrient_id, amount, unit = _nutrient_entry(entry)
            if nutrient_id is None or amount is None:
                continue

            if nutrient_id in USDA_ENERGY_FALLBACK_IDS and fallback_energy is None:
                fallback_energy = to_canonical_unit(amount, unit or "kcal", "kcal")
                continue

            field = USDA_NUTRIENT_MAP.get(nutrient_id)
            if field is None or field in values:
                continue

            canonical = NUTRIENT_UNITS[field]
            converted = to_canonical_unit(amount, unit or canonical, canonical)
            if converted is None:
                logger.debug(
                    "Skipping USDA nutrient with unconvertible unit",
                    nutrient_id=nutrient_id,
                    unit=unit,
                )
                continue
            values[field] = converted

        if "calories" not in values and fallback_energy is not None:
            values["calories"] = fallback_energy

        return NutrientValues(**within_storage_range(values, self.name))
