"""Open Food Facts API client.

Searches products by name and fetches them by barcode. OFF reports
nutriments per 100 g (and sometimes only per serving) with mass values in
grams; they are rescaled and converted into canonical units here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, ClassVar, Final

from nutrition_engine.clients.base import HttpSourceClient
from nutrition_engine.clients.exceptions import SourceParseError
from nutrition_engine.clients.units import (
    KJ_PER_KCAL,
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


logger = get_logger(__name__)


# Canonical nutrient field -> OFF nutriment key (without the _100g suffix).
# Energy and sodium have dedicated handling below.
OFF_NUTRIENT_MAP: Final[dict[str, str]] = {
    "protein": "proteins",
    "total_fat": "fat",
    "saturated_fat": "saturated-fat",
    "trans_fat": "trans-fat",
    "carbohydrates": "carbohydrates",
    "fiber": "fiber",
    "sugar": "sugars",
    "potassium": "potassium",
    "cholesterol": "cholesterol",
    "vitamin_a": "vitamin-a",
    "vitamin_c": "vitamin-c",
    "vitamin_d": "vitamin-d",
    "calcium": "calcium",
    "iron": "iron",
    "magnesium": "magnesium",
}

# Salt is sodium chloride; sodium mass is salt mass divided by 2.5
SALT_TO_SODIUM_DIVISOR: Final[Decimal] = Decimal("2.5")

OFF_CONFIDENCE: Final[Decimal] = Decimal("0.80")

_HUNDRED = Decimal("100")
_MG_PER_G = Decimal("1000")


def _first_listed(value: Any) -> str | None:
    """First entry of an OFF comma-separated field, or of a tag list."""
    if isinstance(value, list):
        value = value[0] if value else None
        if isinstance(value, str) and ":" in value:
            value = value.split(":", 1)[1].replace("-", " ")
    if not isinstance(value, str):
        return None
    first = value.split(",")[0].strip()
    return first or None


class OpenFoodFactsClient(HttpSourceClient):
    """Client for the Open Food Facts API."""

    SOURCE_NAME: ClassVar[str] = DataSource.OPEN_FOOD_FACTS.value
    CACHE_PREFIX: ClassVar[str] = "off"
    SEARCH_ENDPOINT: Final[str] = "/cgi/search.pl"
    PRODUCT_ENDPOINT: Final[str] = "/api/v2/product/{code}.json"

    async def search_by_name(self, query: str, limit: int = 5) -> list[dict[str, Any]]:
        cached = await self._get_cached_search(query, limit)
        if cached is not None:
            logger.debug("Cache hit for OFF search", query=query)
            return cached

        params = {
            "search_terms": query,
            "search_simple": "1",
            "action": "process",
            "json": "1",
            "page_size": str(limit),
        }
        data = await self._get_json(self.SEARCH_ENDPOINT, params)
        products = data.get("products") if isinstance(data, dict) else None
        results = [p for p in products or [] if isinstance(p, dict)][:limit]

        if not results:
            logger.debug("No products found in OFF", query=query)
        await self._save_cached_search(query, limit, results)
        return results

    async def fetch_by_id(self, external_id: str) -> dict[str, Any] | None:
        data = await self._get_json(
            self.PRODUCT_ENDPOINT.format(code=external_id),
            not_found_ok=True,
        )
        if not isinstance(data, dict) or data.get("status") != 1:
            return None

        product = data.get("product")
        if not isinstance(product, dict):
            return None
        product.setdefault("code", data.get("code", external_id))
        return product

    def normalize(self, raw: dict[str, Any]) -> NormalizedFood:
        code = raw.get("code") or raw.get("_id")
        if not code:
            msg = "Open Food Facts product has no code"
            raise SourceParseError(msg, source=self.name)
        code = str(code)

        name = (
            raw.get("product_name")
            or raw.get("product_name_en")
            or raw.get("generic_name")
            or f"Product {code}"
        )
        category = _first_listed(raw.get("categories")) or _first_listed(
            raw.get("categories_tags")
        )

        nutriments = raw.get("nutriments")
        serving_grams = to_decimal(raw.get("serving_quantity"))

        return NormalizedFood(
            source=self.name,
            external_id=code,
            name=str(name).strip(),
            category=category,
            brand_name=_first_listed(raw.get("brands")),
            barcode=code,
            nutrients=self._nutrients(
                nutriments if isinstance(nutriments, dict) else {},
                serving_grams,
            ),
            confidence=OFF_CONFIDENCE,
            data_quality=OFF_CONFIDENCE,
        )

    def _per_100g(
        self,
        nutriments: dict[str, Any],
        key: str,
        serving_grams: Decimal | None,
    ) -> Decimal | None:
        """Read ``key`` per 100 g, rescaling a per-serving value if needed."""
        value = to_decimal(nutriments.get(f"{key}_100g"))
        if value is not None:
            return value

        per_serving = to_decimal(nutriments.get(f"{key}_serving"))
        if per_serving is None or not serving_grams or serving_grams <= 0:
            return None
        return per_serving * _HUNDRED / serving_grams

    def _nutrients(
        self,
        nutriments: dict[str, Any],
        serving_grams: Decimal | None,
    ) -> NutrientValues:
        values: dict[str, Decimal] = {}

        calories = self._per_100g(nutriments, "energy-kcal", serving_grams)
        if calories is None:
            kilojoules = self._per_100g(nutriments, "energy-kj", serving_grams)
            if kilojoules is None:
                kilojoules = self._per_100g(nutriments, "energy", serving_grams)
            if kilojoules is not None:
                calories = kilojoules / KJ_PER_KCAL
        if calories is not None:
            values["calories"] = calories

        sodium_g = self._per_100g(nutriments, "sodium", serving_grams)
        if sodium_g is None:
            salt_g = self._per_100g(nutriments, "salt", serving_grams)
            if salt_g is not None:
                sodium_g = salt_g / SALT_TO_SODIUM_DIVISOR
        if sodium_g is not None:
            values["sodium"] = sodium_g * _MG_PER_G

        for field, key in OFF_NUTRIENT_MAP.items():
            grams = self._per_100g(nutriments, key, serving_grams)
            if grams is None:
                continue
            converted = to_canonical_unit(grams, "g", NUTRIENT_UNITS[field])
            if converted is not None:
                values[field] = converted

        return NutrientValues(**within_storage_range(values, self.name))
