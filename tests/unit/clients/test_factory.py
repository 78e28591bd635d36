"""Unit tests for build_adapters."""

from __future__ import annotations

from decimal import Decimal

import pytest

from nutrition_engine.clients.factory import build_adapters
from nutrition_engine.clients.protocol import SourceAdapter
from nutrition_engine.clients.units import to_canonical_unit, to_decimal
from nutrition_engine.core.config import Settings


pytestmark = pytest.mark.unit


class TestBuildAdapters:
    """Tests for build_adapters."""

    def test_follows_configured_order(self) -> None:
        """Should build adapters in discovery.source_order."""
        settings = Settings()
        settings.discovery.source_order = ["open_food_facts", "usda_fdc"]

        adapters = build_adapters(settings)

        assert [a.name for a in adapters] == ["open_food_facts", "usda_fdc"]
        assert all(isinstance(a, SourceAdapter) for a in adapters)

    def test_skips_disabled_sources(self) -> None:
        """Should leave out sources that are switched off."""
        settings = Settings()
        settings.sources.open_food_facts.enabled = False

        adapters = build_adapters(settings)

        assert [a.name for a in adapters] == ["usda_fdc"]

    def test_unknown_source_raises(self) -> None:
        """Should reject an unknown source name."""
        settings = Settings()
        settings.discovery.source_order = ["nutritionix"]

        with pytest.raises(ValueError, match="nutritionix"):
            build_adapters(settings)


class TestUnits:
    """Tests for source value coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(12, Decimal("12")), ("3,5", Decimal("3.5")), ("abc", None), (None, None)],
    )
    def test_to_decimal(self, value: object, expected: Decimal | None) -> None:
        """Should coerce numbers and numeric strings only."""
        assert to_decimal(value) == expected

    def test_to_decimal_rejects_booleans(self) -> None:
        """Should not treat JSON booleans as numbers."""
        assert to_decimal(True) is None

    def test_milligrams_to_grams(self) -> None:
        """Should convert mass units with Pint."""
        assert to_canonical_unit(Decimal("250"), "mg", "g") == Decimal("0.25")

    def test_international_units_have_no_conversion(self) -> None:
        """Should return None for IU."""
        assert to_canonical_unit(Decimal("100"), "IU", "µg") is None
