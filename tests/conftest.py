"""Shared test configuration for the nutrition engine tests.

Selects the ``test`` configuration environment before any settings are
loaded and clears the settings cache between tests.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from nutrition_engine.core.config import get_settings


if TYPE_CHECKING:
    from collections.abc import Generator


os.environ["APP_ENV"] = "test"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Load settings fresh for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
