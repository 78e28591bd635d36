"""Constants for discovery queueing and batch processing."""

from __future__ import annotations

from typing import Final


MIN_PRIORITY: Final[int] = 1
MAX_PRIORITY: Final[int] = 10
DEFAULT_PRIORITY: Final[int] = 5

DEFAULT_BATCH_SIZE: Final[int] = 50
DEFAULT_SEARCH_LIMIT: Final[int] = 5
DEFAULT_SOURCE_TIMEOUT_SECONDS: Final[float] = 15.0

# Stack traces stored on failed jobs are truncated to keep error_log small
MAX_TRACEBACK_CHARS: Final[int] = 4000

# =============================================================================
# Recipe text extraction
# =============================================================================
RECIPE_PARSING_SOURCE: Final[str] = "recipe_parsing"

# Stems matched at a word start; "tomatoes" and "eggs" match "tomato" and "egg"
RECIPE_FOOD_KEYWORDS: Final[tuple[str, ...]] = (
    "chicken",
    "beef",
    "rice",
    "flour",
    "sugar",
    "salt",
    "pepper",
    "onion",
    "garlic",
    "tomato",
    "cheese",
    "milk",
    "egg",
    "butter",
    "oil",
)
