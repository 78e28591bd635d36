"""Nutrition data normalization and ingestion engine.

Normalizes food records from USDA FoodData Central and Open Food Facts into
per-100-gram nutrition facts, answers "how much nutrition is in this
quantity of that ingredient" at request time, and discovers ingredients it
has not seen before through a prioritized work queue.
"""

__version__ = "0.1.0"
