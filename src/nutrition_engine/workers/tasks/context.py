"""Access to the engine shared through the ARQ worker context."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from nutrition_engine.engine import NutritionEngine


def engine_from_context(ctx: dict[str, Any]) -> NutritionEngine:
    engine: NutritionEngine | None = ctx.get("engine")
    if engine is None:
        msg = "Worker context has no engine; was the startup hook run?"
        raise RuntimeError(msg)
    return engine
