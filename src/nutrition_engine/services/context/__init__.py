"""Context override rules for usage-specific nutrition adjustments."""

from nutrition_engine.services.context.service import (
    ContextOverrideService,
    apply_rule,
    select_rule,
)


__all__ = [
    "ContextOverrideService",
    "apply_rule",
    "select_rule",
]
