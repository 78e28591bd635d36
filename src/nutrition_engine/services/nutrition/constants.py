"""Constants for nutrition scaling."""

from __future__ import annotations

from decimal import Decimal
from typing import Final


# Stored nutrition facts are per this many grams
REFERENCE_GRAMS: Final[Decimal] = Decimal("100")

# Scaled nutrients and resolved weights are reported to 3 decimal places
RESULT_QUANTUM: Final[Decimal] = Decimal("0.001")
