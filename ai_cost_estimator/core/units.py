"""
Unit conversion for cost estimation.

Maps quantities expressed in tokens, words or characters onto the
per-1000-token units used by the price table.
"""

import math
from enum import Enum
from typing import Dict, Union


class UnitMode(Enum):
    """Unit in which input and output quantities are expressed."""
    TOKENS = "tokens"
    WORDS = "words"
    CHARACTERS = "characters"

    @classmethod
    def parse(cls, value: Union["UnitMode", str]) -> "UnitMode":
        """Resolve a unit mode from an enum member or its case-insensitive name.

        Raises:
            ValueError: If the value names no unit mode
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid_modes = [mode.value for mode in cls]
            raise ValueError(f"Unknown unit mode: {value!r} (expected one of {valid_modes})")


# Tokens per unit. The words and characters rates are calibration values,
# kept fixed so estimates stay comparable with earlier results.
CONVERSION_RATES: Dict[UnitMode, float] = {
    UnitMode.TOKENS: 1.0,
    UnitMode.WORDS: 1.33,
    UnitMode.CHARACTERS: 0.25,
}

# Prices are quoted per 1000 tokens
PRICE_UNIT_TOKENS = 1000

MAX_QUANTITY = 1_000_000


def rate(unit_mode: UnitMode) -> float:
    """Tokens per unit for the given mode."""
    return CONVERSION_RATES[unit_mode]


def normalize(quantity: float, unit_mode: UnitMode) -> float:
    """Convert a quantity into price-table units (thousands of tokens).

    Negative and non-finite quantities count as zero.

    Args:
        quantity: Amount expressed in ``unit_mode`` units
        unit_mode: Unit the quantity is expressed in

    Returns:
        ``quantity * rate(unit_mode) / 1000``
    """
    if not math.isfinite(quantity) or quantity < 0:
        quantity = 0.0
    return quantity * rate(unit_mode) / PRICE_UNIT_TOKENS
