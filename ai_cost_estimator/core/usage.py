"""
Usage input and edit validation.

Holds the quantities a cost estimate is computed from and guards them
against invalid edits.
"""

import math
import re
from dataclasses import dataclass, replace
from typing import Optional, Union

from .units import MAX_QUANTITY, UnitMode

EDITABLE_FIELDS = ("input_quantity", "output_quantity", "call_count")

# Leading minus or any exponent marker
_REJECTED_PATTERN = re.compile(r"^\s*-|[eE]")


@dataclass(frozen=True)
class UsageInput:
    """Quantities and unit mode for a cost estimate.

    Quantities are bounded to [0, MAX_QUANTITY]. A call count of zero means
    a single call.
    """
    input_quantity: float = 100.0
    output_quantity: float = 100.0
    call_count: int = 1
    unit_mode: UnitMode = UnitMode.TOKENS

    def __post_init__(self):
        """Validate quantities and normalize the call count."""
        for name in ("input_quantity", "output_quantity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number")
            if value < 0 or value > MAX_QUANTITY or not math.isfinite(value):
                raise ValueError(f"{name} must be between 0 and {MAX_QUANTITY}")
        if isinstance(self.call_count, bool) or not isinstance(self.call_count, int):
            raise ValueError("call_count must be an integer")
        if self.call_count < 0 or self.call_count > MAX_QUANTITY:
            raise ValueError(f"call_count must be between 0 and {MAX_QUANTITY}")
        if self.call_count == 0:
            object.__setattr__(self, "call_count", 1)
        object.__setattr__(self, "unit_mode", UnitMode.parse(self.unit_mode))


DEFAULT_USAGE = UsageInput()


def parse_quantity(raw: Union[str, float, int, None]) -> Optional[float]:
    """Parse a raw edit value into a quantity.

    Returns:
        The parsed quantity, 0.0 for an empty edit, or None when the edit
        must be rejected
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    text = str(raw).strip()
    if text == "":
        return 0.0
    if _REJECTED_PATTERN.search(text):
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0 or value > MAX_QUANTITY:
        return None
    return value


def apply_edit(usage: UsageInput, field: str, raw: Union[str, float, int, None]) -> UsageInput:
    """Apply a raw edit to one usage field.

    Invalid edits leave the usage unchanged.

    Args:
        usage: Current usage input
        field: One of EDITABLE_FIELDS
        raw: Value as typed by the user

    Returns:
        Updated usage input, or ``usage`` itself when the edit is rejected

    Raises:
        ValueError: If field is not editable
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown usage field: {field}")

    value = parse_quantity(raw)
    if value is None:
        return usage

    if field == "call_count":
        if not value.is_integer():
            return usage
        return replace(usage, call_count=int(value))

    return replace(usage, **{field: value})


def with_unit_mode(usage: UsageInput, unit_mode: Union[UnitMode, str]) -> UsageInput:
    """Return usage with a different unit mode; quantities are kept as typed."""
    return replace(usage, unit_mode=UnitMode.parse(unit_mode))
