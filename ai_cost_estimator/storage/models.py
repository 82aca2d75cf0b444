"""
Data models for storage layer.

Defines the persisted profile keys and the usage input encoding.
"""

from typing import Any, Dict

from ai_cost_estimator.core.units import UnitMode
from ai_cost_estimator.core.usage import UsageInput

KEY_USAGE = "usage"
KEY_CREDENTIAL = "credential"
TEXT_KEY_PREFIX = "text:"

_USAGE_FIELDS = {"input_quantity", "output_quantity", "call_count", "unit_mode"}


def text_key(field: str) -> str:
    """Profile key for a free-text body."""
    return f"{TEXT_KEY_PREFIX}{field}"


def usage_to_dict(usage: UsageInput) -> Dict[str, Any]:
    """Encode a usage input for storage."""
    return {
        "input_quantity": usage.input_quantity,
        "output_quantity": usage.output_quantity,
        "call_count": usage.call_count,
        "unit_mode": usage.unit_mode.value,
    }


def usage_from_dict(data: Any) -> UsageInput:
    """Decode a stored usage input.

    Raises:
        ValueError: If the data is not a complete, valid usage input
    """
    if not isinstance(data, dict):
        raise ValueError("Stored usage must be a dictionary")

    missing = _USAGE_FIELDS - set(data.keys())
    if missing:
        raise ValueError(f"Stored usage is missing fields: {missing}")

    call_count = data["call_count"]
    if isinstance(call_count, float) and call_count.is_integer():
        call_count = int(call_count)

    return UsageInput(
        input_quantity=data["input_quantity"],
        output_quantity=data["output_quantity"],
        call_count=call_count,
        unit_mode=UnitMode.parse(data["unit_mode"]),
    )
