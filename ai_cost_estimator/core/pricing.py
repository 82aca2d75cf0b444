"""
Pricing calculations and cost records.

Computes per-model costs from a usage input and a static price table.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

from .units import normalize
from .usage import UsageInput


@dataclass(frozen=True)
class PriceEntry:
    """Per-1000-token pricing for a specific model."""
    model: str
    capability_score: float
    input_unit_price: float  # Cost per 1K input tokens
    output_unit_price: float  # Cost per 1K output tokens

    def __post_init__(self):
        """Validate the entry."""
        if not self.model or not self.model.strip():
            raise ValueError("model is required and cannot be empty")
        if self.capability_score < 0:
            raise ValueError(f"capability_score for {self.model} must be >= 0")
        if self.input_unit_price < 0:
            raise ValueError(f"input_unit_price for {self.model} must be >= 0")
        if self.output_unit_price < 0:
            raise ValueError(f"output_unit_price for {self.model} must be >= 0")


class PricingTable:
    """Ordered, read-only price table for supported models."""

    def __init__(self, entries: Sequence[PriceEntry]):
        """Build the table.

        Raises:
            ValueError: If a model appears more than once
        """
        seen: Dict[str, PriceEntry] = {}
        for entry in entries:
            if entry.model in seen:
                raise ValueError(f"Duplicate model in price table: {entry.model}")
            seen[entry.model] = entry
        self._entries: Tuple[PriceEntry, ...] = tuple(entries)
        self._by_model = seen

    def __iter__(self) -> Iterator[PriceEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PriceEntry:
        return self._entries[index]

    @property
    def models(self) -> List[str]:
        return [entry.model for entry in self._entries]

    def get_pricing(self, model: str) -> PriceEntry:
        """Get pricing for a specific model.

        Args:
            model: Model identifier

        Returns:
            PriceEntry for the model

        Raises:
            ValueError: If model is not supported
        """
        if model not in self._by_model:
            raise ValueError(f"Unsupported model: {model}")
        return self._by_model[model]


@dataclass(frozen=True)
class CostRecord:
    """Cost of a usage input for one model.

    Derived data: rebuilt from scratch on every recomputation.
    """
    model: str
    capability_score: float
    input_cost: float
    output_cost: float
    per_call_cost: float
    total_cost: float


def calculate_cost(usage: UsageInput, entry: PriceEntry) -> CostRecord:
    """Calculate the cost record for a single price entry.

    No rounding is applied; formatting is left to the caller.
    """
    normalized_input = normalize(usage.input_quantity, usage.unit_mode)
    normalized_output = normalize(usage.output_quantity, usage.unit_mode)

    input_cost = normalized_input * entry.input_unit_price
    output_cost = normalized_output * entry.output_unit_price
    per_call_cost = input_cost + output_cost

    return CostRecord(
        model=entry.model,
        capability_score=entry.capability_score,
        input_cost=input_cost,
        output_cost=output_cost,
        per_call_cost=per_call_cost,
        total_cost=per_call_cost * max(usage.call_count, 1),
    )


def compute_costs(usage: UsageInput, prices: Sequence[PriceEntry]) -> List[CostRecord]:
    """Compute one cost record per price entry.

    Records come back in price-table order. Entries are never dropped or
    merged, zero-cost records included.

    Args:
        usage: Quantities, call count and unit mode
        prices: Price entries, in display order

    Returns:
        List of CostRecord, one per entry
    """
    return [calculate_cost(usage, entry) for entry in prices]
