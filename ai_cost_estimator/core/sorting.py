"""
Sort policy for cost records.

Each column cycles through ascending, descending and unsorted on repeated
activation. Sorting never changes the engine's record order in place.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import List, Optional, Sequence

from .pricing import CostRecord

SORTABLE_FIELDS = tuple(f.name for f in fields(CostRecord))


class SortPhase(Enum):
    """States of the sort policy."""
    UNSORTED = 0
    ASCENDING = 1
    DESCENDING = 2


class SortDirection(Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass(frozen=True)
class SortState:
    """Current sort policy state.

    ``key`` is None exactly when the phase is UNSORTED.
    """
    phase: SortPhase = SortPhase.UNSORTED
    key: Optional[str] = None

    def __post_init__(self):
        """Validate phase and key agree."""
        if self.phase == SortPhase.UNSORTED and self.key is not None:
            raise ValueError("Unsorted state cannot carry a key")
        if self.phase != SortPhase.UNSORTED and self.key not in SORTABLE_FIELDS:
            raise ValueError(f"Unknown sort key: {self.key}")

    @property
    def direction(self) -> SortDirection:
        if self.phase == SortPhase.DESCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

    @property
    def activation_count(self) -> int:
        """Activations of the current key so far, in [0, 3)."""
        return self.phase.value

    def activate(self, key: str) -> "SortState":
        """Transition on a column activation.

        Args:
            key: Record field to sort by

        Returns:
            Next state

        Raises:
            ValueError: If key is not a record field
        """
        if key not in SORTABLE_FIELDS:
            raise ValueError(f"Unknown sort key: {key} (expected one of {list(SORTABLE_FIELDS)})")

        if key != self.key:
            return SortState(SortPhase.ASCENDING, key)
        if self.phase == SortPhase.ASCENDING:
            return SortState(SortPhase.DESCENDING, key)
        return UNSORTED

    def apply(self, records: Sequence[CostRecord]) -> List[CostRecord]:
        """Return the records in display order.

        Sorting is stable: records with equal values keep their engine order
        in both directions.
        """
        if self.phase == SortPhase.UNSORTED:
            return list(records)
        return sorted(
            records,
            key=lambda record: getattr(record, self.key),
            reverse=self.phase == SortPhase.DESCENDING,
        )


UNSORTED = SortState()
