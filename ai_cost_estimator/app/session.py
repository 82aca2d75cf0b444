"""
Estimator session.

Holds the current usage input, sort state and text bodies, and recomputes
cost records whenever any of them changes. Storage and tokenizer are
injected so the core never touches either directly.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Union

from ai_cost_estimator.core.debounce import DEFAULT_DELAY_SECONDS, Debouncer
from ai_cost_estimator.core.pricing import CostRecord, PriceEntry, compute_costs
from ai_cost_estimator.core.sorting import UNSORTED, SortState
from ai_cost_estimator.core.tokenizer import TokenCounter, measure_text, measure_text_async
from ai_cost_estimator.core.units import UnitMode
from ai_cost_estimator.core.usage import DEFAULT_USAGE, UsageInput, apply_edit, with_unit_mode

logger = logging.getLogger(__name__)


class TextField(Enum):
    """Free-text bodies and the quantity each one fills."""
    INPUT = "input_quantity"
    OUTPUT = "output_quantity"


class StatePort(Protocol):
    """Load/save port for persisted form state."""

    def load_usage(self) -> UsageInput: ...
    def save_usage(self, usage: UsageInput) -> None: ...
    def load_text(self, field: str) -> str: ...
    def save_text(self, field: str, text: str) -> None: ...


class TextSource(Protocol):
    """Anything that turns a prompt into generated text."""

    def generate(self, prompt: str) -> str: ...


class EstimatorSession:
    """Single-editor estimator state.

    Records are always recomputed wholesale from usage and prices.
    """

    def __init__(
        self,
        prices: Sequence[PriceEntry],
        store: Optional[StatePort] = None,
        counter: Optional[TokenCounter] = None,
        debounce_seconds: float = DEFAULT_DELAY_SECONDS,
        on_measure_error: Optional[Callable[[TextField, BaseException], None]] = None,
    ):
        self.prices = list(prices)
        self.store = store
        self.counter = counter or TokenCounter()
        self.usage: UsageInput = DEFAULT_USAGE
        self.sort_state: SortState = UNSORTED
        self.texts: Dict[TextField, str] = {field: "" for field in TextField}
        self.records: List[CostRecord] = []
        self._on_measure_error = on_measure_error
        self._debouncer = Debouncer(
            measure=self._measure_async,
            deliver=self._deliver_measurement,
            on_error=self._measurement_failed,
            delay=debounce_seconds,
        )
        self.recompute()

    def load(self) -> None:
        """Restore usage and text bodies from the store."""
        if self.store is not None:
            self.usage = self.store.load_usage()
            for field in TextField:
                self.texts[field] = self.store.load_text(field.value)
        self.recompute()

    def recompute(self) -> List[CostRecord]:
        """Rebuild the cost records from current usage and prices."""
        self.records = compute_costs(self.usage, self.prices)
        return self.records

    def rows(self) -> List[CostRecord]:
        """Records in display order."""
        return self.sort_state.apply(self.records)

    def edit(self, field: str, raw: Union[str, float, int, None]) -> bool:
        """Apply a raw edit to a usage field.

        Returns:
            True if the edit was accepted, False if it was rejected and the
            prior value kept
        """
        updated = apply_edit(self.usage, field, raw)
        if updated is self.usage:
            logger.debug("Rejected edit %r for %s", raw, field)
            return False
        self._set_usage(updated)
        return True

    def set_unit_mode(self, unit_mode: Union[UnitMode, str]) -> None:
        """Switch the unit quantities are expressed in.

        The next edit of each text body is measured in the new unit.
        """
        self._set_usage(with_unit_mode(self.usage, unit_mode))
        for field in TextField:
            self._debouncer.forget(field)

    def sort_by(self, key: str) -> SortState:
        """Advance the sort policy for a column."""
        self.sort_state = self.sort_state.activate(key)
        return self.sort_state

    def set_text(self, field: TextField, text: str):
        """Store a text body and schedule its debounced measurement.

        Must be called from a running event loop.

        Returns:
            The scheduled task, or None when the text was already measured
        """
        self.texts[field] = text
        if self.store is not None:
            self.store.save_text(field.value, text)
        return self._debouncer.schedule(field, text)

    async def settle(self) -> None:
        """Wait for pending text measurements."""
        await self._debouncer.flush()

    def measure_now(self, field: TextField, text: str) -> int:
        """Measure a text body immediately and use it as the field's quantity.

        Raises:
            TokenizerUnavailable: In tokens mode when the tokenizer is not loaded
        """
        count = measure_text(text, self.usage.unit_mode, self.counter)
        updated = self._counted_usage(field, count)
        if updated is None:
            return count
        self.texts[field] = text
        if self.store is not None:
            self.store.save_text(field.value, text)
        self._set_usage(updated)
        return count

    def generate_output(self, client: TextSource, prompt: str) -> int:
        """Fetch generated text and use its size as the output quantity.

        On failure nothing changes and the error propagates.

        Returns:
            Output quantity measured from the generated text
        """
        text = client.generate(prompt)
        return self.measure_now(TextField.OUTPUT, text)

    async def _measure_async(self, text: str) -> int:
        return await measure_text_async(text, self.usage.unit_mode, self.counter)

    def _deliver_measurement(self, field: TextField, text: str, count: int) -> None:
        self._apply_count(field, count)

    def _measurement_failed(self, field: TextField, error: BaseException) -> None:
        logger.warning("Measuring %s text failed: %s", field.name.lower(), error)
        if self._on_measure_error is not None:
            self._on_measure_error(field, error)

    def _apply_count(self, field: TextField, count: int) -> None:
        updated = self._counted_usage(field, count)
        if updated is not None:
            self._set_usage(updated)

    def _counted_usage(self, field: TextField, count: int) -> Optional[UsageInput]:
        """Usage with a measured count applied, or None when out of range."""
        updated = apply_edit(self.usage, field.value, count)
        if updated is self.usage:
            logger.warning("Measured %s count %d is out of range, keeping %s",
                           field.name.lower(), count, getattr(self.usage, field.value))
            return None
        return updated

    def _set_usage(self, usage: UsageInput) -> None:
        self.usage = usage
        if self.store is not None:
            self.store.save_usage(usage)
        self.recompute()
