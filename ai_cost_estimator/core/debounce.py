"""
Debounced text measurement.

Each text edit schedules a measurement after a short delay and cancels
the pending one for the same field, so only the latest edit is measured.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.2

Measure = Callable[[str], Awaitable[int]]
Deliver = Callable[[Hashable, str, int], None]
Fail = Callable[[Hashable, BaseException], None]


class Debouncer:
    """Per-field cancellable scheduled measurements.

    Results are handed to ``deliver`` only for the most recent edit of a
    field. Scheduling the text last measured for a field is a no-op.
    """

    def __init__(
        self,
        measure: Measure,
        deliver: Deliver,
        on_error: Optional[Fail] = None,
        delay: float = DEFAULT_DELAY_SECONDS,
    ):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._measure = measure
        self._deliver = deliver
        self._on_error = on_error
        self._pending: Dict[Hashable, asyncio.Task] = {}
        self._pending_text: Dict[Hashable, str] = {}
        self._measured_text: Dict[Hashable, str] = {}

    def schedule(self, field: Hashable, text: str) -> Optional[asyncio.Task]:
        """Schedule a measurement of text for field.

        Must be called from a running event loop.

        Returns:
            The scheduled task, or None when nothing needs measuring
        """
        pending = self._pending.get(field)
        if pending is not None and not pending.done():
            if self._pending_text.get(field) == text:
                return pending
            pending.cancel()
            self._clear(field)
            logger.debug("Cancelled pending measurement for %s", field)
        if self._measured_text.get(field) == text:
            return None

        task = asyncio.get_running_loop().create_task(self._run(field, text))
        self._pending[field] = task
        self._pending_text[field] = text
        return task

    def cancel(self, field: Optional[Hashable] = None) -> None:
        """Cancel the pending measurement for one field, or all of them."""
        targets = list(self._pending) if field is None else [field]
        for key in targets:
            task = self._pending.pop(key, None)
            self._pending_text.pop(key, None)
            if task is not None and not task.done():
                task.cancel()

    def forget(self, field: Hashable) -> None:
        """Drop the remembered text so the next schedule measures again."""
        self._measured_text.pop(field, None)

    async def flush(self) -> None:
        """Wait for every pending measurement to finish."""
        tasks = [task for task in self._pending.values() if not task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, field: Hashable, text: str) -> None:
        await asyncio.sleep(self.delay)
        try:
            count = await self._measure(text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._pending.get(field) is asyncio.current_task():
                self._clear(field)
            if self._on_error is None:
                raise
            self._on_error(field, e)
            return

        if self._pending.get(field) is not asyncio.current_task():
            return
        self._clear(field)
        self._measured_text[field] = text
        self._deliver(field, text, count)

    def _clear(self, field: Hashable) -> None:
        self._pending.pop(field, None)
        self._pending_text.pop(field, None)
