"""Fixed-interval reconciliation loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

log = logging.getLogger("courierdesk.poller")


class PollScheduler:
    """Run ``cycle`` immediately and then every ``interval`` seconds.

    Cycles never overlap: the interval is measured from the end of one cycle
    to the start of the next, and :meth:`run_once` serialises manual refreshes
    against scheduled ones. :meth:`stop` does not cancel a cycle in progress;
    it waits for it to finish and skips the next one.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[Any]],
        interval: float,
        *,
        name: str = "orders.poll",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._cycle = cycle
        self.interval = interval
        self.name = name
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self.cycles = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        log.info("Polling started (every %.1fs)", self.interval)

    async def run_once(self) -> None:
        async with self._lock:
            try:
                await self._cycle()
            except Exception:
                log.exception("Poll cycle failed; next cycle retries")
            finally:
                self.cycles += 1

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        self._stopping.set()
        await task
        log.info("Polling stopped after %d cycle(s)", self.cycles)
