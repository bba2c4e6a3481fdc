"""Generation (epoch) tracking – cooperative cancellation for async work.

Every asynchronous operation captures the epoch that was current when it
started and re-checks it after each suspension point.  Once a newer epoch
has been installed, stale work keeps running but must suppress every
externally visible effect.
"""

from __future__ import annotations

import asyncio


class GenerationTracker:
    """Single monotonically increasing epoch counter."""

    def __init__(self) -> None:
        self._epoch = 0
        self._superseded: asyncio.Event | None = None

    @property
    def current(self) -> int:
        return self._epoch

    def bump(self) -> int:
        """Install a new generation and return its epoch."""
        self._epoch += 1
        if self._superseded is not None:
            self._superseded.set()
            self._superseded = None
        return self._epoch

    def is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    async def wait_superseded(self, epoch: int) -> None:
        """Return once *epoch* is no longer the current generation."""
        if not self.is_current(epoch):
            return
        if self._superseded is None:
            self._superseded = asyncio.Event()
        await self._superseded.wait()
