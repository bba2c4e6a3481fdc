"""Incremental scheduling of discovered items.

Items reported by the change-watcher are deduplicated into a queue.  A
debounce timer collapses bursts of discoveries into one drain; the drain
classifies the queue in fixed-size batches, one batch at a time, yielding
briefly between batches.

State machine::

    Idle → Debouncing → Draining → (Idle | Draining)

Every step re-checks the epoch it was started under.  Work belonging to a
superseded generation stops without touching the queue, the renderer or
any item's processed marker.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from langfilter.config import settings
from langfilter.items import ItemHandle
from langfilter.logger import log_decision
from langfilter.models import FilterDecision
from langfilter.pipeline.context import FilterContext
from langfilter.pipeline.hybrid import HybridClassifier
from langfilter.pipeline.policy import should_filter
from langfilter.renderer import Renderer

_log = logging.getLogger("langfilter.scheduler")


class IncrementalScheduler:
    def __init__(
        self,
        context: FilterContext,
        classifier: HybridClassifier,
        renderer: Renderer,
        discover: Callable[[], Iterable[ItemHandle]],
        debounce_ms: int | None = None,
        batch_size: int | None = None,
        batch_yield_ms: int | None = None,
    ) -> None:
        self._context = context
        self._classifier = classifier
        self._renderer = renderer
        self._discover = discover

        self._debounce_s = (debounce_ms if debounce_ms is not None else settings.debounce_ms) / 1000.0
        self._batch_size = batch_size or settings.batch_size
        self._yield_s = (
            batch_yield_ms if batch_yield_ms is not None else settings.batch_yield_ms
        ) / 1000.0

        self._queue: list[ItemHandle] = []
        self._queued: set[ItemHandle] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._is_draining = False
        self._drain_token: object | None = None
        self._tasks: set[asyncio.Task] = set()

    # ── Introspection ──────────────────────────────────────────────────────

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._is_draining

    @property
    def state(self) -> str:
        if self._is_draining:
            return "draining"
        if self._timer is not None:
            return "debouncing"
        return "idle"

    def is_queued(self, item: ItemHandle) -> bool:
        return item in self._queued

    # ── Enqueue / debounce ─────────────────────────────────────────────────

    def enqueue(self, items: Iterable[ItemHandle], epoch: int) -> int:
        """Queue unseen *items* under *epoch*; returns how many were added."""
        if not self._context.tracker.is_current(epoch):
            return 0

        added = 0
        for item in items:
            if item.processed or item in self._queued:
                continue
            self._queue.append(item)
            self._queued.add(item)
            added += 1

        self._restart_timer(epoch)
        return added

    def _restart_timer(self, epoch: int) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_s, self._on_debounce, epoch)

    def _on_debounce(self, epoch: int) -> None:
        self._timer = None
        if not self._context.tracker.is_current(epoch):
            return
        if self._is_draining or not self._queue:
            # A running drain picks up everything already queued.
            return

        token = object()
        self._is_draining = True
        self._drain_token = token
        task = asyncio.get_running_loop().create_task(self._drain(epoch, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ── Draining ───────────────────────────────────────────────────────────

    async def _drain(self, epoch: int, token: object) -> None:
        tracker = self._context.tracker
        try:
            while self._queue and tracker.is_current(epoch):
                batch = self._queue[: self._batch_size]
                del self._queue[: self._batch_size]
                for item in batch:
                    self._queued.discard(item)

                await self._process_batch(batch, epoch)

                if self._queue and tracker.is_current(epoch):
                    await asyncio.sleep(self._yield_s)

            if not tracker.is_current(epoch):
                _log.debug("Drain for epoch %d abandoned", epoch)
        finally:
            if self._drain_token is token:
                self._is_draining = False
                self._drain_token = None

    async def _process_batch(self, batch: list[ItemHandle], epoch: int) -> None:
        outcomes = await asyncio.gather(
            *(self._process_item(item, epoch) for item in batch),
            return_exceptions=True,
        )
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                _log.warning("Processing item %s failed: %s", item.item_id, outcome)

    async def _process_item(self, item: ItemHandle, epoch: int) -> None:
        tracker = self._context.tracker
        if not tracker.is_current(epoch):
            return
        if not self._context.settings.enabled:
            return

        try:
            text = item.get_text()
        except Exception as exc:
            _log.debug("No text for item %s: %s", item.item_id, exc)
            text = None
        if not text:
            item.processed = True
            return

        result = await self._classifier.classify(text, epoch)
        if not tracker.is_current(epoch):
            return

        current = self._context.settings
        decision = FilterDecision(
            item_id=item.item_id,
            filtered=should_filter(result, current),
            mode=current.mode,
            display_label=f"Hidden (language: {result.display_lang})",
        )
        self._renderer.apply(decision)
        log_decision(decision, result, epoch)
        item.processed = True

    # ── Reset / rescan ─────────────────────────────────────────────────────

    def reset_all(self) -> None:
        """Drop the pending timer, the queue and the draining flag."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._queue.clear()
        self._queued.clear()
        self._is_draining = False
        self._drain_token = None

    def reprocess_all(self) -> int:
        """Start a new generation and classify every known item again."""
        self.reset_all()
        epoch = self._context.tracker.bump()

        items = list(self._discover())
        for item in items:
            item.processed = False
            self._renderer.reset(item.item_id)
        self._context.cache.clear()

        if self._context.settings.enabled and items:
            self.enqueue(items, epoch)
        _log.info("Reprocessing %d items under epoch %d", len(items), epoch)
        return epoch

    async def join(self) -> None:
        """Wait until no debounce is pending and no drain is running."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                continue
            if self._timer is not None:
                await asyncio.sleep(self._debounce_s)
                continue
            return
