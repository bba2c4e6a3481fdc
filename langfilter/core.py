"""Filter core – wires the pipeline to its collaborators.

One ``FilterCore`` owns everything that lives for the duration of a page
session: the settings snapshot, the generation tracker, the cache, the
scheduler, the renderer and the collection of known comments.  Commands
from the host (settings update, rescan, navigation, ping) arrive here.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from langfilter.config import settings
from langfilter.items import CommentCollection
from langfilter.models import (
    ClassificationResult,
    FilterSettings,
    ItemPayload,
    PingResponse,
)
from langfilter.pipeline.context import FilterContext
from langfilter.pipeline.fallback import (
    FallbackDetectorAdapter,
    LangdetectCapability,
    LanguageCapability,
)
from langfilter.pipeline.hybrid import HybridClassifier
from langfilter.pipeline.policy import should_filter
from langfilter.pipeline.scheduler import IncrementalScheduler
from langfilter.renderer import MemoryRenderer

_log = logging.getLogger("langfilter.core")


def build_capability() -> LanguageCapability | None:
    """Return the configured fallback capability, or ``None`` when disabled."""
    if not settings.use_fallback_detector:
        return None
    return LangdetectCapability()


def load_settings_file(filepath: str) -> FilterSettings:
    """Load a persisted settings snapshot, defaulting on any problem."""
    path = Path(filepath)
    try:
        return FilterSettings.model_validate_json(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        _log.warning("Settings file not found: %s", filepath)
    except (OSError, ValidationError) as exc:
        _log.error("Error loading settings file %s: %s", filepath, exc)
    return FilterSettings()


def save_settings_file(filepath: str, snapshot: FilterSettings) -> None:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        snapshot.model_dump_json(by_alias=True, indent=2),
        encoding="utf-8",
    )


class FilterCore:
    def __init__(
        self,
        capability: LanguageCapability | None,
        filter_settings: FilterSettings | None = None,
        renderer: MemoryRenderer | None = None,
        debounce_ms: int | None = None,
        batch_size: int | None = None,
        batch_yield_ms: int | None = None,
    ) -> None:
        self.context = FilterContext(settings=filter_settings or FilterSettings())
        self.collection = CommentCollection()
        self.renderer = renderer or MemoryRenderer()
        self.fallback = FallbackDetectorAdapter(capability, self.context.tracker)
        self.classifier = HybridClassifier(self.context, self.fallback)
        self.scheduler = IncrementalScheduler(
            self.context,
            self.classifier,
            self.renderer,
            self.collection.all,
            debounce_ms=debounce_ms,
            batch_size=batch_size,
            batch_yield_ms=batch_yield_ms,
        )
        self.context_id: str | None = None

    @property
    def filter_settings(self) -> FilterSettings:
        return self.context.settings

    @property
    def epoch(self) -> int:
        return self.context.tracker.current

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def activate(self, context_id: str | None) -> int:
        """Initial activation: first generation, discover what is known."""
        self.scheduler.reset_all()
        self.context_id = context_id
        epoch = self.context.tracker.bump()
        items = self.collection.all()
        if self.filter_settings.enabled and items:
            self.scheduler.enqueue(items, epoch)
        _log.info("Activated for context %r (epoch %d)", context_id, epoch)
        return epoch

    def navigate(self, context_id: str | None) -> int:
        """Switch to a new page; everything from the old one is discarded."""
        self.scheduler.reset_all()
        for item in self.collection.all():
            self.renderer.reset(item.item_id)
        self.collection.clear()
        self.context_id = context_id
        epoch = self.context.tracker.bump()
        _log.info("Navigated to context %r (epoch %d)", context_id, epoch)
        return epoch

    # ── Change-watcher entry ───────────────────────────────────────────────

    def discover(self, payloads: Iterable[ItemPayload]) -> tuple[int, int]:
        """Register discovered comments; returns ``(received, queued)``."""
        if self.context_id is None:
            return 0, 0
        handles = self.collection.upsert(payloads)
        if not self.filter_settings.enabled:
            return len(handles), 0
        queued = self.scheduler.enqueue(handles, self.epoch)
        return len(handles), queued

    # ── Commands ───────────────────────────────────────────────────────────

    def apply_settings(self, snapshot: FilterSettings) -> int:
        self.context.settings = snapshot
        _log.info(
            "Settings updated: enabled=%s allowed=%s mode=%s hide_unknown=%s",
            snapshot.enabled,
            sorted(snapshot.allowed_langs),
            snapshot.mode.value,
            snapshot.hide_unknown,
        )
        return self.scheduler.reprocess_all()

    def rescan(self) -> int:
        return self.scheduler.reprocess_all()

    def ping(self) -> PingResponse:
        return PingResponse(ok=True, context=self.context_id, ts=int(time.time() * 1000))

    async def classify(self, text: str) -> tuple[ClassificationResult, bool]:
        """Classify *text* under the current epoch and settings."""
        result = await self.classifier.classify(text, self.epoch)
        return result, should_filter(result, self.filter_settings)
