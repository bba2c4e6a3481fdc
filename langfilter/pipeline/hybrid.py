"""Hybrid classification – cache → script heuristic → fallback detector.

Cached results are generation-agnostic: they are a pure function of the
text prefix and stay valid until the cache is cleared wholesale.  A
fallback call that produced no answer (detector unavailable, or the epoch
went stale while waiting) is *not* cached, so a transient failure cannot
pin a text to ``unknown`` for the rest of the session.
"""

from __future__ import annotations

import logging

from langfilter.models import ClassificationResult
from langfilter.pipeline.context import FilterContext
from langfilter.pipeline.fallback import FallbackDetectorAdapter
from langfilter.pipeline.script import UNKNOWN, classify_script

_log = logging.getLogger("langfilter.hybrid")


class HybridClassifier:
    def __init__(self, context: FilterContext, fallback: FallbackDetectorAdapter) -> None:
        self._context = context
        self._fallback = fallback

    async def classify(self, text: str, epoch: int) -> ClassificationResult:
        cache = self._context.cache
        cached = cache.get(text)
        if cached is not None:
            return cached

        heuristic = classify_script(text)
        if heuristic.is_decisive:
            result = ClassificationResult(
                lang=heuristic.lang,
                is_unknown=False,
                confidence=heuristic.confidence,
            )
            cache.put(text, result)
            return result

        if heuristic.lang == UNKNOWN:
            result = ClassificationResult.unknown()
            cache.put(text, result)
            return result

        report = await self._fallback.detect(text, epoch)
        if report is None:
            _log.debug("No fallback answer for epoch %d; result left uncached", epoch)
            return ClassificationResult.unknown()

        result = self._fallback.verdict(report, text)
        cache.put(text, result)
        return result
