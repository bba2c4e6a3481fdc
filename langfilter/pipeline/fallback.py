"""Stage 2 – Fallback language detection.

Only consulted when the script heuristic is inconclusive.  The external
capability is asynchronous and may be unavailable, may raise, or may never
answer once the generation that asked has been superseded.  Every one of
those outcomes collapses to "no result" (``None``), which callers treat
exactly like the detector declining to answer.

A real answer is then checked against script evidence from the *full*
text, so the detector can never report Japanese for text without kana or
Korean for text without Hangul.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from langdetect import DetectorFactory, LangDetectException, detect_langs, detector_factory
from pydantic import BaseModel, Field

from langfilter.config import settings
from langfilter.models import ClassificationResult, Confidence
from langfilter.pipeline.generation import GenerationTracker
from langfilter.pipeline.script import count_scripts

_log = logging.getLogger("langfilter.fallback")


class DetectionUnavailable(Exception):
    """The fallback capability cannot answer right now."""


class LanguageCandidate(BaseModel):
    language: str
    percentage: float = Field(..., ge=0.0, le=100.0)


class DetectionReport(BaseModel):
    languages: list[LanguageCandidate] = Field(default_factory=list)


class LanguageCapability(Protocol):
    async def detect_language(self, sample: str) -> DetectionReport | None:
        ...


# ── langdetect-backed capability ───────────────────────────────────────────

class LangdetectCapability:
    """Capability backed by the ``langdetect`` library.

    ``langdetect`` is CPU-bound and synchronous, so it runs in a worker
    thread.  Probabilities are scaled to percentages.

    Profiles are loaded eagerly on the constructing thread; the library's
    own lazy load is not safe to race from worker threads.
    """

    def __init__(self, seed: int | None = None) -> None:
        DetectorFactory.seed = settings.langdetect_seed if seed is None else seed
        detector_factory.init_factory()

    async def detect_language(self, sample: str) -> DetectionReport | None:
        if not sample.strip():
            return None
        try:
            guesses = await asyncio.to_thread(detect_langs, sample)
        except LangDetectException as exc:
            raise DetectionUnavailable(str(exc)) from exc
        return DetectionReport(
            languages=[
                LanguageCandidate(language=g.lang, percentage=round(g.prob * 100, 2))
                for g in guesses
            ]
        )


def normalize_language_code(code: str) -> str:
    """``"zh-cn"`` → ``"zh"``; ``"EN"`` → ``"en"``."""
    return code.split("-", 1)[0].strip().lower()


def validate_against_script(lang: str, text: str) -> bool:
    """Reject verdicts contradicted by the script make-up of *text*."""
    counts = count_scripts(text)
    if lang == "ja":
        if counts.hangul > 0 and counts.kana == 0:
            return False
        if counts.kana == 0:
            return False
    if lang == "ko" and counts.hangul == 0:
        return False
    return True


# ── Adapter ────────────────────────────────────────────────────────────────

class FallbackDetectorAdapter:
    """Epoch-aware wrapper around a :class:`LanguageCapability`."""

    def __init__(
        self,
        capability: LanguageCapability | None,
        tracker: GenerationTracker,
        sample_length: int | None = None,
        min_percentage: float | None = None,
        high_percentage: float | None = None,
    ) -> None:
        self._capability = capability
        self._tracker = tracker
        self._abandoned: set[asyncio.Future] = set()
        self.sample_length = sample_length or settings.sample_length
        self.min_percentage = (
            settings.fallback_min_percentage if min_percentage is None else min_percentage
        )
        self.high_percentage = (
            settings.fallback_high_percentage if high_percentage is None else high_percentage
        )

    @property
    def available(self) -> bool:
        return self._capability is not None

    async def detect(self, text: str, epoch: int) -> DetectionReport | None:
        """Ask the capability about *text*; ``None`` means no usable answer."""
        if self._capability is None or not self._tracker.is_current(epoch):
            return None

        sample = text[: self.sample_length]
        call = asyncio.ensure_future(self._call(sample))
        superseded = asyncio.ensure_future(self._tracker.wait_superseded(epoch))
        try:
            await asyncio.wait({call, superseded}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            superseded.cancel()

        if not call.done():
            # Abandoned by a newer generation; the call finishes on its own.
            self._abandoned.add(call)
            call.add_done_callback(self._abandoned.discard)
            return None
        report = call.result()
        if not self._tracker.is_current(epoch):
            return None
        return report

    async def _call(self, sample: str) -> DetectionReport | None:
        try:
            return await self._capability.detect_language(sample)
        except DetectionUnavailable as exc:
            _log.debug("Fallback detector declined: %s", exc)
        except Exception as exc:
            _log.debug("Fallback detector failed: %s", exc)
        return None

    def verdict(self, report: DetectionReport, text: str) -> ClassificationResult:
        """Turn a detector report into a result, validated against *text*."""
        if not report.languages:
            return ClassificationResult.unknown()

        top = report.languages[0]
        for candidate in report.languages[1:]:
            if candidate.percentage > top.percentage:
                top = candidate

        lang = normalize_language_code(top.language)
        if not validate_against_script(lang, text):
            _log.debug("Rejected fallback verdict %r against script evidence", lang)
            return ClassificationResult.unknown()
        if top.percentage < self.min_percentage:
            return ClassificationResult.unknown()

        confidence = (
            Confidence.HIGH if top.percentage >= self.high_percentage else Confidence.MEDIUM
        )
        return ClassificationResult(lang=lang, is_unknown=False, confidence=confidence)
