"""Fallback adapter: sampling, candidate choice, validation and staleness."""

from __future__ import annotations

import asyncio

import pytest
from langdetect import detector_factory

from conftest import HAN_WITH_HANGUL, KOREAN, SPARSE_KANA
from langfilter.models import ClassificationResult, Confidence
from langfilter.pipeline.fallback import (
    DetectionReport,
    DetectionUnavailable,
    FallbackDetectorAdapter,
    LangdetectCapability,
    LanguageCandidate,
    normalize_language_code,
    validate_against_script,
)
from langfilter.pipeline.generation import GenerationTracker


def _adapter(capability, tracker=None) -> FallbackDetectorAdapter:
    return FallbackDetectorAdapter(
        capability,
        tracker or GenerationTracker(),
        sample_length=200,
        min_percentage=40,
        high_percentage=70,
    )


def _report(*pairs: tuple[str, float]) -> DetectionReport:
    return DetectionReport(
        languages=[LanguageCandidate(language=c, percentage=p) for c, p in pairs]
    )


# ── detect() ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_detect_truncates_sample(capability):
    capability.languages = [("ja", 90)]
    tracker = GenerationTracker()
    epoch = tracker.bump()

    report = await _adapter(capability, tracker).detect("の" * 500, epoch)

    assert report is not None
    assert capability.samples == ["の" * 200]


@pytest.mark.asyncio
async def test_detect_without_capability_is_no_result():
    tracker = GenerationTracker()
    adapter = _adapter(None, tracker)
    assert adapter.available is False
    assert await adapter.detect(SPARSE_KANA, tracker.bump()) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [RuntimeError("context invalidated"), DetectionUnavailable("no features")])
async def test_detect_absorbs_capability_errors(capability, error):
    capability.error = error
    tracker = GenerationTracker()
    assert await _adapter(capability, tracker).detect(SPARSE_KANA, tracker.bump()) is None


@pytest.mark.asyncio
async def test_detect_with_stale_epoch_does_not_call_capability(capability):
    tracker = GenerationTracker()
    stale = tracker.bump()
    tracker.bump()
    assert await _adapter(capability, tracker).detect(SPARSE_KANA, stale) is None
    assert capability.calls == 0


@pytest.mark.asyncio
async def test_detect_discards_answer_arriving_after_bump(capability):
    tracker = GenerationTracker()
    epoch = tracker.bump()
    capability.languages = [("ja", 95)]
    capability.on_call = tracker.bump

    assert await _adapter(capability, tracker).detect(SPARSE_KANA, epoch) is None


@pytest.mark.asyncio
async def test_detect_stops_waiting_on_hung_capability_once_superseded(capability):
    tracker = GenerationTracker()
    epoch = tracker.bump()
    capability.languages = [("ja", 95)]
    capability.block()

    task = asyncio.create_task(_adapter(capability, tracker).detect(SPARSE_KANA, epoch))
    await capability.started.wait()
    tracker.bump()

    assert await asyncio.wait_for(task, timeout=1.0) is None
    capability.release()
    await asyncio.sleep(0)


# ── verdict() ───────────────────────────────────────────────────────────────

def test_verdict_picks_highest_percentage():
    adapter = _adapter(None)
    result = adapter.verdict(_report(("zh-cn", 30), ("ja", 80), ("ko", 10)), SPARSE_KANA)
    assert result == ClassificationResult(lang="ja", is_unknown=False, confidence=Confidence.HIGH)


def test_verdict_ties_go_to_first_seen():
    adapter = _adapter(None)
    result = adapter.verdict(_report(("fr", 50), ("es", 50)), "bonjour")
    assert result.lang == "fr"
    assert result.confidence is Confidence.MEDIUM


@pytest.mark.parametrize(
    "percentage, expected",
    [
        (39.9, ClassificationResult.unknown()),
        (40, ClassificationResult(lang="ja", is_unknown=False, confidence=Confidence.MEDIUM)),
        (69.9, ClassificationResult(lang="ja", is_unknown=False, confidence=Confidence.MEDIUM)),
        (70, ClassificationResult(lang="ja", is_unknown=False, confidence=Confidence.HIGH)),
    ],
)
def test_verdict_thresholds(percentage, expected):
    assert _adapter(None).verdict(_report(("ja", percentage)), SPARSE_KANA) == expected


def test_verdict_rejects_japanese_without_kana():
    adapter = _adapter(None)
    assert adapter.verdict(_report(("ja", 99)), HAN_WITH_HANGUL) == ClassificationResult.unknown()
    assert adapter.verdict(_report(("ja", 99)), "漢字漢字漢字") == ClassificationResult.unknown()


def test_verdict_rejects_korean_without_hangul():
    assert _adapter(None).verdict(_report(("ko", 99)), SPARSE_KANA) == ClassificationResult.unknown()


def test_verdict_validates_against_untruncated_text():
    # Hangul only appears beyond the sample window.
    text = "漢" * 250 + "한국"
    assert _adapter(None).verdict(_report(("ko", 90)), text).lang == "ko"


def test_verdict_on_empty_report_is_unknown():
    assert _adapter(None).verdict(DetectionReport(), SPARSE_KANA) == ClassificationResult.unknown()


@pytest.mark.parametrize(
    "code, expected",
    [("zh-CN", "zh"), ("zh-Hant", "zh"), ("EN", "en"), ("pt-BR", "pt"), ("ko", "ko")],
)
def test_normalize_language_code(code, expected):
    assert normalize_language_code(code) == expected


def test_validate_against_script():
    assert validate_against_script("ko", KOREAN)
    assert not validate_against_script("ja", KOREAN)
    assert validate_against_script("ja", SPARSE_KANA)
    assert validate_against_script("zh", "anything")


# ── langdetect capability ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_langdetect_capability_reports_percentages():
    capability = LangdetectCapability(seed=0)
    report = await capability.detect_language(
        "Bonjour tout le monde, comment allez-vous aujourd'hui? Merci beaucoup."
    )
    assert report is not None
    assert report.languages[0].language == "fr"
    assert report.languages[0].percentage > 40


@pytest.mark.asyncio
async def test_langdetect_capability_without_features_is_unavailable():
    capability = LangdetectCapability(seed=0)
    assert await capability.detect_language("   ") is None
    with pytest.raises(DetectionUnavailable):
        await capability.detect_language("12345 !!! 67890")


@pytest.mark.asyncio
async def test_langdetect_capability_is_stable_on_concurrent_first_use(monkeypatch):
    monkeypatch.setattr(detector_factory, "_factory", None)
    capability = LangdetectCapability(seed=0)
    text = "Bonjour tout le monde, comment allez-vous aujourd'hui? Merci beaucoup."

    reports = await asyncio.gather(*(capability.detect_language(text) for _ in range(20)))

    assert [report.languages[0].language for report in reports] == ["fr"] * 20
