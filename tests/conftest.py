"""Shared fixtures.

Environment overrides must be in place before ``langfilter.config`` is
imported: decisions are logged to a temp file and the real ``langdetect``
capability is switched off for the HTTP surface.
"""

from __future__ import annotations

import asyncio
import os
import tempfile

os.environ["LOG_PATH"] = os.path.join(tempfile.gettempdir(), "langfilter-test-decisions.log")
os.environ["USE_FALLBACK_DETECTOR"] = "false"
os.environ["INITIAL_CONTEXT"] = "watch"
os.environ["SETTINGS_FILE"] = ""

import pytest

from langfilter.models import FilterSettings, ItemPayload
from langfilter.pipeline.fallback import DetectionReport, LanguageCandidate

# ── Sample texts ────────────────────────────────────────────────────────────

KOREAN = "한글댓글예시 ㅋㅋㅋㅋ"
ENGLISH = "hello world, nice video!"
EMOJI_ONLY = "😂😂👍!!! ???"
# Two kana against thirty Han: too little kana for a Japanese verdict.
SPARSE_KANA = "の" + "漢" * 30 + "に"
# Han plus one Hangul syllable, no kana.
HAN_WITH_HANGUL = "韓國語 한"


class FakeCapability:
    """Stand-in for the external language-guessing capability."""

    def __init__(self, languages: list[tuple[str, float]] | None = None) -> None:
        self.languages = languages or []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.started: asyncio.Event | None = None
        self.samples: list[str] = []
        self.on_call = None

    @property
    def calls(self) -> int:
        return len(self.samples)

    def block(self) -> None:
        """Make every call wait until ``release()``; must run inside a loop."""
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    def release(self) -> None:
        self.gate.set()

    async def detect_language(self, sample: str) -> DetectionReport | None:
        self.samples.append(sample)
        if self.started is not None:
            self.started.set()
        if self.error is not None:
            raise self.error
        if self.gate is not None:
            await self.gate.wait()
        if self.on_call is not None:
            self.on_call()
        return DetectionReport(
            languages=[
                LanguageCandidate(language=code, percentage=pct)
                for code, pct in self.languages
            ]
        )


@pytest.fixture
def capability() -> FakeCapability:
    return FakeCapability()


@pytest.fixture
def english_only() -> FilterSettings:
    return FilterSettings(allowed_langs={"en"})


def payloads(*pairs: tuple[str, str | None]) -> list[ItemPayload]:
    return [ItemPayload(id=item_id, text=text) for item_id, text in pairs]
