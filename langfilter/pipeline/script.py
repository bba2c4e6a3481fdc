"""Stage 1 – Script-based heuristic language classification.

Counts characters per Unicode script bucket (Hangul, Hiragana, Katakana,
Han, Latin) and applies an ordered rule list.  The first matching rule
wins; later rules assume earlier ones did not fire.

Hangul presence always precludes a Japanese verdict, and so does the absence
of kana: Korean laughter markers written in compatibility Jamo (``ㅋㅋ``)
are easily mistaken for Japanese by statistical detectors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from langfilter.models import Confidence

UNCERTAIN = "uncertain"
UNKNOWN = "unknown"

# Syllables, Jamo and compatibility Jamo
_HANGUL = re.compile(r"[\uac00-\ud7a3\u1100-\u11ff\u3130-\u318f]")
_HIRAGANA = re.compile(r"[\u3040-\u309f]")
_KATAKANA = re.compile(r"[\u30a0-\u30ff\u31f0-\u31ff]")
_HAN = re.compile(r"[\u4e00-\u9fff]")
_LATIN = re.compile(r"[A-Za-z]")
_URL = re.compile(r"https?://\S+")


@dataclass(frozen=True)
class ScriptCounts:
    hangul: int
    hiragana: int
    katakana: int
    han: int
    latin: int

    @property
    def kana(self) -> int:
        return self.hiragana + self.katakana

    @property
    def total(self) -> int:
        return self.hangul + self.kana + self.han + self.latin


@dataclass(frozen=True)
class ScriptVerdict:
    lang: str
    confidence: Confidence

    @property
    def is_decisive(self) -> bool:
        return self.lang not in (UNCERTAIN, UNKNOWN)


def count_scripts(text: str) -> ScriptCounts:
    """Return per-bucket character counts for *text* (no URL stripping)."""
    return ScriptCounts(
        hangul=len(_HANGUL.findall(text)),
        hiragana=len(_HIRAGANA.findall(text)),
        katakana=len(_KATAKANA.findall(text)),
        han=len(_HAN.findall(text)),
        latin=len(_LATIN.findall(text)),
    )


def classify_script(text: str) -> ScriptVerdict:
    """Classify *text* by script evidence alone.

    Returns ``unknown`` when fewer than two script characters remain after
    stripping URLs, and ``uncertain`` when the evidence is ambiguous enough
    to warrant the fallback detector.
    """
    normalised = _URL.sub("", text).strip()
    c = count_scripts(normalised)
    total = c.total

    if total < 2:
        return ScriptVerdict(UNKNOWN, Confidence.LOW)

    hangul_ratio = c.hangul / total
    kana_ratio = c.kana / total
    han_ratio = c.han / total
    latin_ratio = c.latin / total

    # Korean
    if c.hangul >= 2 and (hangul_ratio >= 0.20 or c.hangul > c.kana):
        return ScriptVerdict("ko", Confidence.HIGH)
    if c.hangul >= 1 and c.kana == 0 and c.han == 0:
        return ScriptVerdict("ko", Confidence.MEDIUM)

    # Japanese – only with kana and without Hangul
    if c.kana >= 2 and c.hangul == 0 and kana_ratio >= 0.10:
        return ScriptVerdict("ja", Confidence.HIGH)
    if c.kana >= 1 and c.hangul >= 1:
        return ScriptVerdict(UNCERTAIN, Confidence.LOW)

    no_cjk = c.hangul == 0 and c.kana == 0

    # Chinese
    if c.han >= 2 and no_cjk:
        if han_ratio >= 0.30 or (han_ratio >= 0.20 and latin_ratio < 0.50):
            return ScriptVerdict("zh", Confidence.MEDIUM)

    # Latin
    if latin_ratio >= 0.30 and no_cjk and c.han == 0:
        return ScriptVerdict("en", Confidence.HIGH)
    if latin_ratio >= 0.50 and (c.hangul + c.kana + c.han) <= 1:
        return ScriptVerdict("en", Confidence.MEDIUM)

    # Mixed Han + Latin
    if c.han >= 1 and c.latin >= 1 and no_cjk:
        if han_ratio > latin_ratio:
            return ScriptVerdict("zh", Confidence.LOW)
        return ScriptVerdict(UNCERTAIN, Confidence.LOW)

    return ScriptVerdict(UNCERTAIN, Confidence.LOW)
