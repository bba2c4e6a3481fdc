"""Classification cache keyed by a lossy text prefix.

Two snippets sharing the same normalised prefix share one entry; the cache
is only ever cleared wholesale.
"""

from __future__ import annotations

import unicodedata

from langfilter.config import settings
from langfilter.models import ClassificationResult


class ClassificationCache:
    def __init__(self, key_length: int | None = None) -> None:
        self.key_length = key_length or settings.cache_key_length
        self._entries: dict[str, ClassificationResult] = {}

    def key_for(self, text: str) -> str:
        return unicodedata.normalize("NFC", text).strip()[: self.key_length]

    def get(self, text: str) -> ClassificationResult | None:
        return self._entries.get(self.key_for(text))

    def put(self, text: str, result: ClassificationResult) -> None:
        self._entries[self.key_for(text)] = result

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, text: str) -> bool:
        return self.key_for(text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
