"""Item handles and the in-memory comment collection.

The core never looks inside an item beyond three capabilities: identity,
a ``processed`` marker and text extraction.  ``CommentCollection`` stands in
for the host's change-watcher and keeps one handle per comment id, so the
same comment reported twice is the same object and dedups by identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from langfilter.models import ItemPayload
from langfilter.text import extract_text


class ItemHandle(Protocol):
    item_id: str
    processed: bool

    def get_text(self) -> str | None:
        ...


@dataclass(eq=False)
class CommentItem:
    item_id: str
    text: str | None = None
    html: str | None = None
    processed: bool = False

    def get_text(self) -> str | None:
        if self.text and self.text.strip():
            return self.text.strip()
        if self.html:
            return extract_text(self.html) or None
        return None


class CommentCollection:
    """Comments known on the current page, in discovery order."""

    def __init__(self) -> None:
        self._items: dict[str, CommentItem] = {}

    def upsert(self, payloads: Iterable[ItemPayload]) -> list[CommentItem]:
        """Register *payloads* and return their handles.

        Known ids keep their existing handle (and processed marker).
        """
        handles: list[CommentItem] = []
        for payload in payloads:
            item = self._items.get(payload.id)
            if item is None:
                item = CommentItem(item_id=payload.id, text=payload.text, html=payload.html)
                self._items[payload.id] = item
            handles.append(item)
        return handles

    def get(self, item_id: str) -> CommentItem | None:
        return self._items.get(item_id)

    def all(self) -> list[CommentItem]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
