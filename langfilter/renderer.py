"""Presentation of filter decisions.

The core hands every decision to a :class:`Renderer`; the renderer owns the
presentation state.  Collapsed items form a small state machine
(``collapsed`` ⇄ ``expanded``) driven purely by user toggles, so revealing
a comment never re-runs classification.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from langfilter.models import FilterDecision, FilterMode

SHOWN_LABEL = "Shown"


class RenderState(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


class Renderer(Protocol):
    def apply(self, decision: FilterDecision) -> None:
        ...

    def reset(self, item_id: str) -> None:
        ...

    def toggle(self, item_id: str) -> RenderState | None:
        ...


@dataclass
class RenderEntry:
    decision: FilterDecision
    state: RenderState

    @property
    def label(self) -> str | None:
        if self.state is RenderState.COLLAPSED:
            return self.decision.display_label
        if self.state is RenderState.EXPANDED:
            return SHOWN_LABEL
        return None


class MemoryRenderer:
    """Keeps render state in memory; the host reads it back to draw."""

    def __init__(self) -> None:
        self._entries: dict[str, RenderEntry] = {}

    def apply(self, decision: FilterDecision) -> None:
        if not decision.filtered:
            state = RenderState.VISIBLE
        elif decision.mode is FilterMode.HIDE:
            state = RenderState.HIDDEN
        else:
            state = RenderState.COLLAPSED
        self._entries[decision.item_id] = RenderEntry(decision=decision, state=state)

    def reset(self, item_id: str) -> None:
        self._entries.pop(item_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def toggle(self, item_id: str) -> RenderState | None:
        """Flip a collapsed item open or closed.

        Returns the new state, or ``None`` when the item is not collapsible.
        """
        entry = self._entries.get(item_id)
        if entry is None:
            return None
        if entry.state is RenderState.COLLAPSED:
            entry.state = RenderState.EXPANDED
        elif entry.state is RenderState.EXPANDED:
            entry.state = RenderState.COLLAPSED
        else:
            return None
        return entry.state

    def get(self, item_id: str) -> RenderEntry | None:
        return self._entries.get(item_id)

    def state_of(self, item_id: str) -> RenderState:
        entry = self._entries.get(item_id)
        return entry.state if entry else RenderState.VISIBLE

    def entries(self) -> dict[str, RenderEntry]:
        return dict(self._entries)
