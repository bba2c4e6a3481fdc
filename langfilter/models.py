"""Pydantic v2 models shared by the pipeline and the command surface."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FilterMode(str, Enum):
    HIDE = "hide"
    COLLAPSE = "collapse"


# ── Domain values ───────────────────────────────────────────────────────────

class FilterSettings(BaseModel):
    """User-facing filter settings.

    Always replaced wholesale; fields missing from a pushed snapshot take
    their defaults.
    """

    enabled: bool = True
    allowed_langs: set[str] = Field(default_factory=lambda: {"en"}, alias="allowedLangs")
    mode: FilterMode = FilterMode.HIDE
    hide_unknown: bool = Field(default=False, alias="hideUnknown")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("allowed_langs", mode="before")
    @classmethod
    def _normalise_langs(cls, value):
        if value is None:
            return {"en"}
        if isinstance(value, str):
            value = [value]
        return {str(code).strip().lower() for code in value if str(code).strip()}


class ClassificationResult(BaseModel):
    """Outcome of classifying one snippet."""

    lang: str
    is_unknown: bool
    confidence: Confidence

    model_config = {"frozen": True}

    @classmethod
    def unknown(cls) -> "ClassificationResult":
        return cls(lang="unknown", is_unknown=True, confidence=Confidence.LOW)

    @property
    def display_lang(self) -> str:
        return "unknown" if self.is_unknown else self.lang.upper()


class FilterDecision(BaseModel):
    """What the renderer is asked to do with one item."""

    item_id: str
    filtered: bool
    mode: FilterMode
    display_label: str

    model_config = {"frozen": True}


# ── Request Models ──────────────────────────────────────────────────────────

class ItemPayload(BaseModel):
    """A single discovered comment, as reported by the change-watcher."""

    id: str = Field(..., min_length=1)
    text: str | None = Field(default=None, description="Plain comment text")
    html: str | None = Field(default=None, description="Raw comment markup")


class ItemsRequest(BaseModel):
    items: list[ItemPayload] = Field(default_factory=list)


class NavigateRequest(BaseModel):
    """``context`` is ``None`` when the host left every filterable page."""

    context: str | None = None


class ClassifyRequest(BaseModel):
    text: str


# ── Response Models ─────────────────────────────────────────────────────────

class CommandResponse(BaseModel):
    success: bool
    epoch: int


class ItemsResponse(BaseModel):
    received: int
    queued: int


class PingResponse(BaseModel):
    ok: bool
    context: str | None
    ts: int


class ClassifyResponse(BaseModel):
    result: ClassificationResult
    filtered: bool


class RenderStateView(BaseModel):
    item_id: str
    state: str
    label: str | None = None


class HealthResponse(BaseModel):
    status: str
    context: str | None
    epoch: int
    queue_length: int
    is_draining: bool
    cache_size: int
    fallback_available: bool
    uptime_seconds: float
