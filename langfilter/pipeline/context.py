"""Shared mutable state for one filter core, passed explicitly."""

from __future__ import annotations

from dataclasses import dataclass, field

from langfilter.models import FilterSettings
from langfilter.pipeline.cache import ClassificationCache
from langfilter.pipeline.generation import GenerationTracker


@dataclass
class FilterContext:
    """Latest settings snapshot, the epoch counter and the result cache."""

    settings: FilterSettings = field(default_factory=FilterSettings)
    tracker: GenerationTracker = field(default_factory=GenerationTracker)
    cache: ClassificationCache = field(default_factory=ClassificationCache)
