"""Stage 3 – Filter decision.

Combines a classification result with the user's settings into a single
``filtered`` boolean.  Pure: no state beyond the two arguments.
"""

from __future__ import annotations

from langfilter.models import ClassificationResult, Confidence, FilterSettings


def should_filter(result: ClassificationResult, settings: FilterSettings) -> bool:
    """Return ``True`` when the item should be hidden or collapsed.

    * Unknown results are filtered only when ``hide_unknown`` is set.
    * Low-confidence results are allowed unless ``hide_unknown`` is set.
    * Everything else is filtered when its language is not allowed.
    """
    if result.is_unknown:
        return settings.hide_unknown
    if result.confidence is Confidence.LOW and not settings.hide_unknown:
        return False
    return result.lang not in settings.allowed_langs
