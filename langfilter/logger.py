"""Decision log: one JSON line per comment the pipeline decided on.

Entries carry the item id, the epoch and the verdict.  Comment text stays
out of the file.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from langfilter.config import settings
from langfilter.models import ClassificationResult, FilterDecision

_decision_log: logging.Logger | None = None


def _decision_logger() -> logging.Logger:
    global _decision_log
    if _decision_log is None:
        path = Path(settings.log_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        log = logging.getLogger("langfilter.decisions")
        log.setLevel(logging.INFO)
        log.propagate = False  # keep JSON lines out of the console format
        if not any(isinstance(h, logging.FileHandler) for h in log.handlers):
            handler = logging.FileHandler(path, encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            log.addHandler(handler)
        _decision_log = log
    return _decision_log


def log_decision(
    decision: FilterDecision,
    result: ClassificationResult,
    epoch: int,
) -> None:
    """Record how *decision* was reached for one item under *epoch*."""
    entry: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "item_id": decision.item_id,
        "epoch": epoch,
        "lang": result.lang,
        "confidence": result.confidence.value,
        "is_unknown": result.is_unknown,
        "filtered": decision.filtered,
        "mode": decision.mode.value,
    }
    _decision_logger().info(json.dumps(entry, ensure_ascii=False))
