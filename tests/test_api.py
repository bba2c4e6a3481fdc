"""End-to-end tests for the HTTP command surface.

The real fallback detector is switched off (see ``conftest``), so every
verdict below comes from the script heuristic alone.  ``wait=true`` makes
the mutating endpoints answer only after the scheduler has settled.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import EMOJI_ONLY, ENGLISH, KOREAN, SPARSE_KANA
from langfilter.config import settings
from langfilter.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _states(client: TestClient) -> dict[str, dict]:
    resp = client.get("/decisions")
    assert resp.status_code == 200
    return {view["item_id"]: view for view in resp.json()}


# ── Probes ──────────────────────────────────────────────────────────────────

def test_ping_reports_context(client):
    data = client.get("/ping").json()
    assert data["ok"] is True
    assert data["context"] == "watch"
    assert isinstance(data["ts"], int)


def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert data["context"] == "watch"
    assert data["epoch"] >= 1
    assert data["queue_length"] == 0
    assert data["is_draining"] is False
    assert data["fallback_available"] is False


# ── Classification ──────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "text, lang, confidence, filtered",
    [
        (KOREAN, "ko", "high", True),
        (ENGLISH, "en", "high", False),
        (EMOJI_ONLY, "unknown", "low", False),
        # Uncertain and no fallback available: unknown, shown by default.
        (SPARSE_KANA, "unknown", "low", False),
    ],
)
def test_classify(client, text, lang, confidence, filtered):
    data = client.post("/classify", json={"text": text}).json()
    assert data["result"]["lang"] == lang
    assert data["result"]["confidence"] == confidence
    assert data["filtered"] is filtered


# ── Items / decisions ───────────────────────────────────────────────────────

def test_items_are_filtered_after_settling(client):
    resp = client.post(
        "/items",
        params={"wait": "true"},
        json={"items": [{"id": "c1", "text": KOREAN}, {"id": "c2", "text": ENGLISH}]},
    )
    assert resp.json() == {"received": 2, "queued": 2}

    states = _states(client)
    assert states["c1"]["state"] == "hidden"
    assert states["c2"]["state"] == "visible"
    assert states["c2"]["label"] is None


def test_repeated_items_are_not_requeued(client):
    body = {"items": [{"id": "c1", "text": KOREAN}]}
    client.post("/items", params={"wait": "true"}, json=body)
    resp = client.post("/items", params={"wait": "true"}, json=body)
    assert resp.json() == {"received": 1, "queued": 0}


def test_item_without_id_is_rejected(client):
    resp = client.post("/items", json={"items": [{"id": "", "text": KOREAN}]})
    assert resp.status_code == 422


def test_decisions_are_logged_without_text(client):
    client.post("/items", params={"wait": "true"}, json={"items": [{"id": "logme", "text": KOREAN}]})

    lines = Path(settings.log_path).read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines if line.strip()]
    mine = [e for e in entries if e["item_id"] == "logme"]
    assert mine
    assert mine[-1]["lang"] == "ko"
    assert mine[-1]["filtered"] is True
    assert KOREAN not in lines[-1]


# ── Settings ────────────────────────────────────────────────────────────────

def test_allowing_korean_unfilters_existing_comments(client):
    client.post("/items", params={"wait": "true"}, json={"items": [{"id": "c1", "text": KOREAN}]})
    assert _states(client)["c1"]["state"] == "hidden"

    resp = client.post(
        "/settings",
        params={"wait": "true"},
        json={"enabled": True, "allowedLangs": ["en", "ko"], "mode": "hide", "hideUnknown": False},
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    assert _states(client)["c1"]["state"] == "visible"


def test_get_settings_uses_wire_names(client):
    client.post("/settings", json={"allowedLangs": ["EN", "ja"], "hideUnknown": True})
    data = client.get("/settings").json()
    assert set(data["allowedLangs"]) == {"en", "ja"}
    assert data["hideUnknown"] is True
    assert data["mode"] == "hide"
    assert data["enabled"] is True


def test_hide_unknown_hides_script_free_comments(client):
    client.post("/settings", json={"allowedLangs": ["en"], "hideUnknown": True})
    client.post("/items", params={"wait": "true"}, json={"items": [{"id": "e1", "text": EMOJI_ONLY}]})
    assert _states(client)["e1"]["state"] == "hidden"


def test_rescan_bumps_epoch(client):
    before = client.get("/health").json()["epoch"]
    resp = client.post("/rescan", params={"wait": "true"})
    assert resp.json()["epoch"] == before + 1


# ── Collapse mode ───────────────────────────────────────────────────────────

def test_collapse_and_toggle(client):
    client.post("/settings", json={"allowedLangs": ["en"], "mode": "collapse"})
    client.post(
        "/items",
        params={"wait": "true"},
        json={"items": [{"id": "c1", "text": KOREAN}, {"id": "c2", "text": ENGLISH}]},
    )

    view = _states(client)["c1"]
    assert view["state"] == "collapsed"
    assert view["label"] == "Hidden (language: KO)"

    opened = client.post("/decisions/c1/toggle").json()
    assert opened["state"] == "expanded"
    assert opened["label"] == "Shown"

    closed = client.post("/decisions/c1/toggle").json()
    assert closed["state"] == "collapsed"

    assert client.post("/decisions/c2/toggle").status_code == 409
    assert client.post("/decisions/missing/toggle").status_code == 404


# ── Navigation ──────────────────────────────────────────────────────────────

def test_navigate_discards_old_page(client):
    client.post("/items", params={"wait": "true"}, json={"items": [{"id": "c1", "text": KOREAN}]})

    resp = client.post("/navigate", params={"wait": "true"}, json={"context": "other"})
    assert resp.json()["success"] is True
    assert _states(client) == {}
    assert client.get("/ping").json()["context"] == "other"


def test_items_are_ignored_off_page(client):
    client.post("/navigate", json={"context": None})
    resp = client.post("/items", params={"wait": "true"}, json={"items": [{"id": "c1", "text": KOREAN}]})
    assert resp.json() == {"received": 0, "queued": 0}
    assert client.get("/ping").json()["context"] is None
