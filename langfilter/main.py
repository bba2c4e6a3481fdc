"""FastAPI application – the filter core's command surface.

Endpoints
---------
GET  /ping                       – liveness probe (context + timestamp)
GET  /health                     – pipeline status
POST /items                      – change-watcher reports discovered comments
POST /navigate                   – host moved to another page / context
POST /settings                   – full settings snapshot; triggers a rescan
POST /rescan                     – reprocess every known comment
POST /classify                   – classify one text under current settings
GET  /decisions                  – render state of every decided comment
POST /decisions/{item_id}/toggle – flip a collapsed comment open / closed

``wait=true`` on the mutating endpoints answers only once the scheduler has
gone idle, which gives synchronous hosts (and tests) a deterministic view.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request

from langfilter.config import settings
from langfilter.core import FilterCore, build_capability, load_settings_file
from langfilter.models import (
    ClassifyRequest,
    ClassifyResponse,
    CommandResponse,
    FilterSettings,
    HealthResponse,
    ItemsRequest,
    ItemsResponse,
    NavigateRequest,
    PingResponse,
    RenderStateView,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
_log = logging.getLogger("langfilter.main")

_start_time: float = 0.0


# ── Lifespan ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the core once at startup: defaults, then the persisted snapshot."""
    global _start_time
    _start_time = time.time()

    filter_settings = FilterSettings()
    if settings.settings_file:
        filter_settings = load_settings_file(settings.settings_file)

    core = FilterCore(build_capability(), filter_settings)
    core.activate(settings.initial_context or None)
    app.state.core = core
    _log.info("Filter core started")

    yield

    core.scheduler.reset_all()
    _log.info("Filter core stopped")


# ── Application ────────────────────────────────────────────────────────────

app = FastAPI(
    title="Comment Language Filter",
    version="1.0.0",
    lifespan=lifespan,
)


def _core(request: Request) -> FilterCore:
    return request.app.state.core


async def _settle(core: FilterCore, wait: bool) -> None:
    if wait:
        await core.scheduler.join()


# ── Endpoints ──────────────────────────────────────────────────────────────

@app.get("/ping", response_model=PingResponse)
def ping(request: Request) -> PingResponse:
    """Answer synchronously so the host can tell a torn-down core apart."""
    return _core(request).ping()


@app.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    core = _core(request)
    return HealthResponse(
        status="ok",
        context=core.context_id,
        epoch=core.epoch,
        queue_length=core.scheduler.queue_length,
        is_draining=core.scheduler.is_draining,
        cache_size=len(core.context.cache),
        fallback_available=core.fallback.available,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@app.post("/items", response_model=ItemsResponse)
async def items(body: ItemsRequest, request: Request, wait: bool = False) -> ItemsResponse:
    core = _core(request)
    received, queued = core.discover(body.items)
    await _settle(core, wait)
    return ItemsResponse(received=received, queued=queued)


@app.post("/navigate", response_model=CommandResponse)
async def navigate(body: NavigateRequest, request: Request, wait: bool = False) -> CommandResponse:
    core = _core(request)
    epoch = core.navigate(body.context)
    await _settle(core, wait)
    return CommandResponse(success=True, epoch=epoch)


@app.post("/settings", response_model=CommandResponse)
async def update_settings(
    body: FilterSettings, request: Request, wait: bool = False
) -> CommandResponse:
    core = _core(request)
    epoch = core.apply_settings(body)
    await _settle(core, wait)
    return CommandResponse(success=True, epoch=epoch)


@app.get("/settings", response_model=FilterSettings, response_model_by_alias=True)
def get_settings(request: Request) -> FilterSettings:
    return _core(request).filter_settings


@app.post("/rescan", response_model=CommandResponse)
async def rescan(request: Request, wait: bool = False) -> CommandResponse:
    core = _core(request)
    epoch = core.rescan()
    await _settle(core, wait)
    return CommandResponse(success=True, epoch=epoch)


@app.post("/classify", response_model=ClassifyResponse)
async def classify(body: ClassifyRequest, request: Request) -> ClassifyResponse:
    result, filtered = await _core(request).classify(body.text)
    return ClassifyResponse(result=result, filtered=filtered)


@app.get("/decisions", response_model=list[RenderStateView])
def decisions(request: Request) -> list[RenderStateView]:
    entries = _core(request).renderer.entries()
    return [
        RenderStateView(item_id=item_id, state=entry.state.value, label=entry.label)
        for item_id, entry in entries.items()
    ]


@app.post("/decisions/{item_id}/toggle", response_model=RenderStateView)
def toggle(item_id: str, request: Request) -> RenderStateView:
    """Reveal or re-collapse one comment without re-classifying it."""
    renderer = _core(request).renderer
    if renderer.get(item_id) is None:
        raise HTTPException(status_code=404, detail=f"No decision for item '{item_id}'")

    new_state = renderer.toggle(item_id)
    if new_state is None:
        raise HTTPException(status_code=409, detail=f"Item '{item_id}' is not collapsed")

    entry = renderer.get(item_id)
    return RenderStateView(item_id=item_id, state=entry.state.value, label=entry.label)
