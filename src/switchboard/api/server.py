"""FastAPI server for programmatic routing access."""

from __future__ import annotations

import time
from typing import Any

import click
from fastapi import Depends, FastAPI, HTTPException

from switchboard import __version__
from switchboard.config import Settings
from switchboard.engine.router import DelegationRouter
from switchboard.errors import (
    CyclicDependency,
    DuplicateHandler,
    NoMatch,
    SwitchboardError,
    UnknownHandler,
)
from switchboard.models import Request
from switchboard.storage.ledger import RoutingLedger

app = FastAPI(
    title="Switchboard API",
    version=__version__,
    description="Keyword-routed delegation across specialist handlers",
)

_start_time = time.monotonic()


def get_settings() -> Settings:
    return Settings.from_env()


def get_router(settings: Settings = Depends(get_settings)) -> DelegationRouter:
    try:
        return DelegationRouter.from_settings(settings)
    except SwitchboardError as e:
        raise _http_error(e) from e


def _http_error(error: Exception) -> HTTPException:
    if isinstance(error, (NoMatch, UnknownHandler)):
        code = 404
    elif isinstance(error, (CyclicDependency, DuplicateHandler)):
        code = 409
    else:
        code = 422
    return HTTPException(status_code=code, detail=f"{type(error).__name__}: {error}")


def _parse_request(body: dict[str, Any]) -> Request:
    task = body.get("task")
    if not isinstance(task, str) or not task.strip():
        raise HTTPException(status_code=422, detail="'task' must be a non-empty string")
    hints = body.get("domain_hints") or []
    if isinstance(hints, str):
        hints = [hints]
    if not isinstance(hints, list) or not all(isinstance(h, str) for h in hints):
        raise HTTPException(status_code=422, detail="'domain_hints' must be a list of strings")
    try:
        return Request(text=task, domain_hints=frozenset(hints))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.get("/api/health")
async def health() -> dict[str, Any]:
    """Health check."""
    uptime = time.monotonic() - _start_time
    return {"status": "ok", "version": __version__, "uptime_seconds": round(uptime, 1)}


@app.get("/api/handlers")
async def handlers(router: DelegationRouter = Depends(get_router)) -> dict[str, Any]:
    """Registered handlers in registration order."""
    items = [
        {
            "name": d.name,
            "triggers": sorted(d.triggers),
            "domains": sorted(d.domains),
            "capabilities": list(d.capabilities),
            "depends_on": sorted(d.depends_on),
            "requires_aggregation": d.requires_aggregation,
            "hand_off_to": d.hand_off_to,
            "timeout": d.timeout,
        }
        for d in router.registry.all()
    ]
    return {"handlers": items, "count": len(items)}


@app.post("/api/classify")
async def classify(
    body: dict[str, Any], router: DelegationRouter = Depends(get_router)
) -> dict[str, Any]:
    """Score a task against every handler."""
    request = _parse_request(body)
    try:
        matches = router.classify(request)
    except SwitchboardError as e:
        raise _http_error(e) from e
    return {
        "matches": [
            {"handler": m.handler, "score": m.score, "matched_triggers": sorted(m.matched_triggers)}
            for m in matches
        ]
    }


@app.post("/api/plan")
async def plan(body: dict[str, Any], router: DelegationRouter = Depends(get_router)) -> dict[str, Any]:
    """Classify and plan without dispatching."""
    request = _parse_request(body)
    try:
        decision = router.decide(request)
    except SwitchboardError as e:
        raise _http_error(e) from e
    return decision.to_dict()


@app.post("/api/route")
async def route(
    body: dict[str, Any],
    router: DelegationRouter = Depends(get_router),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Route a task end to end."""
    request = _parse_request(body)
    try:
        if body.get("record", True):
            async with RoutingLedger(str(settings.ledger_path)) as ledger:
                router.ledger = ledger
                response = await router.route(request)
        else:
            response = await router.route(request)
    except SwitchboardError as e:
        raise _http_error(e) from e
    return response.to_dict()


@app.get("/api/history")
async def history(
    limit: int = 20, offset: int = 0, settings: Settings = Depends(get_settings)
) -> dict[str, Any]:
    """Recently routed requests."""
    if not settings.ledger_path.exists():
        return {"requests": [], "count": 0, "limit": limit, "offset": offset}
    async with RoutingLedger(str(settings.ledger_path)) as ledger:
        rows = await ledger.recent(limit, offset)
    return {"requests": rows, "count": len(rows), "limit": limit, "offset": offset}


@click.command()
@click.option("--port", default=3850, help="Port to listen on")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
def main(port: int, host: str) -> None:
    """Start the Switchboard API server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)
