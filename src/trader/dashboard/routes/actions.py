"""POST endpoints for lifecycle control and runtime config updates."""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from trader.exceptions import InvalidTransitionError

log = structlog.get_logger(__name__)

router = APIRouter()


def _status_response(request: Request) -> JSONResponse:
    snapshot = request.app.state.scheduler.snapshot()
    return JSONResponse(content={
        "status": snapshot.status.value,
        "halt_reason": snapshot.halt_reason,
    })


def _conflict(action: str, error: InvalidTransitionError) -> JSONResponse:
    log.warning("dashboard_action_rejected", action=action, error=str(error))
    return JSONResponse(status_code=409, content={"error": str(error)})


@router.post("/start")
async def start_bot(request: Request) -> JSONResponse:
    """STOPPED -> RUNNING."""
    try:
        request.app.state.scheduler.start()
    except InvalidTransitionError as e:
        return _conflict("start", e)
    log.info("bot_started_via_dashboard")
    return _status_response(request)


@router.post("/stop")
async def stop_bot(request: Request) -> JSONResponse:
    """RUNNING or HALTED -> STOPPED."""
    try:
        request.app.state.scheduler.stop()
    except InvalidTransitionError as e:
        return _conflict("stop", e)
    log.info("bot_stopped_via_dashboard")
    return _status_response(request)


@router.post("/reset")
async def reset_halt(request: Request) -> JSONResponse:
    """Clear a drawdown halt, re-anchoring the peak (HALTED -> RUNNING)."""
    try:
        request.app.state.scheduler.reset_halt()
    except InvalidTransitionError as e:
        return _conflict("reset", e)
    log.info("halt_reset_via_dashboard")
    return _status_response(request)


@router.post("/config")
async def update_config(request: Request) -> JSONResponse:
    """Queue a partial threshold update from a JSON object body.

    The change takes effect at the start of the next tick.
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return JSONResponse(status_code=422, content={"error": "Body must be valid JSON"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=422, content={"error": "Body must be a JSON object"})

    try:
        rc = request.app.state.scheduler.update_config(body)
    except ValueError as e:
        log.warning("config_update_rejected", error=str(e))
        return JSONResponse(status_code=422, content={"error": str(e)})

    queued = {
        name: str(getattr(rc, name))
        for name in rc.field_names()
        if getattr(rc, name) is not None
    }
    log.info("config_updated_via_dashboard", fields=list(queued))
    return JSONResponse(content={"queued": queued})
