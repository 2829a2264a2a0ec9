"""JSON API endpoints serving views of the scheduler snapshot.

Every endpoint reads a single snapshot, so fields in one response are
mutually consistent. Decimal values are serialized as strings.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

log = structlog.get_logger(__name__)

router = APIRouter()


def _snapshot(request: Request) -> dict:
    return request.app.state.scheduler.snapshot().to_dict()


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Full snapshot: lifecycle, portfolio, signals, recent trades, last decision."""
    return JSONResponse(content=_snapshot(request))


@router.get("/portfolio")
async def get_portfolio(request: Request) -> JSONResponse:
    """Balances, USD prices, total value, peak and drawdown."""
    return JSONResponse(content=_snapshot(request)["portfolio"])


@router.get("/signals")
async def get_signals(request: Request) -> JSONResponse:
    """Composite score and sub-signal components per tracked asset."""
    return JSONResponse(content=_snapshot(request)["signals"])


@router.get("/indicators")
async def get_indicators(request: Request) -> JSONResponse:
    """Latest indicator values per tracked asset."""
    return JSONResponse(content=_snapshot(request)["indicators"])


@router.get("/trades")
async def get_trades(request: Request) -> JSONResponse:
    """Recent trade records, newest last."""
    return JSONResponse(content=_snapshot(request)["trade_history"])


@router.get("/config")
async def get_config(request: Request) -> JSONResponse:
    """Current values of every runtime-tunable threshold."""
    return JSONResponse(content=_snapshot(request)["config"])
