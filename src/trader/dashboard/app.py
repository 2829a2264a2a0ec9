"""FastAPI dashboard application factory with Jinja2 templates and WebSocket hub."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from trader.dashboard.routes import actions, api, pages, ws
from trader.dashboard.routes.ws import DashboardHub

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _format_decimal(value: Any) -> str:
    """Format Decimal values to string without Decimal('...') wrapper."""
    return str(value) if value is not None else "0"


def _time_ago(value: float | None) -> str:
    """Convert a unix timestamp (seconds) to a relative time string (e.g., '2m ago')."""
    if value is None:
        return "N/A"
    diff_seconds = time.time() - value
    if diff_seconds < 60:
        return "just now"
    if diff_seconds < 3600:
        return f"{int(diff_seconds / 60)}m ago"
    if diff_seconds < 86400:
        return f"{int(diff_seconds / 3600)}h ago"
    return f"{int(diff_seconds / 86400)}d ago"


def create_dashboard_app(scheduler: Any = None, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        scheduler: The Scheduler whose snapshots are served. main.py passes
                   it here; tests may also set ``app.state.scheduler`` directly.
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to start and stop the scheduler loop.

    Returns:
        Configured FastAPI application with templates, WebSocket hub, and routes.
    """
    app = FastAPI(
        title="Signal Trader Dashboard",
        lifespan=lifespan,
    )

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["format_decimal"] = _format_decimal
    templates.env.filters["time_ago"] = _time_ago
    app.state.templates = templates

    app.state.hub = DashboardHub()
    app.state.scheduler = scheduler

    app.include_router(pages.router)
    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")
    app.include_router(ws.router)

    return app
