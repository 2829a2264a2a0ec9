"""Page routes serving the main dashboard HTML template."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def dashboard_index(request: Request) -> HTMLResponse:
    """Main dashboard page, rendered from the current snapshot.

    The page refreshes itself by polling /api/status.
    """
    templates: Jinja2Templates = request.app.state.templates
    snapshot = request.app.state.scheduler.snapshot()
    return templates.TemplateResponse(request, "index.html", {
        "snapshot": snapshot,
        "network": request.app.state.scheduler.settings.chain.network,
    })
