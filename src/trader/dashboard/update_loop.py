"""Periodic WebSocket update loop for real-time dashboard refresh.

Serializes one scheduler snapshot per interval and broadcasts it as JSON
to all connected WebSocket clients.
"""

from __future__ import annotations

import asyncio
import json

import structlog
from fastapi import FastAPI

log = structlog.get_logger(__name__)


async def dashboard_update_loop(app: FastAPI) -> None:
    """Periodically broadcast the scheduler snapshot via WebSocket.

    Runs until cancelled. Iterations with no connected clients skip the
    snapshot entirely.

    Args:
        app: The FastAPI application with ``hub`` and ``scheduler`` on its state.
    """
    update_interval = getattr(app.state, "update_interval", 5)

    log.info("dashboard_update_loop_started", interval=update_interval)

    while True:
        try:
            await asyncio.sleep(update_interval)

            hub = app.state.hub
            if not hub.connections:
                continue

            snapshot = app.state.scheduler.snapshot()
            delivered = await hub.broadcast(json.dumps(snapshot.to_dict()))
            log.debug("dashboard_snapshot_pushed", subscribers=delivered)

        except asyncio.CancelledError:
            log.info("dashboard_update_loop_cancelled")
            break
        except Exception:
            log.warning("dashboard_update_loop_error", exc_info=True)
            await asyncio.sleep(1)
