"""WebSocket hub pushing scheduler snapshots to dashboard clients."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

log = structlog.get_logger(__name__)

router = APIRouter()


class DashboardHub:
    """Open snapshot subscribers. Clients that fail a send are dropped."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def subscribe(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.append(ws)
        log.info("snapshot_subscriber_added", subscribers=len(self.connections))

    def unsubscribe(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        log.info("snapshot_subscriber_removed", subscribers=len(self.connections))

    async def broadcast(self, payload: str) -> int:
        """Send one serialized snapshot to every subscriber.

        Returns:
            Number of subscribers that received it.
        """
        delivered = 0
        for ws in list(self.connections):
            try:
                await ws.send_text(payload)
            except Exception:
                # The endpoint may already have unsubscribed it while the send was pending
                if ws in self.connections:
                    self.connections.remove(ws)
                log.warning("snapshot_push_failed", subscribers=len(self.connections))
            else:
                delivered += 1
        return delivered


@router.websocket("/ws")
async def snapshot_stream(websocket: WebSocket) -> None:
    """Send the current snapshot immediately, then rely on the update loop for pushes."""
    hub: DashboardHub = websocket.app.state.hub
    await hub.subscribe(websocket)
    scheduler = websocket.app.state.scheduler
    try:
        if scheduler is not None:
            await websocket.send_json(scheduler.snapshot().to_dict())
        while True:
            # Inbound messages are ignored; reading detects disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.unsubscribe(websocket)
