"""FastAPI routes serving a WebSocketSurface."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from repograph import __version__
from repograph.bridge.surface import WebSocketSurface
from repograph.logging import get_logger

log = get_logger("bridge")


def create_app(surface: WebSocketSurface, static_dir: Path | None = None) -> FastAPI:
    """Create the bridge app for ``surface``.

    Args:
        surface: The surface whose document and messages are served.
        static_dir: Directory served under /static (the surface's media).
    """
    app = FastAPI(
        title="repograph bridge",
        description="Serves the repository graph view to a browser",
        version=__version__,
    )

    if static_dir is not None and static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    _register_routes(app, surface)
    return app


def _register_routes(app: FastAPI, surface: WebSocketSurface) -> None:
    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Serve the surface's current document."""
        if not surface.html:
            raise HTTPException(status_code=404, detail="No document has been rendered")
        return HTMLResponse(surface.html)

    @app.get("/api/status")
    async def api_status() -> dict[str, Any]:
        return {"status": "ok", "connections": surface.connections.connection_count}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        """Forward each JSON message from the client to the surface."""
        await surface.connections.connect(websocket)
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    message = json.loads(text)
                except ValueError:
                    log.warning("Ignoring non-JSON message from bridge client")
                    continue
                surface.receive(message)
        except WebSocketDisconnect:
            pass
        finally:
            await surface.connections.disconnect(websocket)
