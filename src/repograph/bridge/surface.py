"""A UI surface whose clients are browser websockets."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

from repograph.logging import get_logger
from repograph.protocols import MessageListener, Unsubscribe

if TYPE_CHECKING:
    from fastapi import WebSocket

log = get_logger("bridge")


class ConnectionManager:
    """Tracks connected websocket clients and broadcasts to them."""

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        log.debug("Bridge client connected (%d total)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
        log.debug("Bridge client disconnected (%d left)", len(self._connections))

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Send ``message`` to every client.

        Returns:
            How many clients received it. Clients that fail are dropped.
        """
        async with self._lock:
            connections = list(self._connections)

        delivered = 0
        dead: list[WebSocket] = []
        for websocket in connections:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                log.debug("Dropping bridge client after send failure: %s", e)
                dead.append(websocket)

        if dead:
            async with self._lock:
                for websocket in dead:
                    self._connections.discard(websocket)
        return delivered

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def close_all(self, reason: str = "Server shutting down") -> None:
        async with self._lock:
            connections = list(self._connections)
            self._connections.clear()

        for websocket in connections:
            with contextlib.suppress(Exception):
                await websocket.close(code=1001, reason=reason)
        log.info("Closed %d bridge connections", len(connections))


class WebSocketSurface:
    """UISurface served by the bridge app.

    ``html`` is served at ``/``; messages posted by the core are broadcast
    to every websocket client, and messages from any client reach the
    listeners registered through ``on_did_receive_message``.
    """

    def __init__(self, base_url: str, connections: ConnectionManager | None = None) -> None:
        self.html = ""
        self._base_url = base_url.rstrip("/")
        self.connections = connections or ConnectionManager()
        self._listeners: list[MessageListener] = []

    @property
    def csp_source(self) -> str:
        return self._base_url

    async def post_message(self, message: dict[str, Any]) -> bool:
        return await self.connections.broadcast(message) > 0

    def on_did_receive_message(self, listener: MessageListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def receive(self, message: dict[str, Any]) -> None:
        """Hand a client message to every listener."""
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                log.exception("Error in bridge message listener")

    def as_surface_uri(self, *path_parts: str) -> str:
        return "/".join([self._base_url, "static", *path_parts])
