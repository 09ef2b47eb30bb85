"""Bridge web server lifecycle."""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from repograph.bridge.surface import WebSocketSurface
from repograph.config.schema import BridgeConfig
from repograph.logging import get_logger

log = get_logger("bridge")

_server_task: asyncio.Task[None] | None = None
_surface: WebSocketSurface | None = None
_address: str | None = None


def is_bridge_running() -> bool:
    return _server_task is not None and not _server_task.done()


def bridge_url(config: BridgeConfig) -> str:
    return f"http://{config.host}:{config.port}"


async def start_bridge(
    surface: WebSocketSurface,
    config: BridgeConfig | None = None,
    static_dir: Path | None = None,
) -> None:
    """Serve ``surface`` under uvicorn in a background task.

    Raises:
        RuntimeError: If a bridge is already running.
    """
    global _server_task, _surface, _address

    if is_bridge_running():
        raise RuntimeError(f"Bridge already running on {_address}")

    config = config or BridgeConfig()

    # Imported here to keep startup light when the bridge is unused
    import uvicorn

    from repograph.bridge.routes import create_app

    app = create_app(surface, static_dir)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level="warning",
            access_log=False,
        )
    )

    _server_task = asyncio.create_task(server.serve())
    _surface = surface
    _address = bridge_url(config)
    log.info("Bridge started on %s", _address)


async def stop_bridge() -> None:
    """Close client connections and stop the server."""
    global _server_task, _surface, _address

    if _server_task is None:
        return

    if _surface is not None:
        await _surface.connections.close_all()

    _server_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await _server_task

    log.info("Bridge stopped (was on %s)", _address)
    _server_task = None
    _surface = None
    _address = None
