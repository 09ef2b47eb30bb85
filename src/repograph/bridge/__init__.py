"""Serve a view's surface to a browser over HTTP and websockets."""

from repograph.bridge.server import bridge_url, is_bridge_running, start_bridge, stop_bridge
from repograph.bridge.surface import ConnectionManager, WebSocketSurface

__all__ = [
    "ConnectionManager",
    "WebSocketSurface",
    "bridge_url",
    "is_bridge_running",
    "start_bridge",
    "stop_bridge",
]
