"""
WebSocket Server Module
"""
from live_data.ws_server.server import LiveDataWebSocketServer, ServerStats

__all__ = ["LiveDataWebSocketServer", "ServerStats"]
