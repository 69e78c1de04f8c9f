"""
WebSocket Server for Live Data Distribution

Read-only consumer of LiveDataService. Serves the cached markets and news to
browser clients and pushes every bus update to all connected clients. It
never calls the upstream sources itself.

Client -> server frames:
    {"type": "ping"}
    {"type": "get_markets"}
    {"type": "get_market", "symbol": "BTC"}
    {"type": "get_news"}
    {"type": "get_summary"}

Server -> client frames:
    {"type": "connected" | "market_update" | "news_update" | "markets"
           | "market" | "news" | "summary" | "pong" | "error", ...}
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Set

import websockets
from websockets.server import WebSocketServerProtocol, serve

from live_data.bus import Subscription, Topic
from live_data.models.market import MarketSnapshot
from live_data.models.news import NewsArticle
from live_data.serializer import (
    articles_to_list,
    snapshot_to_dict,
    snapshots_to_dict,
    summary_to_dict,
)
from live_data.service import LiveDataService

logger = logging.getLogger(__name__)


@dataclass
class ServerStats:
    """WebSocket server statistics."""

    connected_clients: int
    total_connections: int
    messages_broadcast: int
    start_time: datetime


class LiveDataWebSocketServer:
    """
    WebSocket server that mirrors the live data caches to connected clients.

    Bus callbacks are synchronous, so broadcasts are scheduled as tasks and
    never block the publishing pipeline.
    """

    def __init__(
        self,
        service: LiveDataService,
        host: str = "0.0.0.0",
        port: int = 8765,
    ) -> None:
        self._service = service
        self._host = host
        self._port = port
        self._clients: Set[WebSocketServerProtocol] = set()
        self._server: Optional[websockets.WebSocketServer] = None
        self._subscriptions: list[Subscription] = []
        self._pending: Set[asyncio.Task[int]] = set()
        self._total_connections = 0
        self._messages_broadcast = 0
        self._start_time: Optional[datetime] = None
        self._lock = asyncio.Lock()

    # ── Bus wiring ────────────────────────────────────────────────────────────

    def attach(self) -> None:
        """Subscribe to both service topics."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self._service.subscribe(Topic.MARKET_UPDATE, self._on_market_update),
            self._service.subscribe(Topic.NEWS_UPDATE, self._on_news_update),
        ]

    def detach(self) -> None:
        for sub in self._subscriptions:
            self._service.unsubscribe(sub)
        self._subscriptions = []

    def _schedule_broadcast(self, payload: dict[str, Any]) -> None:
        if not self._clients:
            return
        task = asyncio.create_task(self.broadcast_json(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_market_update(self, snapshots: Mapping[str, MarketSnapshot]) -> None:
        self._schedule_broadcast({
            "type": "market_update",
            "data": snapshots_to_dict(snapshots),
        })

    def _on_news_update(self, articles: Sequence[NewsArticle]) -> None:
        self._schedule_broadcast({
            "type": "news_update",
            "data": articles_to_list(articles),
        })

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the WebSocket server and begin mirroring bus updates."""
        self._start_time = datetime.now(timezone.utc)
        self.attach()
        self._server = await serve(
            self._handle_client,
            self._host,
            self._port,
            ping_interval=30,
            ping_timeout=10,
        )
        logger.info(f"WebSocket server started on ws://{self._host}:{self._port}")

    async def stop(self) -> None:
        """Stop the WebSocket server and disconnect all clients."""
        self.detach()
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("WebSocket server stopped")
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ── Client handling ───────────────────────────────────────────────────────

    def _welcome(self) -> dict[str, Any]:
        return {
            "type": "connected",
            "message": "Connected to live market stream",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "markets": snapshots_to_dict(self._service.get_all_market_snapshots()),
            "news": articles_to_list(self._service.get_latest_news()),
            "summary": summary_to_dict(self._service.get_market_summary()),
        }

    def handle_request(self, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Answer one client request from the caches.

        Returns the reply frame, or None when nothing should be sent.
        """
        msg_type = data.get("type", "")

        if msg_type == "ping":
            return {"type": "pong"}
        if msg_type == "get_markets":
            return {
                "type": "markets",
                "data": snapshots_to_dict(self._service.get_all_market_snapshots()),
            }
        if msg_type == "get_market":
            symbol = data.get("symbol")
            if not isinstance(symbol, str) or not symbol:
                return {"type": "error", "error": "get_market requires a symbol"}
            snapshot = self._service.get_market_snapshot(symbol)
            if snapshot is None:
                return {"type": "error", "error": f"No market data for '{symbol}'"}
            return {"type": "market", "data": snapshot_to_dict(snapshot)}
        if msg_type == "get_news":
            return {"type": "news", "data": articles_to_list(self._service.get_latest_news())}
        if msg_type == "get_summary":
            return {"type": "summary", "data": summary_to_dict(self._service.get_market_summary())}

        return {"type": "error", "error": f"Unknown message type '{msg_type}'"}

    async def _handle_client(
        self, websocket: WebSocketServerProtocol
    ) -> None:
        """Handle a new client connection."""
        client_id = f"{websocket.remote_address}"

        async with self._lock:
            self._clients.add(websocket)
            self._total_connections += 1
            client_count = len(self._clients)

        logger.info(
            f"Client connected: {client_id} (total: {client_count})"
        )

        try:
            await websocket.send(json.dumps(self._welcome()))
        except Exception as e:
            logger.warning(f"Failed to send welcome: {e}")

        try:
            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    continue
                if not isinstance(data, dict):
                    continue

                reply = self.handle_request(data)
                if reply is not None:
                    await websocket.send(json.dumps(reply))

        except websockets.ConnectionClosed:
            pass
        finally:
            async with self._lock:
                self._clients.discard(websocket)
                client_count = len(self._clients)

            logger.info(
                f"Client disconnected: {client_id} (total: {client_count})"
            )

    async def broadcast_json(self, payload: dict[str, Any]) -> int:
        """Broadcast a JSON message to all connected clients."""
        if not self._clients:
            return 0

        message = json.dumps(payload)

        # Snapshot of clients to avoid modification during iteration
        async with self._lock:
            clients = list(self._clients)

        if not clients:
            return 0

        results = await asyncio.gather(
            *[self._send_to_client(client, message) for client in clients],
            return_exceptions=True,
        )

        success_count = sum(1 for r in results if r is True)
        self._messages_broadcast += 1

        if success_count < len(clients):
            failed = len(clients) - success_count
            logger.debug(
                f"Broadcast: {success_count}/{len(clients)} clients "
                f"({failed} failed)"
            )

        return success_count

    async def _send_to_client(
        self, client: WebSocketServerProtocol, message: str
    ) -> bool:
        """Send message to a single client, return True on success."""
        try:
            await client.send(message)
            return True
        except websockets.ConnectionClosed:
            return False
        except Exception as e:
            logger.warning(f"Failed to send to client: {e}")
            return False

    def get_stats(self) -> ServerStats:
        """Get current server statistics."""
        return ServerStats(
            connected_clients=len(self._clients),
            total_connections=self._total_connections,
            messages_broadcast=self._messages_broadcast,
            start_time=self._start_time or datetime.now(timezone.utc),
        )

    @property
    def client_count(self) -> int:
        """Get current number of connected clients."""
        return len(self._clients)
