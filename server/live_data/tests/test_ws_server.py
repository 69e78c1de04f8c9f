"""
Tests for live_data.ws_server.server

Clients are fakes with an AsyncMock send(); no sockets are opened.
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import websockets

from live_data.ws_server.server import LiveDataWebSocketServer


class FakeSocket:
    """Enough of a server-side connection for _handle_client."""

    def __init__(self, *incoming):
        self.remote_address = ("127.0.0.1", 50000)
        self.send = AsyncMock()
        self._incoming = list(incoming)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._incoming:
            raise StopAsyncIteration
        return self._incoming.pop(0)

    def sent(self):
        return [json.loads(call.args[0]) for call in self.send.await_args_list]


def _client(send_error=None):
    client = MagicMock()
    client.send = AsyncMock(side_effect=send_error)
    return client


@pytest.fixture
async def ready_service(service):
    await service.tick_market()
    await service.tick_news()
    return service


@pytest.fixture
def ws(ready_service):
    return LiveDataWebSocketServer(ready_service, host="127.0.0.1", port=0)


# ── Requests ──────────────────────────────────────────────────────────────────

class TestHandleRequest:
    def test_ping(self, ws):
        assert ws.handle_request({"type": "ping"}) == {"type": "pong"}

    def test_get_markets(self, ws):
        reply = ws.handle_request({"type": "get_markets"})

        assert reply["type"] == "markets"
        assert set(reply["data"]) == {"BTC", "ETH"}

    def test_get_market_is_case_insensitive(self, ws):
        reply = ws.handle_request({"type": "get_market", "symbol": "eth"})

        assert reply["type"] == "market"
        assert reply["data"]["symbol"] == "ETH"
        assert reply["data"]["price"] == 3000.0

    @pytest.mark.parametrize("request_frame", [
        {"type": "get_market", "symbol": "DOGE"},
        {"type": "get_market"},
    ])
    def test_get_market_without_data_is_error(self, ws, request_frame):
        assert ws.handle_request(request_frame)["type"] == "error"

    @pytest.mark.parametrize("symbol", [None, 42, ["BTC"], ""])
    def test_get_market_with_unusable_symbol_is_error(self, ws, symbol):
        reply = ws.handle_request({"type": "get_market", "symbol": symbol})

        assert reply == {"type": "error", "error": "get_market requires a symbol"}

    def test_get_news(self, ws, ready_service):
        reply = ws.handle_request({"type": "get_news"})

        assert reply["type"] == "news"
        assert [a["id"] for a in reply["data"]] == [a.id for a in ready_service.get_latest_news()]

    def test_get_summary(self, ws):
        reply = ws.handle_request({"type": "get_summary"})

        assert reply["type"] == "summary"
        assert reply["data"]["assetCount"] == 2

    def test_unknown_type(self, ws):
        reply = ws.handle_request({"type": "subscribe_orders"})

        assert reply == {"type": "error", "error": "Unknown message type 'subscribe_orders'"}


# ── Connections ───────────────────────────────────────────────────────────────

async def test_client_gets_welcome_then_replies(ws):
    socket = FakeSocket(
        json.dumps({"type": "ping"}),
        "not json",
        json.dumps(["not", "an", "object"]),
        json.dumps({"type": "get_market", "symbol": "BTC"}),
    )

    await ws._handle_client(socket)

    frames = socket.sent()
    assert [f["type"] for f in frames] == ["connected", "pong", "market"]
    welcome = frames[0]
    assert set(welcome["markets"]) == {"BTC", "ETH"}
    assert len(welcome["news"]) == 3
    assert welcome["summary"]["assetCount"] == 2
    assert ws.client_count == 0
    assert ws.get_stats().total_connections == 1


# ── Broadcasting ──────────────────────────────────────────────────────────────

async def test_broadcast_counts_successful_sends(ws):
    closed = websockets.ConnectionClosed(None, None)
    good, dead = _client(), _client(send_error=closed)
    ws._clients.update({good, dead})

    delivered = await ws.broadcast_json({"type": "x"})

    assert delivered == 1
    good.send.assert_awaited_once_with(json.dumps({"type": "x"}))
    assert ws.get_stats().messages_broadcast == 1


async def test_broadcast_without_clients_is_noop(ws):
    assert await ws.broadcast_json({"type": "x"}) == 0


async def test_market_tick_is_pushed_to_clients(ws, ready_service):
    client = _client()
    ws._clients.add(client)
    ws.attach()

    await ready_service.tick_market()
    await asyncio.gather(*ws._pending)

    frame = json.loads(client.send.await_args.args[0])
    assert frame["type"] == "market_update"
    assert set(frame["data"]) == {"BTC", "ETH"}


async def test_news_tick_is_pushed_to_clients(ws, ready_service):
    client = _client()
    ws._clients.add(client)
    ws.attach()

    await ready_service.tick_news()
    await asyncio.gather(*ws._pending)

    frame = json.loads(client.send.await_args.args[0])
    assert frame["type"] == "news_update"
    assert len(frame["data"]) == 6


async def test_no_broadcast_scheduled_without_clients(ws, ready_service):
    ws.attach()

    await ready_service.tick_market()

    assert not ws._pending


async def test_detach_stops_mirroring(ws, ready_service):
    ws.attach()
    ws.attach()
    assert ready_service.bus.subscriber_count() == 2

    ws.detach()

    assert ready_service.bus.subscriber_count() == 0
