"""
Tests for live_data.relay

All Redis I/O is replaced with AsyncMock — no live Redis required.
"""
import json
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import RedisError

from live_data.relay import LiveDataRelay, RelayError, channels, encode


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_redis():
    """
    Patch live_data.relay.publisher.Redis so that Redis.from_url() returns
    an AsyncMock instance. Yields the mock Redis instance.
    """
    with patch("live_data.relay.publisher.Redis") as mock_cls:
        instance = AsyncMock()
        instance.ping = AsyncMock(return_value=True)
        instance.publish = AsyncMock(return_value=1)
        mock_cls.from_url.return_value = instance
        yield instance


@pytest.fixture
async def relay(service, mock_redis):
    """A LiveDataRelay that has already called connect()."""
    relay = LiveDataRelay(service, redis_url="redis://localhost:6379/0")
    await relay.connect()
    yield relay
    await relay.close()


def _published(mock_redis):
    return {
        call.args[0]: json.loads(call.args[1])
        for call in mock_redis.publish.call_args_list
    }


# ── Channels ──────────────────────────────────────────────────────────────────

def test_symbol_channel_is_upper_cased():
    assert channels.symbol_channel("btc") == "live:market:BTC"


def test_market_messages_fan_out_per_symbol():
    markets = {"BTC": {"price": 1}, "ETH": {"price": 2}}

    messages = channels.market_messages(markets)

    assert messages == [
        ("live:market", markets),
        ("live:market:BTC", {"price": 1}),
        ("live:market:ETH", {"price": 2}),
    ]


def test_encode_envelope():
    assert json.loads(encode("live:news", [1, 2])) == {"channel": "live:news", "data": [1, 2]}


# ── connect() ────────────────────────────────────────────────────────────────

async def test_connect_calls_ping_and_subscribes(service, mock_redis):
    relay = LiveDataRelay(service, redis_url="redis://localhost:6379/0")

    await relay.connect()

    mock_redis.ping.assert_called_once()
    assert service.bus.subscriber_count() == 2
    await relay.close()
    assert service.bus.subscriber_count() == 0
    mock_redis.aclose.assert_called_once()


async def test_connect_ping_failure_raises_relay_error(service, mock_redis):
    mock_redis.ping.side_effect = RedisError("connection refused")

    relay = LiveDataRelay(service, redis_url="redis://localhost:6379/0")
    with pytest.raises(RelayError, match="Cannot connect"):
        await relay.connect()

    assert service.bus.subscriber_count() == 0


# ── publish() ─────────────────────────────────────────────────────────────────

async def test_publish_before_connect_raises(service):
    relay = LiveDataRelay(service, redis_url="redis://localhost:6379/0")

    with pytest.raises(RelayError, match="not connected"):
        await relay.publish("live:news", [])


async def test_publish_sends_envelope(relay, mock_redis):
    delivered = await relay.publish("live:market:BTC", {"price": 1.0})

    assert delivered == 1
    channel, payload = mock_redis.publish.call_args.args
    assert channel == "live:market:BTC"
    assert json.loads(payload) == {"channel": "live:market:BTC", "data": {"price": 1.0}}


async def test_redis_error_wrapped_in_relay_error(relay, mock_redis):
    mock_redis.publish.side_effect = RedisError("broken pipe")

    with pytest.raises(RelayError, match="live:news"):
        await relay.publish("live:news", [])


# ── Bus forwarding ────────────────────────────────────────────────────────────

async def test_market_tick_is_relayed_to_all_and_symbol_channels(relay, service, mock_redis):
    await service.tick_market()
    await relay.close()

    sent = _published(mock_redis)
    assert set(sent) == {"live:market", "live:market:BTC", "live:market:ETH"}
    assert set(sent["live:market"]["data"]) == {"BTC", "ETH"}
    assert sent["live:market:BTC"]["data"]["price"] == 50000.0


async def test_news_tick_is_relayed(relay, service, mock_redis):
    await service.tick_news()
    await relay.close()

    sent = _published(mock_redis)
    assert list(sent) == ["live:news"]
    assert len(sent["live:news"]["data"]) == 3


async def test_relay_failure_is_counted_not_raised(relay, service, mock_redis):
    mock_redis.publish.side_effect = RedisError("down")

    assert await service.tick_market() is True
    await relay.close()

    assert relay.publish_failures == 1
    assert service.get_market_snapshot("BTC") is not None
