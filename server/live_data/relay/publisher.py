"""
Redis Relay

Forwards bus updates to Redis pub/sub so out-of-process consumers can follow
the live caches. Notification only: nothing is ever read back from Redis.

Wire format (envelope):
  {
    "channel": "live:market",
    "data": { ...serialized payload... }
  }

Usage:
    relay = LiveDataRelay(service, redis_url="redis://localhost:6379/0")
    await relay.connect()      # also subscribes to the service bus
    ...
    await relay.close()
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Sequence

from redis.asyncio import Redis
from redis.exceptions import RedisError

from live_data.bus import Subscription, Topic
from live_data.models.market import MarketSnapshot
from live_data.models.news import NewsArticle
from live_data.serializer import articles_to_list, snapshots_to_dict
from live_data.service import LiveDataService

from .channels import NEWS_ALL, market_messages

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Raised when the relay cannot reach Redis or publish to it."""


def encode(channel: str, data: Any) -> str:
    """Encode a channel name and payload into the JSON envelope."""
    try:
        return json.dumps({"channel": channel, "data": data}, default=str)
    except (TypeError, ValueError) as exc:
        raise RelayError(f"Failed to serialize relay message: {exc}") from exc


class LiveDataRelay:
    """
    Bridges LiveDataService topics to Redis channels.

    Bus callbacks schedule the Redis writes as tasks; a Redis failure is
    logged and counted, never raised back into the publishing pipeline.
    """

    def __init__(self, service: LiveDataService, redis_url: str) -> None:
        self._service = service
        self._redis_url = redis_url
        self._redis: Redis | None = None
        self._subscriptions: list[Subscription] = []
        self._pending: set[asyncio.Task[int]] = set()
        self._publish_failures = 0

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the Redis connection and subscribe to the service bus."""
        self._redis = Redis.from_url(self._redis_url, decode_responses=False)
        try:
            await self._redis.ping()
        except RedisError as exc:
            await self._redis.aclose()
            self._redis = None
            raise RelayError(f"Cannot connect to Redis: {exc}") from exc

        logger.info("LiveDataRelay connected to Redis at %s", self._redis_url)
        self._subscriptions = [
            self._service.subscribe(Topic.MARKET_UPDATE, self._on_market_update),
            self._service.subscribe(Topic.NEWS_UPDATE, self._on_news_update),
        ]

    async def close(self) -> None:
        """Unsubscribe, drain pending writes, and close the connection."""
        for sub in self._subscriptions:
            self._service.unsubscribe(sub)
        self._subscriptions = []

        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("LiveDataRelay disconnected from Redis")

    async def __aenter__(self) -> LiveDataRelay:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # ── Bus callbacks ─────────────────────────────────────────────────────────

    def _schedule(self, messages: list[tuple[str, Any]]) -> None:
        task = asyncio.create_task(self._publish_safely(messages))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_market_update(self, snapshots: Mapping[str, MarketSnapshot]) -> None:
        self._schedule(market_messages(snapshots_to_dict(snapshots)))

    def _on_news_update(self, articles: Sequence[NewsArticle]) -> None:
        self._schedule([(NEWS_ALL, articles_to_list(articles))])

    async def _publish_safely(self, messages: list[tuple[str, Any]]) -> int:
        try:
            return await self.publish_many(messages)
        except RelayError as exc:
            self._publish_failures += 1
            logger.warning(
                "Relay publish failed",
                extra={"error": str(exc), "channels": len(messages)},
            )
            return 0

    # ── Publish ───────────────────────────────────────────────────────────────

    async def publish(self, channel: str, data: Any) -> int:
        """
        Publish one payload to one channel.

        Returns:
            Number of Redis subscribers that received the message.

        Raises:
            RelayError: If not connected or Redis returns an error.
        """
        if self._redis is None:
            raise RelayError("LiveDataRelay is not connected — call connect() first")

        payload = encode(channel, data)
        try:
            deliveries: int = await self._redis.publish(channel, payload)
        except RedisError as exc:
            raise RelayError(f"Redis publish failed on channel '{channel}'") from exc

        logger.debug("Relayed to '%s', reached %d subscriber(s)", channel, deliveries)
        return deliveries

    async def publish_many(self, messages: list[tuple[str, Any]]) -> int:
        """Publish each (channel, data) pair; returns total deliveries."""
        total = 0
        for channel, data in messages:
            total += await self.publish(channel, data)
        return total

    @property
    def publish_failures(self) -> int:
        return self._publish_failures
