"""
Live Data Service

Owns the market and news caches and the two periodic pipelines that refresh
them. Everything runs on one event loop: a tick only suspends while awaiting
its upstream call, and cache replacement plus publish run without yielding,
so subscribers always see a coherent cache.

Usage:
    service = LiveDataService(CoinGeckoClient(settings.coingecko))
    service.subscribe(Topic.MARKET_UPDATE, on_markets)
    await service.start()
    ...
    await service.stop()
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from live_data import symbols
from live_data.bus import Callback, PubSub, Subscription, Topic
from live_data.coingecko.client import CoinGeckoClient, QuoteSource
from live_data.coingecko.normalizer import normalize_quotes
from live_data.config import DEFAULT_COIN_IDS, ScheduleConfig, Settings
from live_data.core.types import LiveDataError
from live_data.models.market import MarketSnapshot
from live_data.models.news import NewsArticle
from live_data.news.synthesizer import NewsSource, NewsSynthesizer
from live_data.summary import MarketSummary, summarize_market

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

MARKET = "market"
NEWS = "news"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineStats:
    """Counters for one pipeline."""

    ticks_succeeded: int = 0
    ticks_failed: int = 0
    ticks_skipped: int = 0
    last_success: Optional[datetime] = None
    last_error: Optional[str] = None


class LiveDataService:
    """
    In-memory market/news aggregation with publish/subscribe fan-out.

    The upstream quote source, news source, bus and clock are all injected
    so the service can be driven deterministically in tests.
    """

    def __init__(
        self,
        quote_source: QuoteSource,
        *,
        coin_ids: Sequence[str] = DEFAULT_COIN_IDS,
        vs_currency: str = "usd",
        schedule: Optional[ScheduleConfig] = None,
        news_source: Optional[NewsSource] = None,
        bus: Optional[PubSub] = None,
        clock: Clock = _utcnow,
    ) -> None:
        if not coin_ids:
            raise ValueError("coin_ids must be a non-empty basket")
        self._quote_source = quote_source
        self._coin_ids = tuple(coin_ids)
        self._vs_currency = vs_currency
        self._schedule = schedule or ScheduleConfig()
        self._news_source = news_source or NewsSynthesizer(self._schedule.news_batch_size)
        self._bus = bus or PubSub()
        self._clock = clock

        # Caches (owned exclusively by this service)
        self._market_cache: dict[str, MarketSnapshot] = {}
        self._news_cache: list[NewsArticle] = []

        # Scheduling
        self._periodic_tasks: dict[str, asyncio.Task[None]] = {}
        self._in_flight: dict[str, asyncio.Task[bool]] = {}

        self._stats = {MARKET: PipelineStats(), NEWS: PipelineStats()}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        quote_source: Optional[QuoteSource] = None,
        news_source: Optional[NewsSource] = None,
        bus: Optional[PubSub] = None,
    ) -> LiveDataService:
        """Build a service wired to CoinGecko unless a quote source is given."""
        return cls(
            quote_source or CoinGeckoClient(settings.coingecko),
            coin_ids=settings.coingecko.coin_ids,
            vs_currency=settings.coingecko.vs_currency,
            schedule=settings.schedule,
            news_source=news_source,
            bus=bus,
        )

    # ── Accessors (read-only, never touch the network) ───────────────────────

    def get_market_snapshot(self, symbol: str) -> Optional[MarketSnapshot]:
        return self._market_cache.get(symbol.upper())

    def get_all_market_snapshots(self) -> dict[str, MarketSnapshot]:
        """Copy of the full market cache, keyed by symbol."""
        return dict(self._market_cache)

    def get_latest_news(self) -> tuple[NewsArticle, ...]:
        """Cached articles, newest first."""
        return tuple(self._news_cache)

    def get_market_summary(self) -> MarketSummary:
        return summarize_market(self._market_cache.values())

    @property
    def coin_ids(self) -> tuple[str, ...]:
        return self._coin_ids

    @property
    def schedule(self) -> ScheduleConfig:
        return self._schedule

    @property
    def bus(self) -> PubSub:
        return self._bus

    # ── Subscriptions ────────────────────────────────────────────────────────

    def subscribe(self, topic: Union[Topic, str], callback: Callback) -> Subscription:
        """Register callback for topic; it is invoked synchronously on publish."""
        return self._bus.subscribe(topic, callback)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._bus.unsubscribe(subscription)

    def _market_payload(self) -> Mapping[str, MarketSnapshot]:
        return MappingProxyType(dict(self._market_cache))

    # ── Pipelines ────────────────────────────────────────────────────────────

    async def tick_market(self) -> bool:
        """
        Fetch the whole basket, replace the fetched snapshots, publish.

        On any failure the cache is left untouched and nothing is published.
        Returns True if the tick succeeded.
        """
        stats = self._stats[MARKET]
        try:
            payload = await self._quote_source.fetch_quotes(self._coin_ids)
            fresh = normalize_quotes(payload, self._clock(), self._vs_currency)

        except LiveDataError as e:
            stats.ticks_failed += 1
            stats.last_error = str(e)
            logger.warning(
                f"Market tick failed, serving cached data: {e}",
                extra={
                    "error": str(e),
                    "endpoint": e.context.get("endpoint"),
                    "status": e.context.get("status"),
                    "cached_symbols": len(self._market_cache),
                },
            )
            return False

        except Exception as e:
            stats.ticks_failed += 1
            stats.last_error = str(e)
            logger.error(
                "Unexpected error in market tick, serving cached data",
                extra={"error": str(e)},
                exc_info=True,
            )
            return False

        stale = sorted({symbols.resolve(i)[0] for i in self._coin_ids} - fresh.keys())
        if stale:
            logger.debug(
                f"{len(stale)} basket asset(s) not refreshed, keeping stale entries",
                extra={"stale_symbols": stale},
            )

        self._market_cache.update(fresh)
        stats.ticks_succeeded += 1
        stats.last_success = self._clock()

        delivered = self._bus.publish(Topic.MARKET_UPDATE, self._market_payload())
        logger.debug(
            f"Market tick: {len(fresh)} snapshot(s) refreshed, "
            f"{len(self._market_cache)} cached, {delivered} subscriber(s) notified"
        )
        return True

    async def tick_news(self) -> bool:
        """
        Prepend a fresh batch of articles, enforce capacity, publish.

        A failing news source keeps the previous cache, like the market pipeline.
        """
        stats = self._stats[NEWS]
        now = self._clock()
        try:
            batch = await self._news_source.fetch_articles(now)

        except Exception as e:
            stats.ticks_failed += 1
            stats.last_error = str(e)
            logger.error(
                "News tick failed, serving cached articles",
                extra={"error": str(e), "cached_articles": len(self._news_cache)},
                exc_info=not isinstance(e, LiveDataError),
            )
            return False

        self._news_cache = (list(batch) + self._news_cache)[: self._schedule.news_capacity]
        stats.ticks_succeeded += 1
        stats.last_success = now

        delivered = self._bus.publish(Topic.NEWS_UPDATE, tuple(self._news_cache))
        logger.debug(
            f"News tick: {len(batch)} new article(s), "
            f"{len(self._news_cache)} cached, {delivered} subscriber(s) notified"
        )
        return True

    # ── Lifecycle ────────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._periodic_tasks.values())

    async def start(self) -> None:
        """Start both periodic pipelines. Each ticks immediately, then on its interval."""
        if self.running:
            logger.debug("LiveDataService already running")
            return

        self._periodic_tasks = {
            MARKET: asyncio.create_task(
                self._run_periodic(MARKET, self.tick_market, self._schedule.market_interval_seconds),
                name="live-data-market",
            ),
            NEWS: asyncio.create_task(
                self._run_periodic(NEWS, self.tick_news, self._schedule.news_interval_seconds),
                name="live-data-news",
            ),
        }
        logger.info(
            "LiveDataService started",
            extra={
                "coins": len(self._coin_ids),
                "market_interval": self._schedule.market_interval_seconds,
                "news_interval": self._schedule.news_interval_seconds,
            },
        )

    async def _run_periodic(
        self,
        name: str,
        tick: Callable[[], Awaitable[bool]],
        interval: float,
    ) -> None:
        """
        Fire tick every interval seconds.

        If the previous tick is still awaiting its upstream call when the next
        one is due, the new tick is skipped rather than run concurrently.
        """
        while True:
            previous = self._in_flight.get(name)
            if previous is not None and not previous.done():
                self._stats[name].ticks_skipped += 1
                logger.warning(
                    f"Skipping {name} tick, previous tick still in flight",
                    extra={"interval_seconds": interval},
                )
            else:
                self._in_flight[name] = asyncio.create_task(tick(), name=f"live-data-{name}-tick")
            await asyncio.sleep(interval)

    async def stop(self) -> None:
        """Cancel both schedules and any in-flight tick, then close the upstream client."""
        tasks = [*self._periodic_tasks.values(), *self._in_flight.values()]
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        was_running = bool(self._periodic_tasks)
        self._periodic_tasks = {}
        self._in_flight = {}

        close = getattr(self._quote_source, "close", None)
        if close is not None:
            try:
                await close()
            except Exception as e:
                logger.warning(
                    "Error closing quote source",
                    extra={"error": str(e)},
                )

        if was_running:
            logger.info("LiveDataService stopped", extra=self.get_stats())

    async def __aenter__(self) -> LiveDataService:
        await self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.stop()

    def pipeline_stats(self, name: str) -> PipelineStats:
        return self._stats[name]

    def get_stats(self) -> dict[str, Any]:
        """Flat counters for logging."""
        market = self._stats[MARKET]
        news = self._stats[NEWS]
        return {
            "market_ticks_ok": market.ticks_succeeded,
            "market_ticks_failed": market.ticks_failed,
            "market_ticks_skipped": market.ticks_skipped,
            "news_ticks_ok": news.ticks_succeeded,
            "news_ticks_failed": news.ticks_failed,
            "cached_symbols": len(self._market_cache),
            "cached_articles": len(self._news_cache),
            "subscriber_callback_failures": self._bus.callback_failures,
        }
