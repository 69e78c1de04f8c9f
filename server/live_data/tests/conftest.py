"""
Shared fixtures for live_data tests.

No network: quotes come from FakeQuoteSource and time from FakeClock.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import pytest

from live_data.config import ScheduleConfig
from live_data.core.types import UpstreamError
from live_data.news.synthesizer import NewsSynthesizer
from live_data.service import LiveDataService

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeQuoteSource:
    """
    Returns queued responses in order. A queued exception is raised instead
    of returned. Once the queue is empty the last response repeats.
    """

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, ...]] = []
        self.closed = False

    def respond(self, *responses: Any) -> None:
        """Replace the queued responses."""
        self._responses = list(responses)

    async def fetch_quotes(self, coin_ids: Sequence[str]) -> dict[str, Any]:
        self.calls.append(tuple(coin_ids))
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def quote(price: float, change: float = 0.0, **extra: float) -> dict[str, float]:
    """Build one simple/price entry."""
    entry = {
        "usd": price,
        "usd_24h_change": change,
        "usd_market_cap": price * 1_000_000,
        "usd_24h_vol": price * 10_000,
        "usd_24h_high": price * 1.02,
        "usd_24h_low": price * 0.98,
    }
    entry.update(extra)
    return entry


def upstream_down(status: int = 503) -> UpstreamError:
    return UpstreamError(
        f"CoinGecko API error: {status}",
        endpoint="https://api.coingecko.com/api/v3/simple/price",
        status=status,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quotes() -> FakeQuoteSource:
    return FakeQuoteSource({
        "bitcoin": quote(50000.0, 2.5),
        "ethereum": quote(3000.0, -1.0),
    })


@pytest.fixture
def service(quotes: FakeQuoteSource, clock: FakeClock) -> LiveDataService:
    return LiveDataService(
        quotes,
        coin_ids=("bitcoin", "ethereum", "solana"),
        news_source=NewsSynthesizer(3, rng=random.Random(7)),
        clock=clock,
    )


@pytest.fixture
def fast_schedule() -> ScheduleConfig:
    return ScheduleConfig(
        market_interval_seconds=0.01,
        news_interval_seconds=0.01,
        news_batch_size=3,
        news_capacity=20,
    )
