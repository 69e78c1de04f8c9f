"""
Mock quote source for running without network access to CoinGecko.

Returns simple/price-shaped payloads whose prices random-walk from realistic
starting points, with simulated upstream latency and an optional failure
rate so the stale-cache path can be watched locally.

Usage:
    python main.py --mock
"""
from __future__ import annotations

import asyncio
import random
from typing import Any, Optional, Sequence

from live_data.core.types import UpstreamError

MOCK_ENDPOINT = "mock://coingecko/simple/price"

# (price, market cap, 24h volume)
STARTING_QUOTES: dict[str, tuple[float, float, float]] = {
    "bitcoin": (45000.0, 880_000_000_000.0, 25_000_000_000.0),
    "ethereum": (2500.0, 300_000_000_000.0, 15_000_000_000.0),
    "binancecoin": (320.0, 50_000_000_000.0, 2_000_000_000.0),
    "ripple": (0.65, 35_000_000_000.0, 1_500_000_000.0),
    "cardano": (0.45, 16_000_000_000.0, 400_000_000.0),
    "solana": (90.0, 40_000_000_000.0, 3_000_000_000.0),
    "polkadot": (6.5, 8_500_000_000.0, 250_000_000.0),
    "dogecoin": (0.08, 11_000_000_000.0, 500_000_000.0),
    "avalanche-2": (22.0, 8_000_000_000.0, 350_000_000.0),
    "chainlink": (14.0, 8_000_000_000.0, 400_000_000.0),
    "uniswap": (6.0, 3_600_000_000.0, 120_000_000.0),
    "matic-network": (0.75, 7_000_000_000.0, 300_000_000.0),
}


class MockQuoteSource:
    """Drop-in QuoteSource that fabricates quotes in process."""

    def __init__(
        self,
        *,
        failure_rate: float = 0.1,
        latency_range: tuple[float, float] = (0.05, 0.3),
        rng: Optional[random.Random] = None,
    ) -> None:
        self._failure_rate = failure_rate
        self._latency_range = latency_range
        self._rng = rng or random.Random()
        self._prices = {coin_id: quote[0] for coin_id, quote in STARTING_QUOTES.items()}

    async def fetch_quotes(self, coin_ids: Sequence[str]) -> dict[str, Any]:
        await asyncio.sleep(self._rng.uniform(*self._latency_range))

        if self._rng.random() < self._failure_rate:
            raise UpstreamError(
                "Mock CoinGecko API error: 503",
                endpoint=MOCK_ENDPOINT,
                status=503,
            )

        payload: dict[str, Any] = {}
        for coin_id in coin_ids:
            if coin_id not in STARTING_QUOTES:
                continue
            open_price, market_cap, volume = STARTING_QUOTES[coin_id]
            price = self._prices[coin_id] * (1 + self._rng.uniform(-0.01, 0.01))
            self._prices[coin_id] = price
            change = (price - open_price) / open_price * 100
            payload[coin_id] = {
                "usd": round(price, 6),
                "usd_24h_change": round(change, 4),
                "usd_market_cap": market_cap * price / open_price,
                "usd_24h_vol": volume * self._rng.uniform(0.8, 1.2),
                "usd_24h_high": round(max(price, open_price) * 1.02, 6),
                "usd_24h_low": round(min(price, open_price) * 0.98, 6),
            }
        return payload

    async def close(self) -> None:
        return None
