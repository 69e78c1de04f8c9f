"""
CoinGecko HTTP Client

Batched price lookups against the simple/price endpoint.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import aiohttp

from live_data.config import CoinGeckoConfig
from live_data.core.types import PayloadError, UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "BlockTheory/1.0"


@runtime_checkable
class QuoteSource(Protocol):
    """Anything that can return a raw simple/price payload for a basket."""

    async def fetch_quotes(self, coin_ids: Sequence[str]) -> dict[str, Any]:
        """
        Fetch current quotes for every id in coin_ids in one request.

        Raises:
            UpstreamError: Transport failure, timeout or non-2xx status
            PayloadError: Body is not a JSON object
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...


class CoinGeckoClient:
    """
    aiohttp client for the CoinGecko price API.

    The session is created lazily on first use and reused across ticks.
    Every request carries its own total timeout.
    """

    def __init__(
        self,
        config: CoinGeckoConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_seconds)
        self._requests_sent = 0

    @property
    def endpoint(self) -> str:
        return self._config.price_url

    @property
    def requests_sent(self) -> int:
        return self._requests_sent

    async def __aenter__(self) -> CoinGeckoClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
            if self._config.api_key:
                headers["x-cg-demo-api-key"] = self._config.api_key
            self._session = aiohttp.ClientSession(headers=headers)
            self._owns_session = True
        return self._session

    def _params(self, coin_ids: Sequence[str]) -> dict[str, str]:
        return {
            "ids": ",".join(coin_ids),
            "vs_currencies": self._config.vs_currency,
            "include_24hr_change": "true",
            "include_market_cap": "true",
            "include_24hr_vol": "true",
            "include_24hr_high_low": "true",
        }

    async def fetch_quotes(self, coin_ids: Sequence[str]) -> dict[str, Any]:
        """Fetch quotes for the whole basket in one GET."""
        session = self._get_session()
        self._requests_sent += 1

        try:
            async with session.get(
                self.endpoint,
                params=self._params(coin_ids),
                timeout=self._timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise UpstreamError(
                        f"CoinGecko API error: {resp.status}",
                        endpoint=self.endpoint,
                        status=resp.status,
                    )
                data = await resp.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"Request timed out after {self._config.timeout_seconds}s",
                endpoint=self.endpoint,
            ) from e
        except aiohttp.ClientError as e:
            raise UpstreamError(
                f"Request failed: {e}",
                endpoint=self.endpoint,
            ) from e
        except ValueError as e:
            # json.JSONDecodeError
            raise PayloadError(
                f"Invalid JSON from CoinGecko: {e}",
                field="body",
                context={"endpoint": self.endpoint},
            ) from e

        if not isinstance(data, dict):
            raise PayloadError(
                "Invalid response format from CoinGecko API",
                field="body",
                value=data,
                context={"endpoint": self.endpoint},
            )

        logger.debug(
            "Fetched %d quote(s) from CoinGecko",
            len(data),
            extra={"endpoint": self.endpoint},
        )
        return data

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
