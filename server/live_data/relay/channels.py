"""
Relay Channel Definitions

Channel naming scheme:
  live:market                 full market cache after every market tick
  live:market:{SYMBOL}        one snapshot, e.g. live:market:BTC
  live:news                   full news list after every news tick
"""
from __future__ import annotations

from typing import Any

MARKET_ALL = "live:market"
NEWS_ALL = "live:news"

SYMBOL_PREFIX = "live:market:"


def symbol_channel(symbol: str) -> str:
    return f"{SYMBOL_PREFIX}{symbol.upper()}"


def market_messages(markets: dict[str, dict[str, Any]]) -> list[tuple[str, Any]]:
    """
    Expand one serialized market update into (channel, data) pairs.

    The full cache goes to live:market, each snapshot to its symbol channel.
    """
    messages: list[tuple[str, Any]] = [(MARKET_ALL, markets)]
    for symbol, snapshot in markets.items():
        messages.append((symbol_channel(symbol), snapshot))
    return messages
