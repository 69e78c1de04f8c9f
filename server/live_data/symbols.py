"""
Symbol Map

Static lookup from upstream asset id to internal ticker and display name.
Read-only after import.
"""
from __future__ import annotations

from types import MappingProxyType

SYMBOL_MAP = MappingProxyType({
    "bitcoin": ("BTC", "Bitcoin"),
    "ethereum": ("ETH", "Ethereum"),
    "binancecoin": ("BNB", "BNB"),
    "ripple": ("XRP", "Ripple"),
    "cardano": ("ADA", "Cardano"),
    "solana": ("SOL", "Solana"),
    "polkadot": ("DOT", "Polkadot"),
    "dogecoin": ("DOGE", "Dogecoin"),
    "avalanche-2": ("AVAX", "Avalanche"),
    "chainlink": ("LINK", "Chainlink"),
    "uniswap": ("UNI", "Uniswap"),
    "matic-network": ("MATIC", "Polygon"),
})

_NAMES_BY_SYMBOL = {symbol: name for symbol, name in SYMBOL_MAP.values()}


def resolve(upstream_id: str) -> tuple[str, str]:
    """
    Map an upstream id to (symbol, display name).

    Unknown ids fall back to the upper-cased id for both, so an unexpected
    asset is still cached rather than dropped.
    """
    known = SYMBOL_MAP.get(upstream_id.lower())
    if known is not None:
        return known
    fallback = upstream_id.upper()
    return fallback, fallback


def coin_name(symbol: str) -> str:
    """Display name for a ticker, or the ticker itself if unknown."""
    return _NAMES_BY_SYMBOL.get(symbol.upper(), symbol)
