"""
CoinGecko Client Module

HTTP client and payload normalizer for the CoinGecko price API.
"""
from live_data.coingecko.client import CoinGeckoClient, QuoteSource
from live_data.coingecko.normalizer import normalize_quote, normalize_quotes

__all__ = [
    "CoinGeckoClient",
    "QuoteSource",
    "normalize_quote",
    "normalize_quotes",
]
