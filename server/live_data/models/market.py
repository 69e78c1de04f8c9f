"""
Market Data Models

One MarketSnapshot per tracked symbol. Snapshots are frozen and replaced
wholesale on every successful market tick, never merged field by field.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Complete current state of one tracked asset.

    Prices and volumes are in quote-currency units (USD by default).
    """

    symbol: str
    name: str
    price: float
    change_24h_percent: float
    market_cap: float
    volume_24h: float
    high_24h: float
    low_24h: float
    last_updated: datetime

    def __post_init__(self) -> None:
        """Validate fields."""
        if not self.symbol:
            raise ValueError("symbol must be non-empty string")
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValueError(f"price must be a positive number, got {self.price}")
        if self.last_updated.tzinfo is None:
            raise ValueError("last_updated must be timezone-aware")
