"""
Market Summary

Whole-basket aggregate used by the dashboard header: average move, total
volume and cap, and a coarse trend/risk read.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from live_data.models.market import MarketSnapshot

TREND_THRESHOLD = 2.0
HIGH_RISK_THRESHOLD = 5.0


@dataclass(frozen=True)
class MarketSummary:
    asset_count: int
    average_change_24h_percent: float
    total_volume_24h: float
    total_market_cap: float
    trend: str
    risk: str
    top_gainer: Optional[str] = None
    top_loser: Optional[str] = None


def _trend(avg_change: float) -> str:
    if avg_change > TREND_THRESHOLD:
        return "BULLISH"
    if avg_change < -TREND_THRESHOLD:
        return "BEARISH"
    return "SIDEWAYS"


def _risk(avg_change: float) -> str:
    volatility = abs(avg_change)
    if volatility > HIGH_RISK_THRESHOLD:
        return "HIGH"
    if volatility > TREND_THRESHOLD:
        return "MEDIUM"
    return "LOW"


def summarize_market(snapshots: Iterable[MarketSnapshot]) -> MarketSummary:
    """Aggregate a set of snapshots. An empty set gives a flat, low-risk summary."""
    coins = list(snapshots)
    if not coins:
        return MarketSummary(
            asset_count=0,
            average_change_24h_percent=0.0,
            total_volume_24h=0.0,
            total_market_cap=0.0,
            trend="SIDEWAYS",
            risk="LOW",
        )

    avg_change = sum(c.change_24h_percent for c in coins) / len(coins)
    gainer = max(coins, key=lambda c: c.change_24h_percent)
    loser = min(coins, key=lambda c: c.change_24h_percent)

    return MarketSummary(
        asset_count=len(coins),
        average_change_24h_percent=avg_change,
        total_volume_24h=sum(c.volume_24h for c in coins),
        total_market_cap=sum(c.market_cap for c in coins),
        trend=_trend(avg_change),
        risk=_risk(avg_change),
        top_gainer=gainer.symbol,
        top_loser=loser.symbol,
    )
