"""
Live Data Serializer

Converts cached models into the plain dicts sent over the WebSocket and the
Redis relay. Field names are camelCase so both transports share one wire
format with the browser client.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from live_data.models.market import MarketSnapshot
from live_data.models.news import NewsArticle
from live_data.summary import MarketSummary


def snapshot_to_dict(snapshot: MarketSnapshot) -> dict[str, Any]:
    return {
        "symbol": snapshot.symbol,
        "name": snapshot.name,
        "price": snapshot.price,
        "change24h": snapshot.change_24h_percent,
        "marketCap": snapshot.market_cap,
        "volume": snapshot.volume_24h,
        "high24h": snapshot.high_24h,
        "low24h": snapshot.low_24h,
        "lastUpdate": snapshot.last_updated.isoformat(),
    }


def snapshots_to_dict(snapshots: Mapping[str, MarketSnapshot]) -> dict[str, dict[str, Any]]:
    """Serialize a symbol -> snapshot mapping, keeping the symbol keys."""
    return {symbol: snapshot_to_dict(s) for symbol, s in snapshots.items()}


def article_to_dict(
    article: NewsArticle,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Serialize an article. The display timestamp is computed against now,
    so the same article renders as "Just now" and later "5 minutes ago".
    """
    data: dict[str, Any] = {
        "id": article.id,
        "title": article.title,
        "summary": article.summary,
        "category": article.category.value,
        "timestamp": article.relative_timestamp(now),
        "publishedAt": article.created_at.isoformat(),
        "source": article.source,
        "impact": article.impact.value,
        "relevantCoins": list(article.relevant_coins),
    }
    if article.url:
        data["url"] = article.url
    return data


def articles_to_list(
    articles: Iterable[NewsArticle],
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    return [article_to_dict(a, now) for a in articles]


def summary_to_dict(summary: MarketSummary) -> dict[str, Any]:
    data = asdict(summary)
    return {
        "assetCount": data["asset_count"],
        "averageChange24h": data["average_change_24h_percent"],
        "totalVolume": data["total_volume_24h"],
        "totalMarketCap": data["total_market_cap"],
        "trendDirection": data["trend"],
        "riskLevel": data["risk"],
        "topGainer": data["top_gainer"],
        "topLoser": data["top_loser"],
    }
