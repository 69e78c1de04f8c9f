"""
News Data Models

Market-commentary articles held in the bounded news cache. Articles store
their generation time; the human-relative timestamp ("5 minutes ago") is
derived when read, never stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class NewsCategory(str, Enum):
    """News category classification."""

    ADOPTION = "adoption"
    TECH = "tech"
    DEFI = "defi"
    REGULATION = "regulation"
    MARKET = "market"
    SECURITY = "security"


class Impact(str, Enum):
    """Expected market polarity of a news item."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


def format_relative_time(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Render the distance between then and now for display.

    Under a minute is "Just now", under an hour "N minutes ago", under a day
    "N hours ago"; anything older falls back to the calendar date.
    """
    now = now or datetime.now(timezone.utc)
    minutes = int((now - then).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if minutes < 1440:
        return f"{minutes // 60} hours ago"
    return then.date().isoformat()


@dataclass(frozen=True)
class NewsArticle:
    """
    One synthesized or ingested news item.

    Immutable once created; evicted from the cache by capacity only.
    """

    id: str
    title: str
    summary: str
    category: NewsCategory
    created_at: datetime
    source: str
    impact: Impact
    relevant_coins: tuple[str, ...]
    url: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        if not self.id:
            raise ValueError("id must be non-empty string")
        if not self.title:
            raise ValueError("title must be non-empty string")
        if not self.relevant_coins:
            raise ValueError("relevant_coins must contain at least one symbol")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")

    def relative_timestamp(self, now: Optional[datetime] = None) -> str:
        """Time since generation, formatted for display."""
        return format_relative_time(self.created_at, now)

    @property
    def timestamp(self) -> str:
        return self.relative_timestamp()
