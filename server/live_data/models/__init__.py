"""
Live Data Models

Frozen dataclasses with validation.
"""
from live_data.models.market import MarketSnapshot
from live_data.models.news import (
    Impact,
    NewsArticle,
    NewsCategory,
    format_relative_time,
)

__all__ = [
    "Impact",
    "MarketSnapshot",
    "NewsArticle",
    "NewsCategory",
    "format_relative_time",
]
