"""
News Synthesizer

Template-based market commentary used in place of a live news feed.
Each template carries its own category, impact and relevant coins; only
the wording is randomized.
"""
from __future__ import annotations

import itertools
import random
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from live_data.models.news import Impact, NewsArticle, NewsCategory

SOURCE_LABEL = "LiveCrypto"


@dataclass(frozen=True)
class ArticleTemplate:
    template: str
    category: NewsCategory
    impact: Impact
    coins: tuple[str, ...]


TEMPLATES: tuple[ArticleTemplate, ...] = (
    ArticleTemplate(
        "Bitcoin {action} as institutional adoption {trend}",
        NewsCategory.ADOPTION, Impact.BULLISH, ("BTC",),
    ),
    ArticleTemplate(
        "Ethereum {action} following successful {upgrade} implementation",
        NewsCategory.TECH, Impact.BULLISH, ("ETH",),
    ),
    ArticleTemplate(
        "DeFi sector sees {metric} as {protocol} launches new features",
        NewsCategory.DEFI, Impact.BULLISH, ("ETH", "SOL", "AVAX"),
    ),
    ArticleTemplate(
        "Regulatory clarity improves as {country} announces crypto-friendly policies",
        NewsCategory.REGULATION, Impact.BULLISH, ("BTC", "ETH"),
    ),
    ArticleTemplate(
        "Major exchange reports record {metric} in cryptocurrency trading",
        NewsCategory.MARKET, Impact.NEUTRAL, ("BTC", "ETH", "SOL"),
    ),
    ArticleTemplate(
        "Altcoins {drop} as traders rotate back into Bitcoin",
        NewsCategory.MARKET, Impact.BEARISH, ("SOL", "ADA", "DOT", "AVAX"),
    ),
    ArticleTemplate(
        "{protocol} pauses deposits after security researchers flag exploit",
        NewsCategory.SECURITY, Impact.BEARISH, ("ETH", "UNI"),
    ),
)

WORD_LISTS: dict[str, tuple[str, ...]] = {
    "action": ("surges", "rallies", "gains momentum", "reaches new highs", "shows strength"),
    "trend": ("accelerates", "continues", "expands globally", "drives demand"),
    "upgrade": ("scaling upgrade", "security enhancement", "efficiency improvement"),
    "metric": ("volume surge", "user growth", "TVL increase", "adoption rates"),
    "protocol": ("Uniswap", "Aave", "Compound", "PancakeSwap"),
    "country": ("Singapore", "Switzerland", "Dubai", "Hong Kong"),
    "drop": ("slide", "retreat", "lose ground", "extend losses"),
}

_SLOT = re.compile(r"\{(\w+)\}")


class NewsSource(Protocol):
    """Produces a batch of new articles, newest first."""

    async def fetch_articles(self, now: datetime) -> list[NewsArticle]:
        ...


class NewsSynthesizer:
    """
    Generates batches of plausible market commentary.

    Pass a seeded random.Random for reproducible output.
    """

    def __init__(
        self,
        batch_size: int = 3,
        *,
        rng: Optional[random.Random] = None,
        templates: tuple[ArticleTemplate, ...] = TEMPLATES,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if batch_size > len(templates):
            raise ValueError(
                f"batch_size {batch_size} exceeds available templates ({len(templates)})"
            )
        self._batch_size = batch_size
        self._rng = rng or random.Random()
        self._templates = templates
        self._sequence = itertools.count()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _fill(self, template: str) -> str:
        return _SLOT.sub(
            lambda m: self._rng.choice(WORD_LISTS[m.group(1)]),
            template,
        )

    def generate(self, now: datetime) -> list[NewsArticle]:
        """Build one batch of articles stamped with the generation time."""
        millis = int(now.timestamp() * 1000)
        chosen = self._rng.sample(self._templates, self._batch_size)

        articles = []
        for template in chosen:
            title = self._fill(template.template)
            articles.append(NewsArticle(
                id=f"live-{millis}-{next(self._sequence)}",
                title=title,
                summary=(
                    f"Latest market development: {title.lower()}. This development is "
                    "expected to have significant impact on cryptocurrency markets "
                    "and trading sentiment."
                ),
                category=template.category,
                created_at=now,
                source=SOURCE_LABEL,
                impact=template.impact,
                relevant_coins=template.coins,
            ))
        return articles

    async def fetch_articles(self, now: datetime) -> list[NewsArticle]:
        return self.generate(now)
