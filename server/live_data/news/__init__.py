"""
News Module

Template-based market-commentary synthesis.
"""
from .synthesizer import (
    TEMPLATES,
    WORD_LISTS,
    ArticleTemplate,
    NewsSource,
    NewsSynthesizer,
)

__all__ = [
    "TEMPLATES",
    "WORD_LISTS",
    "ArticleTemplate",
    "NewsSource",
    "NewsSynthesizer",
]
