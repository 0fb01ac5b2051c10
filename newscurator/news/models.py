"""Data models for collected, enriched and scored news items."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .text import parse_pub_date


class NewsCategory(str, Enum):
    """Closed set of categories the scorer may assign."""

    SOCIETY = "SOCIETY"
    ECONOMY = "ECONOMY"
    POLITICS = "POLITICS"
    CULTURE = "CULTURE"
    IT = "IT"


@dataclass(frozen=True)
class NewsItem:
    """Search result metadata as returned by the news search API."""

    title: str
    original_link: str
    link: str
    description: str
    pub_date: str  # e.g. "Tue, 29 Jul 2025 18:48:00 +0900"


@dataclass(frozen=True)
class ArticleDetail:
    """Fields scraped from an article page."""

    content: str
    image_url: str
    journalist: str
    media_name: str


@dataclass(frozen=True)
class EnrichedItem:
    """News item combined with its crawled article detail."""

    news: NewsItem
    detail: ArticleDetail

    @property
    def title(self) -> str:
        return self.news.title

    @property
    def link(self) -> str:
        return self.news.link

    @property
    def content(self) -> str:
        return self.detail.content

    @property
    def published_at(self) -> datetime:
        return parse_pub_date(self.news.pub_date)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "title": self.news.title,
            "description": self.news.description,
            "link": self.news.link,
            "original_link": self.news.original_link,
            "published_at": self.published_at.isoformat(),
            "content": self.detail.content,
            "image_url": self.detail.image_url,
            "journalist": self.detail.journalist,
            "media_name": self.detail.media_name,
        }


@dataclass(frozen=True)
class ScoredItem:
    """Enriched item after analysis by the scoring collaborator."""

    item: EnrichedItem
    category: NewsCategory
    score: float  # higher is better
