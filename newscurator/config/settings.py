"""Configuration settings for the news curation pipeline."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from ..news.errors import ConfigurationError

# Load .env file
load_dotenv()

VALID_SORT_ORDERS = ("sim", "date")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Naver search API credentials
    naver_client_id: str = os.getenv("NAVER_CLIENT_ID", "")
    naver_client_secret: str = os.getenv("NAVER_CLIENT_SECRET", "")

    # Upstream search
    naver_base_url: str = "https://openapi.naver.com/v1/search/news.json"
    news_display_count: int = 10  # 1-99
    news_sort: str = "sim"  # sim = relevance, date = recency
    rate_limit_interval: float = 0.1  # seconds between upstream calls
    request_timeout: float = 10.0
    canonical_news_host: str = "n.news.naver.com"
    max_items_per_keyword: int = 12

    # Near-duplicate thresholds (Jaccard, strict >)
    title_similarity_threshold: float = 0.3
    description_similarity_threshold: float = 0.3

    # Keyword extraction
    keyword_model: str = "ko_core_news_sm"

    # Keyword generation (falls back to default_keywords on failure)
    generate_keywords: bool = True
    keyword_generation_model: str = "gemini/gemini-3-flash-preview"
    keywords_per_category: int = 2

    # Detail crawling
    crawling_delay: float = 1.0  # seconds between article pages

    # Analysis
    scoring_model: str = "gemini/gemini-3-flash-preview"
    analysis_batch_size: int = 2  # larger batches overflow the scoring payload
    top_per_category: int = 4

    # Worker pools
    fetch_pool_workers: int = 6
    fetch_pool_queue: int = 60
    analysis_pool_workers: int = 2
    analysis_pool_queue: int = 50

    # Paths
    project_root: Path = Path(__file__).parent.parent.parent
    package_dir: Path = project_root / "newscurator"
    config_dir: Path = package_dir / "config"
    keywords_file: Path = config_dir / "keywords.yaml"

    class Config:
        env_file = ".env"
        extra = "ignore"


def validate_settings(config: Settings) -> None:
    """Fail fast on misconfiguration.

    Raises:
        ConfigurationError: Listing every invalid value found
    """
    problems = []

    if not config.naver_client_id:
        problems.append("NAVER_CLIENT_ID is not set")
    if not config.naver_client_secret:
        problems.append("NAVER_CLIENT_SECRET is not set")
    if not 1 <= config.news_display_count <= 99:
        problems.append(
            f"news_display_count must be within 1-99 (got {config.news_display_count})"
        )
    if config.news_sort not in VALID_SORT_ORDERS:
        problems.append(f"news_sort must be one of {VALID_SORT_ORDERS} (got {config.news_sort!r})")
    if config.crawling_delay < 0:
        problems.append("crawling_delay must be >= 0")
    if config.rate_limit_interval < 0:
        problems.append("rate_limit_interval must be >= 0")
    if not config.naver_base_url:
        problems.append("naver_base_url is not set")

    for name in ("title_similarity_threshold", "description_similarity_threshold"):
        value = getattr(config, name)
        if not 0.0 < value <= 1.0:
            problems.append(f"{name} must be within (0, 1] (got {value})")

    if config.analysis_batch_size < 1:
        problems.append("analysis_batch_size must be >= 1")
    if config.keywords_per_category < 1:
        problems.append("keywords_per_category must be >= 1")
    if config.fetch_pool_workers < 1 or config.analysis_pool_workers < 1:
        problems.append("worker pools need at least one worker")

    if problems:
        raise ConfigurationError("; ".join(problems))


# Global settings instance
settings = Settings()
