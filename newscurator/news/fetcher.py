"""News search fetching for keyword-driven collection.

Issues one search API request per keyword on a bounded worker pool, keeps
only articles hosted on the canonical news domain, removes near-duplicate
headlines and summaries, and merges everything into one candidate list.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Optional

import httpx

from ..config.settings import Settings, settings
from ..utils.rate_limiter import RateLimiter
from ..utils.worker_pool import (
    PoolConfig,
    PoolSaturated,
    RejectionPolicy,
    WorkerPool,
    join_all,
)
from .dedup import dedupe
from .errors import UpstreamError
from .keywords import KeywordExtractor, get_default_extractor
from .models import NewsItem
from .text import clean_text

logger = logging.getLogger(__name__)


class NewsFetcher:
    """
    Fetches news metadata from the search API for a list of keywords.

    Every request goes through a shared RateLimiter. Requests run on a
    caller-runs worker pool so a saturated queue slows submission down
    instead of dropping keywords.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
        rate_limiter: Optional[RateLimiter] = None,
        pool_config: Optional[PoolConfig] = None,
        extractor: Optional[KeywordExtractor] = None,
    ):
        """
        Initialize news fetcher.

        Args:
            config: Settings to read credentials and thresholds from
            client: HTTP client (default: one created from config)
            rate_limiter: Shared limiter (default: config.rate_limit_interval)
            pool_config: Fetch pool sizing (default: from config, caller-runs)
            extractor: Keyword extractor used for dedup
        """
        self.config = config or settings
        self.client = client or httpx.Client(timeout=self.config.request_timeout)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limit_interval)
        self.pool_config = pool_config or PoolConfig(
            name="news-fetch",
            max_workers=self.config.fetch_pool_workers,
            queue_size=self.config.fetch_pool_queue,
            policy=RejectionPolicy.CALLER_RUNS,
        )
        self.extractor = extractor or get_default_extractor()

    def _headers(self) -> dict[str, str]:
        return {
            "X-Naver-Client-Id": self.config.naver_client_id,
            "X-Naver-Client-Secret": self.config.naver_client_secret,
        }

    def fetch(self, keyword: str, cancel: Optional[threading.Event] = None) -> list[NewsItem]:
        """
        Fetch, filter and deduplicate search results for one keyword.

        Raises:
            UpstreamError: Non-200 status, transport failure or bad JSON
        """
        if not self.rate_limiter.wait_for_rate_limit(cancel):
            logger.info("[FETCHER] '%s' cancelled before request", keyword)
            return []

        try:
            response = self.client.get(
                self.config.naver_base_url,
                params={
                    "query": keyword,
                    "display": self.config.news_display_count,
                    "sort": self.config.news_sort,
                },
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise UpstreamError(keyword, f"request failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise UpstreamError(
                keyword,
                f"search API returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(keyword, "could not parse search API response") from e
        if not isinstance(payload, dict):
            raise UpstreamError(keyword, "search API response is not an object")

        raw_items = payload.get("items")
        if raw_items is None:
            return []

        items = self._parse_items(raw_items)
        canonical = [item for item in items if self.config.canonical_news_host in item.link]

        dedup_title = dedupe(
            canonical,
            lambda item: item.title,
            self.config.title_similarity_threshold,
            self.extractor,
        )
        dedup_description = dedupe(
            dedup_title,
            lambda item: item.description,
            self.config.description_similarity_threshold,
            self.extractor,
        )
        limited = dedup_description[: self.config.max_items_per_keyword]

        logger.info(
            "[FETCHER] '%s': %d canonical -> %d after dedup -> %d kept",
            keyword,
            len(canonical),
            len(dedup_description),
            len(limited),
        )
        return limited

    def _parse_items(self, raw_items: list) -> list[NewsItem]:
        """Convert API items into NewsItem, dropping incomplete entries."""
        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            item = NewsItem(
                title=clean_text(raw.get("title") or ""),
                original_link=(raw.get("originallink") or "").strip(),
                link=(raw.get("link") or "").strip(),
                description=clean_text(raw.get("description") or ""),
                pub_date=(raw.get("pubDate") or "").strip(),
            )
            if not all((item.title, item.original_link, item.link, item.description, item.pub_date)):
                continue
            items.append(item)
        return items

    def collect(self, keywords: list[str], cancel: Optional[threading.Event] = None) -> list[NewsItem]:
        """
        Fetch all keywords concurrently and merge the results.

        A failing keyword is logged and left out; it never affects the others.
        If ``cancel`` is set while waiting, results of keywords that already
        finished are returned.

        Returns:
            Items grouped by keyword in submission order
        """
        logger.info("[FETCHER] Collecting %d keywords", len(keywords))
        if not keywords:
            return []

        pool = WorkerPool(self.pool_config)
        futures: list[tuple[str, Future]] = []
        interrupted = False
        try:
            for keyword in keywords:
                submitted = pool.submit(self.fetch, keyword, cancel)
                if isinstance(submitted, PoolSaturated):
                    # Only reachable with a REJECT pool config
                    logger.error("[FETCHER] '%s' rejected: %s saturated", keyword, submitted.pool_name)
                    continue
                futures.append((keyword, submitted))

            interrupted = join_all([future for _, future in futures], cancel)
        finally:
            pool.shutdown(wait=not interrupted)

        if interrupted:
            logger.warning("[FETCHER] Collection interrupted, returning finished keywords only")

        all_news: list[NewsItem] = []
        succeeded = 0
        for keyword, future in futures:
            if not future.done() or future.cancelled():
                continue
            try:
                all_news.extend(future.result())
                succeeded += 1
            except UpstreamError as e:
                logger.error("[FETCHER] %s", e)
            except Exception:
                logger.exception("[FETCHER] '%s' failed", keyword)

        logger.info(
            "[FETCHER] Collected %d items from %d/%d keywords",
            len(all_news),
            succeeded,
            len(keywords),
        )
        return all_news

    def close(self) -> None:
        self.client.close()


def merge_keywords(keywords: list[str], static_keywords: list[str]) -> list[str]:
    """Order-preserving distinct union of generated and static keywords."""
    merged = []
    seen = set()
    for keyword in [*keywords, *static_keywords]:
        keyword = keyword.strip()
        if keyword and keyword not in seen:
            seen.add(keyword)
            merged.append(keyword)
    return merged
