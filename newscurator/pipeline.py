"""End-to-end news curation pipeline.

Manages the full flow:
1. Pick today's keywords (generated, or configured defaults)
2. Collect search results for every keyword (concurrent, rate limited)
3. Crawl article pages for detail fields (sequential, paced)
4. Score enriched articles in concurrent batches
5. Keep the top articles per category
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .config.settings import Settings, settings, validate_settings
from .news.analysis import BatchAnalyzer
from .news.crawler import DetailCrawler
from .news.fetcher import NewsFetcher, merge_keywords
from .news.keyword_generator import KeywordGenerator
from .news.keyword_sources import KeywordSources, load_keyword_sources
from .news.models import EnrichedItem, NewsItem, ScoredItem
from .news.selector import select_by_score

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Full result from one curation run."""

    keywords: list[str]
    collected: list[NewsItem]
    enriched: list[EnrichedItem] = field(default_factory=list)
    scored: list[ScoredItem] = field(default_factory=list)
    selected: list[EnrichedItem] = field(default_factory=list)
    run_timestamp: datetime = field(default_factory=datetime.now)
    stats: dict = field(default_factory=dict)
    interrupted: bool = False


class CurationPipeline:
    """
    Wires fetcher, crawler, analyzer and selector together.

    Settings are validated on construction; a misconfigured pipeline never
    starts.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        fetcher: Optional[NewsFetcher] = None,
        crawler: Optional[DetailCrawler] = None,
        analyzer: Optional[BatchAnalyzer] = None,
        keyword_sources: Optional[KeywordSources] = None,
        keyword_generator: Optional[KeywordGenerator] = None,
    ):
        """
        Initialize pipeline.

        Raises:
            ConfigurationError: If settings are invalid
        """
        self.config = config or settings
        validate_settings(self.config)

        self.fetcher = fetcher or NewsFetcher(self.config)
        self.crawler = crawler or DetailCrawler(self.config)
        self.analyzer = analyzer or BatchAnalyzer(config=self.config)
        self.keyword_sources = keyword_sources or load_keyword_sources(self.config.keywords_file)
        if keyword_generator is None and self.config.generate_keywords:
            keyword_generator = KeywordGenerator(
                self.config.keyword_generation_model, self.config.keywords_per_category
            )
        self.keyword_generator = keyword_generator

    def resolve_keywords(
        self,
        keywords: Optional[list[str]] = None,
        use_static: bool = True,
        exclude: Optional[list[str]] = None,
    ) -> list[str]:
        """
        Requested keywords (or today's keywords) plus static keywords.

        Args:
            keywords: Explicit search keywords, used as given
            use_static: Merge static keywords from keywords.yaml
            exclude: Keywords the generator must avoid
        """
        base = list(keywords) if keywords else self._todays_keywords(exclude)
        static = self.keyword_sources.static_keywords if use_static else []
        return merge_keywords(base, static)

    def _todays_keywords(self, exclude: Optional[list[str]] = None) -> list[str]:
        if self.keyword_generator is None:
            return self.keyword_sources.defaults()
        try:
            generated = self.keyword_generator.generate(exclude)
        except Exception as e:
            logger.error("[PIPELINE] Keyword generation failed, using default keywords: %s", e)
            return self.keyword_sources.defaults()
        return [kw for keywords in generated.values() for kw in keywords]

    def run(
        self,
        keywords: Optional[list[str]] = None,
        cancel: Optional[threading.Event] = None,
        use_static: bool = True,
        collect_only: bool = False,
        exclude: Optional[list[str]] = None,
    ) -> PipelineResult:
        """
        Run the curation pipeline.

        Args:
            keywords: Search keywords (default: generated, or configured defaults)
            cancel: Cancellation token; once set, every stage returns what it has
            use_static: Merge static keywords from keywords.yaml
            collect_only: Stop after collection
            exclude: Keywords the generator must avoid

        Returns:
            PipelineResult with every stage's output
        """
        start = time.monotonic()
        resolved = self.resolve_keywords(keywords, use_static, exclude)
        logger.info("[PIPELINE] Starting run with %d keywords", len(resolved))

        collected = self.fetcher.collect(resolved, cancel)
        result = PipelineResult(keywords=resolved, collected=collected)
        if not collected:
            logger.error("[PIPELINE] No news collected, check the search API")

        if not collect_only and collected and not _cancelled(cancel):
            result.enriched = self.crawler.enrich(collected, cancel)
            if result.enriched and not _cancelled(cancel):
                result.scored = self.analyzer.analyze(result.enriched, cancel)
            result.selected = select_by_score(result.scored, self.config.top_per_category)

        result.interrupted = _cancelled(cancel)
        result.stats = {
            "keywords": len(resolved),
            "collected": len(result.collected),
            "enriched": len(result.enriched),
            "scored": len(result.scored),
            "selected": len(result.selected),
            "duration_seconds": time.monotonic() - start,
        }
        logger.info("[PIPELINE] Finished: %s", result.stats)
        return result

    async def run_async(self, keywords: Optional[list[str]] = None, **kwargs) -> PipelineResult:
        """Run the blocking pipeline in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.run(keywords, **kwargs))

    def close(self) -> None:
        self.fetcher.close()
        self.crawler.close()


def _cancelled(cancel: Optional[threading.Event]) -> bool:
    return cancel is not None and cancel.is_set()
