"""Concurrent batch analysis of enriched articles.

Articles are split into small contiguous batches and every batch is sent
to the scorer on the analysis pool at once. Results are appended as each
batch finishes. A failed or rejected batch only loses its own items.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Optional, Sequence

from ..config.settings import Settings, settings
from ..utils.worker_pool import (
    PoolConfig,
    PoolSaturated,
    RejectionPolicy,
    WorkerPool,
    join_all,
)
from .models import EnrichedItem, ScoredItem
from .scorer import LiteLLMNewsScorer, NewsScorer

logger = logging.getLogger(__name__)


def split_batches(items: Sequence[EnrichedItem], batch_size: int) -> list[list[EnrichedItem]]:
    """Contiguous slices of at most ``batch_size`` items."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


class ResultAccumulator:
    """Thread-safe list of scored items."""

    def __init__(self) -> None:
        self._items: list[ScoredItem] = []
        self._lock = threading.Lock()

    def extend(self, items: Sequence[ScoredItem]) -> int:
        with self._lock:
            self._items.extend(items)
            return len(self._items)

    def snapshot(self) -> list[ScoredItem]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class BatchAnalyzer:
    """Dispatches scoring batches concurrently and tolerates batch failures."""

    def __init__(
        self,
        scorer: Optional[NewsScorer] = None,
        config: Optional[Settings] = None,
        batch_size: Optional[int] = None,
        pool_config: Optional[PoolConfig] = None,
    ):
        """
        Args:
            scorer: Scoring collaborator (default: LiteLLMNewsScorer)
            config: Settings (default: global settings)
            batch_size: Items per batch (default: config.analysis_batch_size)
            pool_config: Analysis pool sizing (default: from config, reject policy)
        """
        self.config = config or settings
        self.scorer = scorer or LiteLLMNewsScorer(self.config.scoring_model)
        self.batch_size = batch_size or self.config.analysis_batch_size
        self.pool_config = pool_config or PoolConfig(
            name="news-analysis",
            max_workers=self.config.analysis_pool_workers,
            queue_size=self.config.analysis_pool_queue,
            policy=RejectionPolicy.REJECT,
        )

    def analyze(
        self,
        items: Sequence[EnrichedItem],
        cancel: Optional[threading.Event] = None,
    ) -> list[ScoredItem]:
        """
        Score all items in concurrent batches.

        Returns:
            Scored items from every batch that succeeded, in completion order
        """
        if not items:
            logger.warning("[ANALYSIS] Nothing to analyze")
            return []

        batches = split_batches(items, self.batch_size)
        logger.info("[ANALYSIS] Analyzing %d items in %d batches", len(items), len(batches))

        results = ResultAccumulator()
        pool = WorkerPool(self.pool_config)
        futures: list[Future] = []
        interrupted = False
        try:
            for number, batch in enumerate(batches, start=1):
                submitted = pool.submit(self.scorer.score_batch, batch)
                if isinstance(submitted, PoolSaturated):
                    logger.error(
                        "[ANALYSIS] Batch %d rejected: pool %s is full (%d slots), check pool size",
                        number,
                        submitted.pool_name,
                        submitted.capacity,
                    )
                    continue
                submitted.add_done_callback(self._collector(number, results))
                futures.append(submitted)

            interrupted = join_all(futures, cancel)
        finally:
            # Done-callbacks run on the worker threads; joining them makes
            # sure every finished batch has been added before the snapshot.
            pool.shutdown(wait=not interrupted)

        if interrupted:
            logger.error("[ANALYSIS] Interrupted, returning %d partial results", len(results))

        scored = results.snapshot()
        logger.info("[ANALYSIS] Done: %d scored items", len(scored))
        return scored

    @staticmethod
    def _collector(number: int, results: ResultAccumulator):
        def on_done(future: Future) -> None:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                logger.error("[ANALYSIS] Batch %d failed: %s", number, error, exc_info=error)
                return
            total = results.extend(future.result())
            logger.info("[ANALYSIS] Batch %d done, %d items so far", number, total)

        return on_done
