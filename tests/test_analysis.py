import threading

import pytest

from newscurator.news.analysis import BatchAnalyzer, ResultAccumulator, split_batches
from newscurator.news.models import NewsCategory, ScoredItem
from newscurator.utils.worker_pool import PoolConfig, RejectionPolicy

from .conftest import make_enriched, make_settings


class RecordingScorer:
    """Scores every item 10 * position; fails batches listed in ``fail_on``."""

    def __init__(self, fail_on=(), gate=None):
        self.fail_on = set(fail_on)
        self.gate = gate
        self.batches = []
        self._lock = threading.Lock()

    def score_batch(self, batch):
        with self._lock:
            self.batches.append([item.title for item in batch])
        if self.gate is not None:
            self.gate.wait(5)
        if any(item.title in self.fail_on for item in batch):
            raise RuntimeError("scoring service unavailable")
        return [ScoredItem(item=item, category=NewsCategory.IT, score=10.0) for item in batch]


def test_split_batches_is_contiguous():
    items = [make_enriched(n) for n in range(5)]
    batches = split_batches(items, 2)
    assert [len(b) for b in batches] == [2, 2, 1]
    assert [item for batch in batches for item in batch] == items


def test_split_batches_rejects_zero_size():
    with pytest.raises(ValueError):
        split_batches([make_enriched(1)], 0)


def test_failed_batch_only_loses_its_own_items():
    items = [make_enriched(n) for n in range(5)]
    scorer = RecordingScorer(fail_on={items[2].title})
    analyzer = BatchAnalyzer(scorer=scorer, config=make_settings(), batch_size=2)

    scored = analyzer.analyze(items)

    assert sorted(len(b) for b in scorer.batches) == [1, 2, 2]
    assert {s.item for s in scored} == {items[0], items[1], items[4]}


def test_all_batches_succeed():
    items = [make_enriched(n) for n in range(7)]
    analyzer = BatchAnalyzer(scorer=RecordingScorer(), config=make_settings(), batch_size=3)

    scored = analyzer.analyze(items)

    assert len(scored) == 7
    assert {s.item for s in scored} == set(items)


def test_empty_input_dispatches_nothing():
    scorer = RecordingScorer()
    assert BatchAnalyzer(scorer=scorer, config=make_settings()).analyze([]) == []
    assert scorer.batches == []


def test_saturated_pool_rejects_batches_instead_of_failing_run():
    items = [make_enriched(n) for n in range(6)]
    gate = threading.Event()
    scorer = RecordingScorer(gate=gate)
    analyzer = BatchAnalyzer(
        scorer=scorer,
        config=make_settings(),
        batch_size=2,
        pool_config=PoolConfig("tiny", max_workers=1, queue_size=0, policy=RejectionPolicy.REJECT),
    )
    timer = threading.Timer(0.2, gate.set)
    timer.start()

    scored = analyzer.analyze(items)

    assert len(scorer.batches) == 1
    assert {s.item for s in scored} == {items[0], items[1]}


def test_cancelled_analysis_returns_partial_results():
    items = [make_enriched(n) for n in range(4)]
    gate = threading.Event()

    class HalfBlockingScorer(RecordingScorer):
        def score_batch(self, batch):
            if batch[0] is items[2]:
                gate.wait(5)
            return super().score_batch(batch)

    analyzer = BatchAnalyzer(scorer=HalfBlockingScorer(), config=make_settings(), batch_size=2)
    cancel = threading.Event()
    timer = threading.Timer(0.3, cancel.set)
    timer.start()
    try:
        scored = analyzer.analyze(items, cancel=cancel)
    finally:
        gate.set()
        timer.cancel()

    assert {s.item for s in scored} == {items[0], items[1]}


def test_accumulator_handles_concurrent_appends():
    accumulator = ResultAccumulator()
    scored = ScoredItem(item=make_enriched(1), category=NewsCategory.IT, score=1.0)

    def append_many():
        for _ in range(500):
            accumulator.extend([scored])

    threads = [threading.Thread(target=append_many) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(accumulator) == 4000
    assert len(accumulator.snapshot()) == 4000
