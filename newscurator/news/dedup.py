"""Greedy near-duplicate suppression over keyword bit vectors.

Each item's text field is reduced to a keyword set, every distinct keyword
gets a dense index in first-seen order, and each item becomes an ``int``
bitset over those indices. Items are then compared pairwise with Jaccard
similarity; a kept item removes every later item that is *more* similar
than the threshold.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, TypeVar

from .keywords import KeywordExtractor, get_default_extractor

logger = logging.getLogger(__name__)

T = TypeVar("T")


def jaccard_similarity(a: int, b: int) -> float:
    """|A∩B| / |A∪B| for two bitsets, 0.0 when both are empty."""
    union = (a | b).bit_count()
    if union == 0:
        return 0.0
    return (a & b).bit_count() / union


@dataclass
class SimilarityIndex:
    """Keyword positions and per-item bit vectors for one dedup call."""

    positions: dict[str, int]
    vectors: list[int]

    @classmethod
    def build(cls, keyword_sets: Sequence[set[str]]) -> "SimilarityIndex":
        positions: dict[str, int] = {}
        vectors = []
        for keywords in keyword_sets:
            # Sorted so first-seen indices don't depend on set iteration order
            for kw in sorted(keywords):
                if kw not in positions:
                    positions[kw] = len(positions)
            bits = 0
            for kw in keywords:
                bits |= 1 << positions[kw]
            vectors.append(bits)
        return cls(positions=positions, vectors=vectors)

    def similarity(self, i: int, j: int) -> float:
        return jaccard_similarity(self.vectors[i], self.vectors[j])


def dedupe(
    items: Sequence[T],
    field_selector: Callable[[T], str],
    threshold: float,
    extractor: Optional[KeywordExtractor] = None,
) -> list[T]:
    """
    Remove near-duplicates from ``items``, keeping the first of each cluster.

    Args:
        items: Items in priority order
        field_selector: Returns the text to compare for an item
        threshold: Later items with similarity strictly above this are removed
        extractor: Keyword extractor (default: shared spaCy extractor)

    Returns:
        Kept items in their original relative order
    """
    if len(items) < 2:
        return list(items)

    extractor = extractor or get_default_extractor()
    keyword_sets = [extractor.extract_keywords(field_selector(item)) for item in items]
    index = SimilarityIndex.build(keyword_sets)

    kept = []
    removed = [False] * len(items)
    for i, item in enumerate(items):
        if removed[i]:
            continue
        kept.append(item)
        for j in range(i + 1, len(items)):
            if removed[j]:
                continue
            if index.similarity(i, j) > threshold:
                removed[j] = True

    logger.info("[DEDUP] %d -> %d items (threshold=%.2f)", len(items), len(kept), threshold)
    return kept
