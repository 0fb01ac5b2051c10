"""Final selection of scored articles."""

from collections import defaultdict
from typing import Sequence

from .models import EnrichedItem, NewsCategory, ScoredItem

DEFAULT_PER_CATEGORY = 4


def select_by_score(scored: Sequence[ScoredItem], per_category: int = DEFAULT_PER_CATEGORY) -> list[EnrichedItem]:
    """
    Keep the ``per_category`` highest-scoring items of each category.

    Categories appear in the order they were first seen; equal scores keep
    their arrival order.
    """
    by_category: dict[NewsCategory, list[ScoredItem]] = defaultdict(list)
    for item in scored:
        by_category[item.category].append(item)

    selected = []
    for items in by_category.values():
        ranked = sorted(items, key=lambda s: s.score, reverse=True)
        selected.extend(s.item for s in ranked[:per_category])
    return selected
