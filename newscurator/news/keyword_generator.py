"""Daily search keyword generation using LiteLLM.

Asks the model for a few search keywords per news category, skipping
keywords the caller wants to avoid (e.g. ones used yesterday).
"""

import logging
from datetime import date
from typing import Iterable, Optional

from ..config.settings import settings
from ..prompts import render
from ..utils.llm_client import LLMResponseError, complete_json
from .models import NewsCategory

logger = logging.getLogger(__name__)


class KeywordGenerator:
    """Generates per-category search keywords with a single LLM call."""

    def __init__(self, model_id: Optional[str] = None, per_category: Optional[int] = None):
        """
        Args:
            model_id: LiteLLM model (default: settings.keyword_generation_model)
            per_category: Keywords requested per category
        """
        self.model_id = model_id or settings.keyword_generation_model
        self.per_category = per_category or settings.keywords_per_category

    def generate(
        self,
        exclude: Optional[Iterable[str]] = None,
        today: Optional[date] = None,
    ) -> dict[NewsCategory, list[str]]:
        """
        Generate today's keywords.

        Args:
            exclude: Keywords that must not be returned
            today: Date given to the model (default: today)

        Returns:
            Keywords per category, in category order

        Raises:
            LLMResponseError: If the reply holds no usable keyword
            Exception: Provider errors from LiteLLM propagate unchanged
        """
        excluded = {kw.strip() for kw in exclude or [] if kw.strip()}
        today = today or date.today()
        logger.info("[KEYWORDS] Generating keywords for %s, excluding %d", today, len(excluded))

        prompt = render(
            "keyword_generation",
            today=today.isoformat(),
            per_category=str(self.per_category),
            exclude_keywords=", ".join(sorted(excluded)) or "(none)",
        )
        data = complete_json(self.model_id, prompt)

        by_key = {str(key).upper(): value for key, value in data.items()}
        seen = set(excluded)
        generated: dict[NewsCategory, list[str]] = {}
        for category in NewsCategory:
            keywords = []
            for entry in by_key.get(category.value) or []:
                # Entries may be plain strings or {"keyword": ...} objects
                keyword = entry.get("keyword") if isinstance(entry, dict) else entry
                if not isinstance(keyword, str):
                    continue
                keyword = keyword.strip()
                if keyword and keyword not in seen:
                    seen.add(keyword)
                    keywords.append(keyword)
            if keywords:
                generated[category] = keywords[: self.per_category]

        if not generated:
            raise LLMResponseError(f"{self.model_id} returned no usable keywords")

        logger.info(
            "[KEYWORDS] Generated %d keywords: %s",
            sum(len(kws) for kws in generated.values()),
            {category.value: kws for category, kws in generated.items()},
        )
        return generated
