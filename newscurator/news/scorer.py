"""Category and importance scoring for enriched articles using LiteLLM.

Compiles a batch of articles into XML and makes a single completion call
that returns a category and a 0-100 score per article.
"""

import logging
from typing import Optional, Protocol, Sequence

from ..config.settings import settings
from ..prompts import render
from ..utils.llm_client import complete_json
from .models import EnrichedItem, NewsCategory, ScoredItem

logger = logging.getLogger(__name__)

# Article bodies are cut to keep a batch within the model's payload limit
MAX_CONTENT_CHARS = 1500


class NewsScorer(Protocol):
    """Anything that can score one batch of enriched items."""

    def score_batch(self, batch: Sequence[EnrichedItem]) -> list[ScoredItem]:
        ...


def _escape_xml(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


class LiteLLMNewsScorer:
    """Scores batches of articles with a single LLM call per batch."""

    def __init__(self, model_id: Optional[str] = None, max_content_chars: int = MAX_CONTENT_CHARS):
        self.model_id = model_id or settings.scoring_model
        self.max_content_chars = max_content_chars

    def _compile_articles_to_xml(self, batch: Sequence[EnrichedItem]) -> str:
        xml_parts = ["<articles>"]
        for i, item in enumerate(batch):
            xml_parts.append(
                f"""  <article id="{i}">
    <title>{_escape_xml(item.title)}</title>
    <content>{_escape_xml(item.content[: self.max_content_chars])}</content>
  </article>"""
            )
        xml_parts.append("</articles>")
        return "\n".join(xml_parts)

    def score_batch(self, batch: Sequence[EnrichedItem]) -> list[ScoredItem]:
        """
        Score one batch.

        Raises:
            LLMResponseError: If the reply has no JSON object
            Exception: Provider errors propagate so the batch counts as failed
        """
        if not batch:
            return []

        prompt = render("news_scoring", articles_xml=self._compile_articles_to_xml(batch))
        data = complete_json(self.model_id, prompt)

        scored = []
        for entry in data.get("results") or []:
            if not isinstance(entry, dict):
                continue
            article_id = entry.get("id")
            if not isinstance(article_id, int) or not 0 <= article_id < len(batch):
                continue
            try:
                category = NewsCategory(str(entry.get("category", "")).upper())
                score = float(entry.get("score", 0))
            except (TypeError, ValueError):
                logger.warning("[SCORER] Ignoring malformed result %r", entry)
                continue
            scored.append(ScoredItem(item=batch[article_id], category=category, score=score))

        logger.info("[SCORER] Scored %d/%d articles with %s", len(scored), len(batch), self.model_id)
        return scored
