"""Load static and fallback search keywords from YAML configuration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from ..config.settings import settings
from .models import NewsCategory

logger = logging.getLogger(__name__)


@dataclass
class KeywordSources:
    """Keywords configured in keywords.yaml."""

    static_keywords: list[str] = field(default_factory=list)
    default_keywords: dict[NewsCategory, list[str]] = field(default_factory=dict)

    def defaults(self) -> list[str]:
        """Flatten per-category default keywords in category order."""
        return [kw for keywords in self.default_keywords.values() for kw in keywords]


def load_keyword_sources(path: Optional[Path] = None) -> KeywordSources:
    """
    Load keyword sources from YAML.

    Args:
        path: Path to keywords.yaml (default: settings.keywords_file)

    Returns:
        KeywordSources, empty if the file doesn't exist
    """
    path = path or settings.keywords_file
    if not path.exists():
        logger.warning("[KEYWORDS] Keyword file not found: %s", path)
        return KeywordSources()

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    defaults: dict[NewsCategory, list[str]] = {}
    for name, keywords in (data.get("default_keywords") or {}).items():
        try:
            category = NewsCategory(str(name).upper())
        except ValueError:
            logger.warning("[KEYWORDS] Unknown category %r in %s", name, path.name)
            continue
        defaults[category] = [str(kw) for kw in keywords or []]

    sources = KeywordSources(
        static_keywords=[str(kw) for kw in data.get("static_keywords") or []],
        default_keywords=defaults,
    )
    logger.info(
        "[KEYWORDS] Loaded %d static and %d default keywords from %s",
        len(sources.static_keywords),
        len(sources.defaults()),
        path.name,
    )
    return sources
