"""Keyword extraction for near-duplicate detection.

Turns a headline or summary into a set of content-bearing terms using a
spaCy pipeline. Function words (particles, endings, punctuation, spaces)
are discarded and predicates collapse to their base form, so "발표했다" and
"발표한" yield the same keywords.

Korean spaCy models emit one token per space-separated word with
morpheme-level ``tag_`` and ``lemma_`` values joined by ``+``
(e.g. tag ``NNG+JKS``, lemma ``정부+가``). Those are split back into
morphemes before filtering. Tokens without morpheme segmentation are
filtered on their coarse part of speech alone.
"""

import logging
import re
import threading
import unicodedata
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, Iterator, Optional

import spacy
from spacy.tokens import Doc, Token

from ..config.settings import settings

logger = logging.getLogger(__name__)

# Coarse POS that never carry topical signal
FUNCTION_POS = frozenset({"ADP", "PART", "PUNCT", "SPACE", "SYM"})
PREDICATE_POS = frozenset({"VERB", "ADJ"})

# Sejong morpheme tags: J* particles, E* endings, XS* derivational suffixes
FUNCTION_TAG_PREFIXES = ("J", "E", "XS")
PUNCTUATION_TAGS = frozenset({"SF", "SP", "SS", "SE", "SO", "SW"})
PREDICATE_TAGS = frozenset({"VV", "VA", "VX"})

_REPEAT_RE = re.compile(r"(.)\1{2,}")
_WHITESPACE_RE = re.compile(r"\s+")


class ExtractionMode(str, Enum):
    TOKENIZED = "tokenized"
    FALLBACK = "fallback"  # whitespace split after tokenizer failure


@dataclass(frozen=True)
class KeywordExtraction:
    """Keywords for one text field plus how they were obtained."""

    keywords: frozenset
    mode: ExtractionMode

    @property
    def degraded(self) -> bool:
        return self.mode is ExtractionMode.FALLBACK


def normalize_text(text: str) -> str:
    """NFKC-normalize, squash character runs ("ㅋㅋㅋㅋ" -> "ㅋㅋ") and whitespace."""
    normalized = unicodedata.normalize("NFKC", text)
    normalized = _REPEAT_RE.sub(r"\1\1", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def _is_function_tag(tag: str) -> bool:
    return tag in PUNCTUATION_TAGS or tag.startswith(FUNCTION_TAG_PREFIXES)


def _morpheme_keywords(token: Token) -> Iterator[str]:
    tags = token.tag_.split("+")
    lemmas = token.lemma_.split("+")
    for morph, tag in zip(lemmas, tags):
        if not morph or _is_function_tag(tag):
            continue
        if tag in PREDICATE_TAGS:
            yield f"{morph}다"
        else:
            yield morph


def token_keywords(token: Token) -> Iterator[str]:
    """Yield the keywords contributed by a single token."""
    if token.is_space or token.pos_ in FUNCTION_POS:
        return

    tags = token.tag_.split("+") if token.tag_ else []
    lemmas = token.lemma_.split("+") if token.lemma_ else []
    if len(tags) > 1 and len(tags) == len(lemmas):
        yield from _morpheme_keywords(token)
        return

    if tags and _is_function_tag(tags[0]):
        return

    if token.pos_ in PREDICATE_POS and token.lemma_:
        yield token.lemma_
        return

    yield token.text


class KeywordExtractor:
    """
    Extracts normalized keyword sets from free text.

    The spaCy pipeline is loaded lazily on first use. If it can't be loaded
    or fails on a given text, extraction degrades to a whitespace split of
    the raw text and reports ``ExtractionMode.FALLBACK``.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        nlp: Optional[Callable[[str], Doc]] = None,
    ):
        """
        Args:
            model_name: spaCy model package (default: settings.keyword_model)
            nlp: Preloaded pipeline, skips model loading
        """
        self.model_name = model_name or settings.keyword_model
        self._nlp = nlp
        self._load_failed = False
        # spaCy pipelines are not guaranteed thread-safe
        self._lock = threading.Lock()

    def _pipeline(self) -> Optional[Callable[[str], Doc]]:
        if self._nlp is None and not self._load_failed:
            try:
                self._nlp = spacy.load(self.model_name, disable=["ner", "parser"])
                logger.info("[KEYWORDS] Loaded spaCy model %s", self.model_name)
            except Exception as e:
                self._load_failed = True
                logger.warning(
                    "[KEYWORDS] Could not load %s, using whitespace tokens: %s",
                    self.model_name,
                    e,
                )
        return self._nlp

    def extract(self, text: str) -> KeywordExtraction:
        """Extract keywords and report whether the tokenizer was used."""
        if not text or not text.strip():
            return KeywordExtraction(frozenset(), ExtractionMode.TOKENIZED)

        with self._lock:
            nlp = self._pipeline()
            if nlp is None:
                return self._fallback(text)
            try:
                doc = nlp(normalize_text(text))
            except Exception as e:
                logger.warning("[KEYWORDS] Tokenization failed, using whitespace tokens: %s", e)
                return self._fallback(text)

        keywords = frozenset(kw for token in doc for kw in token_keywords(token))
        return KeywordExtraction(keywords, ExtractionMode.TOKENIZED)

    def extract_keywords(self, text: str) -> set[str]:
        """Extract the keyword set for ``text`` (empty text -> empty set)."""
        return set(self.extract(text).keywords)

    @staticmethod
    def _fallback(text: str) -> KeywordExtraction:
        return KeywordExtraction(frozenset(text.split()), ExtractionMode.FALLBACK)


@lru_cache(maxsize=1)
def get_default_extractor() -> KeywordExtractor:
    """Shared extractor so the spaCy model is loaded once per process."""
    return KeywordExtractor()
