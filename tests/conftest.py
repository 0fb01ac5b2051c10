"""Shared fixtures for the curation pipeline tests."""

from typing import Optional

import pytest
from spacy.tokens import Doc
from spacy.vocab import Vocab

from newscurator.config.settings import Settings
from newscurator.news.keywords import KeywordExtractor
from newscurator.news.models import ArticleDetail, EnrichedItem, NewsItem

# surface form -> (coarse POS, morpheme tags, morpheme lemmas)
KOREAN_LEXICON = {
    "정부가": ("NOUN", "NNG+JKS", "정부+가"),
    "정부는": ("NOUN", "NNG+JX", "정부+는"),
    "발표했다": ("VERB", "NNG+XSV+EP+EF", "발표+하+았+다"),
    "발표한": ("VERB", "NNG+XSV+ETM", "발표+하+ㄴ"),
    "먹었다": ("VERB", "VV+EP+EF", "먹+었+다"),
    "먹은": ("VERB", "VV+ETM", "먹+은"),
    "빠른": ("ADJ", "VA", "빠르다"),
    "을": ("ADP", "JKO", "을"),
    "를": ("ADP", "JKO", "를"),
    ".": ("PUNCT", "SF", "."),
}


class FakeKoreanNLP:
    """Whitespace tokenizer that tags words from a fixed lexicon.

    Unknown words become plain nouns, which keeps test texts readable:
    "AI 반도체 수출" -> {"AI", "반도체", "수출"}.
    """

    def __init__(self, lexicon: Optional[dict] = None):
        self.vocab = Vocab()
        self.lexicon = KOREAN_LEXICON if lexicon is None else lexicon
        self.calls = 0
        self.texts = []

    def __call__(self, text: str) -> Doc:
        self.calls += 1
        self.texts.append(text)
        words = text.split()
        pos, tags, lemmas = [], [], []
        for word in words:
            p, t, l = self.lexicon.get(word, ("NOUN", "NNG", word))
            pos.append(p)
            tags.append(t)
            lemmas.append(l)
        return Doc(self.vocab, words=words, pos=pos, tags=tags, lemmas=lemmas)


@pytest.fixture
def extractor() -> KeywordExtractor:
    return KeywordExtractor(nlp=FakeKoreanNLP())


def make_settings(**overrides) -> Settings:
    values = dict(
        naver_client_id="test-id",
        naver_client_secret="test-secret",
        naver_base_url="https://search.example.com/v1/search/news.json",
        rate_limit_interval=0.0,
        crawling_delay=0.0,
        title_similarity_threshold=0.3,
        description_similarity_threshold=0.3,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


def make_news_item(n: int, link: Optional[str] = None) -> NewsItem:
    return NewsItem(
        title=f"제목{n} 키워드{n}",
        original_link=f"https://press.example.com/article/{n}",
        link=link or f"https://n.news.naver.com/mnews/article/001/{n:010d}",
        description=f"요약{n} 내용{n}",
        pub_date="Tue, 29 Jul 2025 18:48:00 +0900",
    )


def make_enriched(n: int) -> EnrichedItem:
    return EnrichedItem(
        news=make_news_item(n),
        detail=ArticleDetail(
            content=f"본문 {n}",
            image_url=f"https://img.example.com/{n}.jpg",
            journalist=f"기자{n}",
            media_name="테스트일보",
        ),
    )
