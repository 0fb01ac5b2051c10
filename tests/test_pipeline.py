import asyncio
import json
import threading
from unittest.mock import MagicMock, patch

import pytest

from newscurator.main import main, parse_args, result_to_dict
from newscurator.news.errors import ConfigurationError
from newscurator.news.keyword_sources import KeywordSources
from newscurator.news.models import NewsCategory, ScoredItem
from newscurator.pipeline import CurationPipeline

from .conftest import make_enriched, make_news_item, make_settings


@pytest.fixture
def sources():
    return KeywordSources(
        static_keywords=["속보"],
        default_keywords={NewsCategory.IT: ["AI"], NewsCategory.ECONOMY: ["환율"]},
    )


def build_pipeline(sources, generator=None, **overrides):
    if generator is None:
        generator = MagicMock()
        generator.generate.side_effect = RuntimeError("model unavailable")
    fetcher = MagicMock()
    crawler = MagicMock()
    analyzer = MagicMock()
    pipeline = CurationPipeline(
        make_settings(**overrides),
        fetcher=fetcher,
        crawler=crawler,
        analyzer=analyzer,
        keyword_sources=sources,
        keyword_generator=generator,
    )
    return pipeline, fetcher, crawler, analyzer


def test_invalid_settings_stop_construction(sources):
    with pytest.raises(ConfigurationError):
        build_pipeline(sources, naver_client_id="")


def test_resolve_keywords_merges_static(sources):
    pipeline, *_ = build_pipeline(sources)

    assert pipeline.resolve_keywords(["AI", " 속보 "]) == ["AI", "속보"]
    assert pipeline.resolve_keywords() == ["AI", "환율", "속보"]
    assert pipeline.resolve_keywords(["반도체"], use_static=False) == ["반도체"]


def test_generated_keywords_are_used_when_none_given(sources):
    generator = MagicMock()
    generator.generate.return_value = {
        NewsCategory.SOCIETY: ["폭염"],
        NewsCategory.IT: ["반도체", "속보"],
    }
    pipeline, fetcher, *_ = build_pipeline(sources, generator=generator)
    fetcher.collect.return_value = []

    result = pipeline.run(exclude=["사회"], collect_only=True)

    generator.generate.assert_called_once_with(["사회"])
    assert result.keywords == ["폭염", "반도체", "속보"]


def test_explicit_keywords_skip_generation(sources):
    generator = MagicMock()
    pipeline, *_ = build_pipeline(sources, generator=generator)

    assert pipeline.resolve_keywords(["AI"]) == ["AI", "속보"]
    generator.generate.assert_not_called()


def test_generation_failure_falls_back_to_defaults(sources):
    pipeline, *_ = build_pipeline(sources)

    assert pipeline.resolve_keywords(exclude=["AI"]) == ["AI", "환율", "속보"]
    pipeline.keyword_generator.generate.assert_called_once_with(["AI"])


def test_real_generator_falls_back_when_reply_is_unusable(sources):
    with patch("newscurator.news.keyword_generator.complete_json", return_value={"results": []}):
        pipeline = CurationPipeline(
            make_settings(),
            fetcher=MagicMock(),
            crawler=MagicMock(),
            analyzer=MagicMock(),
            keyword_sources=sources,
        )
        assert pipeline.resolve_keywords() == ["AI", "환율", "속보"]


def test_generation_can_be_disabled(sources):
    pipeline = CurationPipeline(
        make_settings(generate_keywords=False),
        fetcher=MagicMock(),
        crawler=MagicMock(),
        analyzer=MagicMock(),
        keyword_sources=sources,
    )

    assert pipeline.keyword_generator is None
    assert pipeline.resolve_keywords() == ["AI", "환율", "속보"]


def test_full_run_selects_top_items(sources):
    pipeline, fetcher, crawler, analyzer = build_pipeline(sources, top_per_category=1)
    collected = [make_news_item(1), make_news_item(2)]
    enriched = [make_enriched(1), make_enriched(2)]
    fetcher.collect.return_value = collected
    crawler.enrich.return_value = enriched
    analyzer.analyze.return_value = [
        ScoredItem(enriched[0], NewsCategory.IT, 40),
        ScoredItem(enriched[1], NewsCategory.IT, 90),
    ]

    result = pipeline.run(["AI"])

    fetcher.collect.assert_called_once_with(["AI", "속보"], None)
    crawler.enrich.assert_called_once_with(collected, None)
    assert result.selected == [enriched[1]]
    assert result.stats["collected"] == 2
    assert result.stats["selected"] == 1
    assert result.interrupted is False


def test_collect_only_skips_later_stages(sources):
    pipeline, fetcher, crawler, analyzer = build_pipeline(sources)
    fetcher.collect.return_value = [make_news_item(1)]

    result = pipeline.run(["AI"], collect_only=True)

    assert result.collected == [make_news_item(1)]
    crawler.enrich.assert_not_called()
    analyzer.analyze.assert_not_called()


def test_empty_collection_ends_run(sources):
    pipeline, fetcher, crawler, _ = build_pipeline(sources)
    fetcher.collect.return_value = []

    result = pipeline.run(["AI"])

    assert result.collected == []
    assert result.selected == []
    crawler.enrich.assert_not_called()


def test_cancel_after_collection_returns_partial_result(sources):
    pipeline, fetcher, crawler, analyzer = build_pipeline(sources)
    cancel = threading.Event()

    def collect(keywords, token):
        token.set()
        return [make_news_item(1)]

    fetcher.collect.side_effect = collect

    result = pipeline.run(["AI"], cancel=cancel)

    assert result.interrupted is True
    assert result.collected == [make_news_item(1)]
    crawler.enrich.assert_not_called()
    analyzer.analyze.assert_not_called()


def test_run_async_delegates_to_run(sources):
    pipeline, fetcher, *_ = build_pipeline(sources)
    fetcher.collect.return_value = [make_news_item(1)]

    result = asyncio.run(pipeline.run_async(["AI"], collect_only=True))

    assert result.collected == [make_news_item(1)]


def test_close_releases_clients(sources):
    pipeline, fetcher, crawler, _ = build_pipeline(sources)
    pipeline.close()
    fetcher.close.assert_called_once()
    crawler.close.assert_called_once()


def test_parse_args_defaults():
    args = parse_args([])
    assert args.keywords is None
    assert args.collect_only is False
    assert args.exclude is None
    assert args.no_generate is False
    assert args.sort in ("sim", "date")


def test_result_to_dict_shapes_output(sources):
    pipeline, fetcher, crawler, analyzer = build_pipeline(sources)
    enriched = make_enriched(1)
    fetcher.collect.return_value = [enriched.news]
    crawler.enrich.return_value = [enriched]
    analyzer.analyze.return_value = [ScoredItem(enriched, NewsCategory.IT, 70)]

    result = pipeline.run(["AI"])
    data = result_to_dict(result, collect_only=False)
    collected = result_to_dict(result, collect_only=True)

    assert data["selected"] == [enriched.to_dict()]
    assert collected["collected"][0]["link"] == enriched.link
    json.dumps(data, ensure_ascii=False)


def test_main_reports_configuration_error(capsys):
    with patch("newscurator.main.settings", make_settings(naver_client_id="")):
        assert main(["--collect-only"]) == 1
    assert "Configuration error" in capsys.readouterr().err
