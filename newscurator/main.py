#!/usr/bin/env python3
"""
News Curation Pipeline

Entry point for the news curator.
Collects news for keywords, crawls article details, scores and selects.

Usage:
    python -m newscurator.main                          # Generated keywords
    python -m newscurator.main --keywords AI 사고        # Custom keywords
    python -m newscurator.main --collect-only           # Just fetch and dedupe
    python -m newscurator.main --exclude 사회 경제      # Generated keywords, minus these
    python -m newscurator.main --output selected.json   # Save results as JSON
"""

import argparse
import json
import logging
import signal
import sys
import threading
from dataclasses import asdict
from pathlib import Path

from .config.settings import settings
from .news.errors import ConfigurationError
from .pipeline import CurationPipeline, PipelineResult


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Keyword-driven news curation pipeline")

    parser.add_argument(
        "--keywords",
        nargs="+",
        default=None,
        help="Search keywords (default: generated by the LLM, falling back to default_keywords)",
    )

    parser.add_argument(
        "--no-static-keywords",
        action="store_true",
        help="Don't merge static_keywords from keywords.yaml",
    )

    parser.add_argument(
        "--exclude",
        nargs="+",
        default=None,
        help="Keywords the generator must not use (e.g. yesterday's)",
    )

    parser.add_argument(
        "--no-generate",
        action="store_true",
        help="Use default_keywords instead of generating keywords",
    )

    parser.add_argument(
        "--collect-only",
        action="store_true",
        help="Only collect and deduplicate, skip crawling and scoring",
    )

    parser.add_argument(
        "--display",
        type=int,
        default=settings.news_display_count,
        help=f"Results requested per keyword, 1-99 (default: {settings.news_display_count})",
    )

    parser.add_argument(
        "--sort",
        choices=["sim", "date"],
        default=settings.news_sort,
        help=f"Search sort order (default: {settings.news_sort})",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write results to this JSON file",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser.parse_args(argv)


def result_to_dict(result: PipelineResult, collect_only: bool) -> dict:
    data = {
        "run_timestamp": result.run_timestamp.isoformat(),
        "keywords": result.keywords,
        "stats": result.stats,
        "interrupted": result.interrupted,
    }
    if collect_only:
        data["collected"] = [asdict(item) for item in result.collected]
    else:
        data["selected"] = [item.to_dict() for item in result.selected]
    return data


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = settings.model_copy(update={
            "news_display_count": args.display,
            "news_sort": args.sort,
            "generate_keywords": not args.no_generate,
        })

    try:
        pipeline = CurationPipeline(config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    cancel = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel.set())

    try:
        result = pipeline.run(
            args.keywords,
            cancel=cancel,
            use_static=not args.no_static_keywords,
            collect_only=args.collect_only,
            exclude=args.exclude,
        )
    finally:
        pipeline.close()

    print(f"\nKeywords: {', '.join(result.keywords)}")
    print(
        f"Collected {result.stats['collected']} | enriched {result.stats['enriched']} | "
        f"scored {result.stats['scored']} | selected {result.stats['selected']} "
        f"in {result.stats['duration_seconds']:.1f}s"
    )
    if result.interrupted:
        print("Run was interrupted, results are partial")

    items = result.collected if args.collect_only else result.selected
    for i, item in enumerate(items, start=1):
        print(f"  {i}. {item.title[:70]}")

    if args.output:
        args.output.write_text(
            json.dumps(result_to_dict(result, args.collect_only), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        print(f"\nOutput saved to: {args.output}")

    return 0


def cli() -> None:
    """CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
