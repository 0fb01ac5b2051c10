"""Keyword-driven news collection, deduplication and curation."""

__version__ = "0.1.0"
