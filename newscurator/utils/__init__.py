"""Shared concurrency and LLM helpers."""
