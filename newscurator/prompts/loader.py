"""Prompt template loader.

Loads prompt templates that ship next to this module and renders
them with string.Template ($var syntax), so JSON braces in templates stay
as-is.
"""

from functools import lru_cache
from pathlib import Path
from string import Template

_PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=32)
def _load_raw(name: str) -> str:
    path = _PROMPTS_DIR / f"{name}.txt"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return path.read_text(encoding="utf-8")


def render(name: str, **kwargs: str) -> str:
    """Render template ``name`` with the given variables.

    Raises:
        FileNotFoundError: If the template doesn't exist
        KeyError: If a placeholder has no value
    """
    return Template(_load_raw(name)).substitute(**kwargs)
