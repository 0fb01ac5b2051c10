"""JSON completions through LiteLLM.

Provides a single interface for multiple LLM providers (Google, Anthropic,
OpenAI, ...) that returns parsed JSON instead of raw text.
"""

import json
import logging
import re
from typing import Any, Optional

import litellm

# Suppress verbose LiteLLM logging
litellm.suppress_debug_info = True
logging.getLogger("LiteLLM").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

_JSON_PATTERNS = (
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
)
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMResponseError(ValueError):
    """Model reply did not contain a JSON object."""


def extract_json(text: str) -> Optional[dict]:
    """Extract a JSON object from model output, tolerating markdown fences."""
    try:
        data = json.loads(text)
        return data if isinstance(data, dict) else None
    except (json.JSONDecodeError, TypeError):
        pass

    for pattern in _JSON_PATTERNS:
        match = pattern.search(text)
        if match:
            try:
                data = json.loads(match.group(1))
                if isinstance(data, dict):
                    return data
            except json.JSONDecodeError:
                continue

    match = _BARE_OBJECT.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
            return data if isinstance(data, dict) else None
        except json.JSONDecodeError:
            return None
    return None


def complete_json(
    model: str,
    prompt: str,
    max_tokens: int = 2000,
    temperature: float = 0.2,
    **kwargs: Any,
) -> dict:
    """
    Run a single-turn completion and parse the reply as JSON.

    Args:
        model: LiteLLM model identifier, e.g. "gemini/gemini-3-flash-preview"
        prompt: User prompt
        max_tokens: Maximum response tokens
        temperature: Sampling temperature
        **kwargs: Passed through to litellm.completion

    Returns:
        Parsed JSON object

    Raises:
        LLMResponseError: If the reply holds no JSON object
        Exception: Provider errors from LiteLLM propagate unchanged
    """
    response = litellm.completion(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        max_tokens=max_tokens,
        temperature=temperature,
        **kwargs,
    )
    text = response.choices[0].message.content or ""

    data = extract_json(text)
    if data is None:
        raise LLMResponseError(f"{model} returned no JSON object: {text[:200]!r}")
    return data
