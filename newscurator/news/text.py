"""Text cleanup helpers for search API payloads."""

import html
import logging
import re
from datetime import datetime
from email.utils import parsedate_to_datetime

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(raw: str) -> str:
    """Strip HTML tags and decode entities.

    The search API wraps matched terms in <b> tags and entity-encodes
    quotes, e.g. ``&quot;<b>AI</b>&quot;`` -> ``"AI"``.
    """
    if not raw:
        return ""
    text = _TAG_RE.sub("", raw)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_pub_date(value: str) -> datetime:
    """Parse an RFC 2822 publish date into a naive local datetime.

    Falls back to the current time when the value can't be parsed.
    """
    try:
        parsed = parsedate_to_datetime(html.unescape(value or "").strip())
    except (TypeError, ValueError, IndexError):
        logger.warning("[TEXT] Could not parse pub date %r, using now", value)
        return datetime.now()
    return parsed.replace(tzinfo=None)
