"""Article page crawler that enriches search results with detail fields."""

import logging
import re
import threading
import time
from typing import Optional

import httpx
from bs4 import BeautifulSoup, Tag

from ..config.settings import Settings, settings
from .errors import CrawlSkip
from .models import ArticleDetail, EnrichedItem, NewsItem

logger = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
}

BODY_SELECTOR = "article#dic_area"
IMAGE_SELECTOR = "#img1"
JOURNALIST_SELECTOR = "em.media_end_head_journalist_name"
MEDIA_LOGO_SELECTOR = "img.media_end_head_top_logo_img"

_INLINE_SPACE_RE = re.compile(r"[ \t\r\f\v\xa0]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def extract_text_with_line_breaks(element: Tag) -> str:
    """Flatten an article body, keeping paragraph and line breaks."""
    for block in element.find_all(["p", "div"]):
        block.insert_before("\n\n")
    for br in element.find_all("br"):
        br.insert_before("\n")

    text = element.get_text()
    lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def parse_article(html: str, url: str = "") -> ArticleDetail:
    """
    Extract body, image, byline and outlet name from an article page.

    Raises:
        CrawlSkip: If any of the four fields is missing
    """
    soup = BeautifulSoup(html, "html.parser")

    body = soup.select_one(BODY_SELECTOR)
    content = extract_text_with_line_breaks(body) if body else ""

    image = soup.select_one(IMAGE_SELECTOR)
    image_url = (image.get("data-src") or "").strip() if image else ""

    journalist_el = soup.select_one(JOURNALIST_SELECTOR)
    journalist = journalist_el.get_text(strip=True) if journalist_el else ""

    logo = soup.select_one(MEDIA_LOGO_SELECTOR)
    media_name = (logo.get("alt") or "").strip() if logo else ""

    missing = [
        name
        for name, value in (
            ("content", content),
            ("image_url", image_url),
            ("journalist", journalist),
            ("media_name", media_name),
        )
        if not value
    ]
    if missing:
        raise CrawlSkip(url, f"missing {', '.join(missing)}")

    return ArticleDetail(
        content=content,
        image_url=image_url,
        journalist=journalist,
        media_name=media_name,
    )


class DetailCrawler:
    """
    Sequentially crawls article pages, pausing between requests.

    Candidates that can't be fully enriched are skipped; the crawl carries
    on with the next one.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
        delay: Optional[float] = None,
    ):
        """
        Args:
            config: Settings (default: global settings)
            client: HTTP client (default: browser-like client from config)
            delay: Seconds to pause after each candidate (default: config.crawling_delay)
        """
        self.config = config or settings
        self.client = client or httpx.Client(
            follow_redirects=True,
            timeout=self.config.request_timeout,
            headers=_HEADERS,
        )
        self.delay = self.config.crawling_delay if delay is None else delay

    def crawl(self, url: str) -> ArticleDetail:
        """
        Fetch and parse one article page.

        Raises:
            CrawlSkip: On fetch failure or missing detail fields
        """
        try:
            resp = self.client.get(url)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CrawlSkip(url, f"fetch failed ({e.__class__.__name__})") from e
        return parse_article(resp.text, url)

    def enrich(self, items: list[NewsItem], cancel: Optional[threading.Event] = None) -> list[EnrichedItem]:
        """
        Crawl each candidate in order and build enriched items.

        If ``cancel`` is set during a pause, the crawl stops and the items
        enriched so far are returned.
        """
        enriched: list[EnrichedItem] = []
        skipped = 0

        for index, item in enumerate(items):
            try:
                detail = self.crawl(item.link)
            except CrawlSkip as e:
                skipped += 1
                logger.warning("[CRAWLER] Skipped: %s", e)
            else:
                enriched.append(EnrichedItem(news=item, detail=detail))
                logger.info("[CRAWLER] Enriched '%s'", item.title[:60])

            if self._pause(cancel):
                logger.warning(
                    "[CRAWLER] Interrupted after %d/%d candidates, returning %d items",
                    index + 1,
                    len(items),
                    len(enriched),
                )
                break

        logger.info("[CRAWLER] Enriched %d of %d candidates (%d skipped)", len(enriched), len(items), skipped)
        return enriched

    def _pause(self, cancel: Optional[threading.Event]) -> bool:
        """Sleep for the crawl delay. Returns True if cancelled."""
        if cancel is None:
            if self.delay > 0:
                time.sleep(self.delay)
            return False
        if self.delay <= 0:
            return cancel.is_set()
        return cancel.wait(self.delay)

    def close(self) -> None:
        self.client.close()
