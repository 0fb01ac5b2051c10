"""Error types raised inside the curation pipeline."""


class ConfigurationError(ValueError):
    """Invalid startup configuration. Fatal to the caller."""


class UpstreamError(RuntimeError):
    """Search API call failed for one keyword."""

    def __init__(self, keyword: str, message: str, status_code: int = 0):
        super().__init__(f"[{keyword}] {message}")
        self.keyword = keyword
        self.status_code = status_code


class CrawlSkip(Exception):
    """An article page could not be fully enriched."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason
