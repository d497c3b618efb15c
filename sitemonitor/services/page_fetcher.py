from __future__ import annotations

import logging
from typing import Protocol

from sitemonitor.domain.page import FetchedPage
from sitemonitor.exceptions import HttpFetchError, PageFetchError
from sitemonitor.services.html_document import HtmlDocument

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Fetch a URL and return the parsed page, or raise PageFetchError.

    This is intentionally small so the crawl driver does not depend on the
    transport or the HTML parser.
    """

    def fetch(self, url: str) -> FetchedPage: ...


class PageFetcher:
    def __init__(self, http_service, document_factory=HtmlDocument):
        self._http_service = http_service
        self._document_factory = document_factory

    def fetch(self, url: str) -> FetchedPage:
        try:
            response = self._http_service.fetch(url)
        except HttpFetchError as e:
            raise PageFetchError(url, str(e.original)) from e

        if response.status_code >= 400:
            raise PageFetchError(url, f"HTTP status {response.status_code}")
        if not response.text:
            raise PageFetchError(url, "empty response body")

        try:
            document = self._document_factory(response.text)
            title = document.title()
            anchors = document.anchors(url)
        except Exception as e:
            logger.exception("Error parsing HTML for %s", url)
            raise PageFetchError(url, f"unparseable HTML: {e}") from e

        return FetchedPage(
            url=url,
            status_code=response.status_code,
            html=response.text,
            title=title,
            anchors=anchors,
            elapsed_seconds=response.elapsed_seconds,
            headers=dict(response.headers or {}),
            document=document,
        )
