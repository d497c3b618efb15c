import logging
from typing import Callable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sitemonitor.domain.page import Anchor

logger = logging.getLogger(__name__)


class HtmlDocument:
    """Selector queries over a parsed HTML page."""

    def __init__(self, html: str, soup_factory: Optional[Callable[[str], BeautifulSoup]] = None):
        factory = soup_factory or (lambda h: BeautifulSoup(h, "html.parser"))
        self.soup = factory(html)

    def title(self) -> str:
        node = self.soup.find("title")
        return node.get_text(strip=True) if node else ""

    def _resolve(self, base_url: Optional[str], href: str) -> Optional[str]:
        if not base_url:
            return href
        try:
            return urljoin(base_url, href)
        except ValueError:
            logger.debug("Skipping malformed href %r on %s", href, base_url)
            return None

    def anchors(self, base_url: str) -> List[Anchor]:
        out = []
        for a in self.soup.find_all("a", href=True):
            href = self._resolve(base_url, a.get("href"))
            if href is None:
                continue
            rel = a.get("rel")
            # bs4 returns multi-valued attributes as lists
            if isinstance(rel, list):
                rel = " ".join(rel)
            out.append(Anchor(href, rel))
        return out

    def select(self, selector: str):
        try:
            return self.soup.select(selector)
        except Exception:
            logger.exception("Invalid selector %r", selector)
            return []

    def select_hrefs(self, selector: str, base_url: Optional[str] = None) -> List[str]:
        hrefs = []
        for node in self.select(selector):
            href = node.get("href")
            if not href:
                continue
            href = self._resolve(base_url, href)
            if href is not None:
                hrefs.append(href)
        return hrefs

    def has_element(self, selector: str) -> bool:
        return bool(self.select(selector))
