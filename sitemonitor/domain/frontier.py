import logging
import re
from typing import Iterable, List, Optional

from sitemonitor.utils.url import INVALID, is_outer_url, normalize_link

logger = logging.getLogger(__name__)


class Frontier:
    """
    Discovered, visited and broken link bookkeeping for one crawl run.

    - `links` holds every accepted URL in discovery order, without duplicates.
    - `visited` and `broken` only ever grow; a URL is never in both.
    - Once broken, a URL is rejected by `add_link` for the rest of the run.
    """

    def __init__(
        self,
        site_url: str,
        ignored_urls: Iterable[str] = (),
        ignore_outer_urls: bool = True,
        links: Optional[Iterable[str]] = None,
        visited: Optional[Iterable[str]] = None,
        broken: Optional[Iterable[str]] = None,
    ):
        self.site_url = site_url
        self.ignore_outer_urls = ignore_outer_urls
        self._ignored = [re.compile(p, re.IGNORECASE) for p in ignored_urls]

        self._links: List[str] = []
        self._link_index = set()
        # dicts keep insertion order for stable snapshots
        self._visited = {}
        self._broken = {}

        for url in links or ():
            if url not in self._link_index:
                self._links.append(url)
                self._link_index.add(url)
        for url in visited or ():
            self._visited[url] = None
        for url in broken or ():
            if url not in self._visited:
                self._broken[url] = None

    @classmethod
    def for_settings(cls, settings, **state) -> "Frontier":
        return cls(
            settings.site_url,
            ignored_urls=settings.ignored_urls,
            ignore_outer_urls=settings.ignore_outer_urls,
            **state,
        )

    def normalize(self, url: Optional[str]) -> str:
        return normalize_link(url, self.site_url)

    def is_outer(self, url: str) -> bool:
        return is_outer_url(url, self.site_url)

    def is_ignored(self, url: str) -> bool:
        return any(p.search(url) for p in self._ignored)

    def add_link(self, url: Optional[str]) -> bool:
        """Normalize and accept `url` into `links`.

        Returns False, without touching state, when the URL is invalid,
        already visited or broken, outer (unless outer links are allowed) or
        ignored. Returns True when the URL is (or already was) in `links`.
        """
        url = self.normalize(url)
        if url == INVALID:
            return False
        if self.is_visited(url) or self.is_broken(url):
            return False
        if self.ignore_outer_urls and self.is_outer(url):
            logger.debug("Skipping (outer) %s", url)
            return False
        if self.is_ignored(url):
            logger.debug("Skipping (ignored) %s", url)
            return False
        if url not in self._link_index:
            self._links.append(url)
            self._link_index.add(url)
        return True

    def mark_visited(self, url: str) -> None:
        if not url or url in self._broken:
            return
        self._visited[url] = None

    def mark_broken(self, url: str) -> None:
        if not url or url in self._visited:
            return
        self._broken[url] = None

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    def is_broken(self, url: str) -> bool:
        return url in self._broken

    @property
    def links(self) -> List[str]:
        return list(self._links)

    @property
    def visited(self) -> List[str]:
        return list(self._visited)

    @property
    def broken(self) -> List[str]:
        return list(self._broken)

    def link_at(self, index: int) -> str:
        return self._links[index]

    def link_count(self) -> int:
        return len(self._links)

    def visited_count(self) -> int:
        return len(self._visited)

    def not_visited(self) -> List[str]:
        return [u for u in self._links if u not in self._visited]
