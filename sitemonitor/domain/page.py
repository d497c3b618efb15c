from typing import Any, Dict, List, NamedTuple, Optional


class Anchor(NamedTuple):
    href: str
    rel: Optional[str] = None

    @property
    def nofollow(self) -> bool:
        return bool(self.rel) and "nofollow" in self.rel.lower().split()


class FetchedPage(NamedTuple):
    """Result of fetching and parsing one page.

    `document` answers selector queries (see `HtmlDocument`).
    """
    url: str
    status_code: int
    html: str
    title: str
    anchors: List[Anchor]
    elapsed_seconds: float
    headers: Dict[str, str]
    document: Any = None

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None
