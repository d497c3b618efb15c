import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sitemonitor.db.models import Base
from sitemonitor.domain.log import report_logger
from sitemonitor.domain.page import FetchedPage
from sitemonitor.exceptions import PageFetchError
from sitemonitor.services.html_document import HtmlDocument


def page(title, *hrefs, body=""):
    """Minimal HTML page linking to `hrefs`."""
    links = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><head><title>{title}</title></head><body>{body}{links}</body></html>"


class FakeSite:
    """In-memory site graph. A URL mapped to None (or missing) fails to load."""

    def __init__(self, pages, elapsed=None, headers=None):
        self.pages = dict(pages)
        self.elapsed = dict(elapsed or {})
        self.headers = dict(headers or {})
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        html = self.pages.get(url)
        if html is None:
            raise PageFetchError(url, "HTTP status 404")
        document = HtmlDocument(html)
        return FetchedPage(
            url=url,
            status_code=200,
            html=html,
            title=document.title(),
            anchors=document.anchors(url),
            elapsed_seconds=self.elapsed.get(url, 0.1),
            headers=self.headers.get(url, {}),
            document=document,
        )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, future=True)
    engine.dispose()


@pytest.fixture(autouse=True)
def reset_report_logger():
    # The CLI swaps the report logger's handlers; keep tests isolated.
    handlers = list(report_logger.handlers)
    level = report_logger.level
    propagate = report_logger.propagate
    yield
    report_logger.handlers = handlers
    report_logger.setLevel(level)
    report_logger.propagate = propagate

