from unittest.mock import Mock

import pytest
import requests

from sitemonitor.domain.http_response import HttpResponse
from sitemonitor.exceptions import HttpFetchError, PageFetchError
from sitemonitor.services.html_document import HtmlDocument
from sitemonitor.services.page_fetcher import PageFetcher

HTML = """
<html><head><title> Welcome </title></head>
<body>
  <nav class="menu"><a href="/about">About</a><a>no href</a></nav>
  <a href="contact">Contact</a>
  <a href="https://other.com/x" rel="nofollow noopener">Out</a>
</body></html>
"""


def _fetcher(response=None, error=None):
    http_service = Mock()
    if error is not None:
        http_service.fetch.side_effect = error
    else:
        http_service.fetch.return_value = response
    return PageFetcher(http_service)


def test_fetch_parses_title_and_anchors():
    response = HttpResponse(200, HTML, "text/html", {"X-A": "1"}, 0.25)
    result = _fetcher(response).fetch("http://example.com/dir/page")

    assert result.title == "Welcome"
    assert result.elapsed_seconds == 0.25
    assert result.header("x-a") == "1"
    assert [a.href for a in result.anchors] == [
        "http://example.com/about",
        "http://example.com/dir/contact",
        "https://other.com/x",
    ]
    assert [a.nofollow for a in result.anchors] == [False, False, True]


def test_error_status_is_a_fetch_failure():
    with pytest.raises(PageFetchError) as exc:
        _fetcher(HttpResponse(404, "not found")).fetch("http://example.com/missing")
    assert exc.value.reason == "HTTP status 404"


def test_empty_body_is_a_fetch_failure():
    with pytest.raises(PageFetchError):
        _fetcher(HttpResponse(200, "")).fetch("http://example.com/")


def test_transport_error_is_a_fetch_failure():
    error = HttpFetchError("http://example.com/", requests.exceptions.ConnectionError("refused"))
    with pytest.raises(PageFetchError) as exc:
        _fetcher(error=error).fetch("http://example.com/")
    assert "refused" in exc.value.reason


def test_select_hrefs_resolves_against_base():
    doc = HtmlDocument(HTML)
    assert doc.select_hrefs("nav.menu a", base_url="http://example.com/") == ["http://example.com/about"]
    assert doc.select_hrefs("nav.menu a") == ["/about"]


def test_invalid_selector_matches_nothing():
    doc = HtmlDocument(HTML)
    assert doc.select("a[") == []
    assert doc.has_element("nav") is True
    assert doc.has_element("article") is False


def test_malformed_hrefs_are_skipped():
    doc = HtmlDocument('<nav><a href="http://[oops/">x</a><a href="/about">About</a></nav>')
    assert [a.href for a in doc.anchors("http://example.com/")] == ["http://example.com/about"]
    assert doc.select_hrefs("nav a", base_url="http://example.com/") == ["http://example.com/about"]
