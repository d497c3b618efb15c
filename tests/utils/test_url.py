import pytest

from sitemonitor.utils.url import INVALID, is_outer_url, normalize_link, strip_www

SITE = "http://example.com"


def test_relative_link_borrows_site_scheme_and_host():
    assert normalize_link("/about/", SITE) == "http://example.com/about"


def test_scheme_and_host_are_lowercased():
    assert normalize_link("HTTP://Example.COM/Path/", SITE) == "http://example.com/Path"


def test_root_keeps_single_slash():
    assert normalize_link("http://example.com", SITE) == "http://example.com/"
    assert normalize_link("http://example.com/", SITE) == "http://example.com/"


def test_query_is_preserved_and_fragment_dropped():
    assert normalize_link("/search?q=1&p=2", SITE) == "http://example.com/search?q=1&p=2"
    assert normalize_link("/page#top", SITE) == "http://example.com/page"


def test_port_is_kept():
    assert normalize_link("https://example.com:8443/x/", SITE) == "https://example.com:8443/x"


def test_output_is_percent_decoded():
    assert normalize_link("/caf%C3%A9", SITE) == "http://example.com/café"
    assert normalize_link("/a%2520b", SITE) == "http://example.com/a b"


@pytest.mark.parametrize("raw", ["ftp://example.com/file", "javascript:void(0)", "tel:123456", "", None, "   "])
def test_unsupported_or_empty_links_are_invalid(raw):
    assert normalize_link(raw, SITE) == INVALID


def test_links_with_at_sign_are_returned_unchanged():
    assert normalize_link("mailto:info@example.com", SITE) == "mailto:info@example.com"


@pytest.mark.parametrize(
    "raw",
    [
        "/about/",
        "HTTP://Example.COM/Path/",
        "/search?q=1",
        "/caf%C3%A9",
        "/a%2520b",
        "//cdn.example.com/lib.js",
        "https://example.com:8443/x/",
        "/dir%2F",
        "/ trailing%20",
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize_link(raw, SITE)
    assert normalize_link(once, SITE) == once


def test_strip_www():
    assert strip_www("www.example.com") == "example.com"
    assert strip_www("WWW.example.com") == "example.com"
    assert strip_www("example.com") == "example.com"


def test_outer_url_detection():
    site = "http://www.example.com"
    assert is_outer_url("http://example.com/a", site) is False
    assert is_outer_url("http://www.example.com/a", site) is False
    assert is_outer_url("http://blog.example.com/a", site) is False
    assert is_outer_url("http://other.com/a", site) is True
    assert is_outer_url("http://notexample.com/a", site) is True


def test_url_without_host_counts_as_outer():
    assert is_outer_url("mailto:info@example.com", SITE) is True
