from sitemonitor.domain.frontier import Frontier
from sitemonitor.domain.settings import MonitorSettings


def _frontier(**kwargs):
    return Frontier("http://example.com", **kwargs)


def test_add_link_normalizes_and_deduplicates():
    f = _frontier()
    assert f.add_link("/a/") is True
    assert f.add_link("http://EXAMPLE.com/a") is True
    assert f.links == ["http://example.com/a"]


def test_invalid_links_are_rejected():
    f = _frontier()
    assert f.add_link("ftp://example.com/x") is False
    assert f.add_link("") is False
    assert f.links == []


def test_outer_links_rejected_only_when_ignored():
    f = _frontier(ignore_outer_urls=True)
    assert f.add_link("http://other.com/") is False
    assert f.add_link("http://sub.example.com/") is True

    g = _frontier(ignore_outer_urls=False)
    assert g.add_link("http://other.com/") is True
    assert g.is_outer("http://other.com/") is True


def test_ignored_patterns_reject_matches():
    f = _frontier(ignored_urls=[r"/private", r"\.pdf$"])
    assert f.add_link("/private/area") is False
    assert f.add_link("/doc.PDF") is False
    assert f.add_link("/public") is True
    assert f.links == ["http://example.com/public"]


def test_visited_and_broken_are_disjoint():
    f = _frontier()
    f.add_link("/a")
    f.add_link("/b")
    f.mark_visited("http://example.com/a")
    f.mark_broken("http://example.com/a")
    f.mark_broken("http://example.com/b")
    f.mark_visited("http://example.com/b")

    assert f.visited == ["http://example.com/a"]
    assert f.broken == ["http://example.com/b"]


def test_marking_is_idempotent():
    f = _frontier()
    f.mark_visited("http://example.com/a")
    f.mark_visited("http://example.com/a")
    assert f.visited_count() == 1


def test_visited_or_broken_links_are_not_re_added():
    f = _frontier()
    f.mark_broken("http://example.com/gone")
    f.mark_visited("http://example.com/seen")
    assert f.add_link("/gone") is False
    assert f.add_link("/seen") is False
    assert f.links == []


def test_not_visited_keeps_discovery_order():
    f = _frontier()
    for href in ("/c", "/a", "/b"):
        f.add_link(href)
    f.mark_visited("http://example.com/a")
    assert f.not_visited() == ["http://example.com/c", "http://example.com/b"]


def test_restore_from_state_and_settings():
    settings = MonitorSettings.from_mapping(
        {"site_url": "example.com", "log_id": "run1", "ignored_urls": ["/skip"]}
    )
    f = Frontier.for_settings(
        settings,
        links=["http://example.com/", "http://example.com/a", "http://example.com/a"],
        visited=["http://example.com/"],
        broken=["http://example.com/"],
    )
    assert f.links == ["http://example.com/", "http://example.com/a"]
    assert f.visited == ["http://example.com/"]
    # a visited URL cannot also be broken
    assert f.broken == []
    assert f.add_link("/skip") is False
    assert f.link_at(1) == "http://example.com/a"
