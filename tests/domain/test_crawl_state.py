import json

from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.diff import DiffEntry, DiffStatus


def test_state_survives_json_round_trip():
    state = CrawlState(
        log_id="run1",
        settings={"site_url": "http://example.com", "log_id": "run1"},
        log_records=[{"level": 1, "message": "hello"}],
        links=["http://example.com/", "http://example.com/a"],
        visited=["http://example.com/"],
        broken=["http://example.com/a"],
        diffs=[DiffEntry("http://example.com/old", DiffStatus.REMOVED)],
        time_start=10.0,
    )
    restored = CrawlState.from_dict(json.loads(json.dumps(state.to_dict())))
    assert restored == state
    assert restored.completed is False


def test_missing_optional_fields_default():
    state = CrawlState.from_dict({"log_id": "run1", "settings": None})
    assert state.links == []
    assert state.diffs == []
    assert state.time_end is None
