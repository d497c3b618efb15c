import pytest

from sitemonitor.domain.log import LogLevel
from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.exceptions import ConfigMissing


def test_defaults_are_applied():
    s = MonitorSettings.from_mapping({"site_url": "http://example.com", "log_id": "run1"})
    assert s.ignored_urls == ()
    assert s.ignore_outer_urls is True
    assert s.menu_links_selector == ""
    assert s.allowed_ip == ""
    assert s.max_load_time == 1.0
    assert s.save_content is False
    assert s.email_level is LogLevel.INFO


def test_missing_site_url_fails_fast():
    with pytest.raises(ConfigMissing) as exc:
        MonitorSettings.from_mapping({"log_id": "run1"})
    assert str(exc.value) == "'site_url' must be defined in settings."
    assert exc.value.field == "site_url"


def test_missing_log_id_fails_fast():
    with pytest.raises(ConfigMissing) as exc:
        MonitorSettings.from_mapping({"site_url": "http://example.com"})
    assert exc.value.field == "log_id"


def test_explicit_none_counts_as_missing():
    with pytest.raises(ConfigMissing) as exc:
        MonitorSettings.from_mapping({"site_url": "http://example.com", "log_id": "r", "to": None})
    assert str(exc.value) == "'to' must be defined in settings."


def test_scheme_is_added_to_site_url():
    s = MonitorSettings.from_mapping({"site_url": "example.com", "log_id": "r"})
    assert s.site_url == "http://example.com"


def test_caller_defaults_fill_gaps_but_do_not_override():
    defaults = {"log_id": "generated", "from": "monitor@example.com"}
    s = MonitorSettings.from_mapping({"site_url": "example.com", "from": "me@example.com"}, defaults)
    assert s.log_id == "generated"
    assert s.mail_from == "me@example.com"


def test_invalid_ignored_pattern_is_rejected():
    with pytest.raises(ConfigMissing) as exc:
        MonitorSettings.from_mapping({"site_url": "example.com", "log_id": "r", "ignored_urls": ["("]})
    assert exc.value.field == "ignored_urls"


def test_non_numeric_max_load_time_is_rejected():
    with pytest.raises(ConfigMissing):
        MonitorSettings.from_mapping({"site_url": "example.com", "log_id": "r", "max_load_time": "slow"})


def test_to_dict_feeds_back_into_from_mapping():
    s = MonitorSettings.from_mapping(
        {
            "site_url": "https://example.com",
            "log_id": "r",
            "ignored_urls": ["/admin"],
            "from": "a@example.com",
            "to": "b@example.com",
            "max_load_time": "2.5",
            "required_elements": {"/blog": "article"},
            "email_level": "warning",
        }
    )
    data = s.to_dict()
    assert data["from"] == "a@example.com"
    assert data["email_level"] == "WARNING"
    assert MonitorSettings.from_mapping(data) == s
