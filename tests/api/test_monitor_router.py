from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from sitemonitor.api.routers.monitor import RunRequest, create_monitor_router
from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.diff import DiffEntry, DiffStatus
from sitemonitor.exceptions import ConfigMissing, RunNotFound
from sitemonitor.services.resumable_crawl_service import TickOutcome


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def _request(headers=None, host="127.0.0.1"):
    return SimpleNamespace(headers=headers or {}, client=SimpleNamespace(host=host))


def _settings(**overrides):
    data = {"site_url": "http://example.com", "log_id": "web1", "allowed_ip": "10.0.0.1"}
    data.update(overrides)
    return data


def _router(service=None, store=None, token="s3cret"):
    service = service or Mock()
    store_factory = Mock(return_value=store or Mock())
    return create_monitor_router(
        crawl_service=service,
        settings_store_factory=store_factory,
        dispatch_token=token,
        defaults={"from": "monitor@example.com"},
    ), service


def test_start_run_from_allowed_ip():
    router, service = _router()
    service.start.return_value = "web1"
    endpoint = _get_endpoint(router, "/monitor/runs", "POST")

    resp = endpoint(RunRequest(settings=_settings()), _request({"X-Forwarded-For": "10.0.0.1, 172.16.0.1"}))

    assert resp == {"status": "started", "log_id": "web1"}
    (settings,), _ = service.start.call_args
    assert settings.mail_from == "monitor@example.com"


def test_start_run_denies_other_ips_before_crawling():
    router, service = _router()
    endpoint = _get_endpoint(router, "/monitor/runs", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint(RunRequest(settings=_settings()), _request(host="10.9.9.9"))

    assert exc.value.status_code == 403
    service.start.assert_not_called()


def test_start_run_with_missing_setting_is_bad_request():
    router, service = _router()
    endpoint = _get_endpoint(router, "/monitor/runs", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint(RunRequest(settings={"log_id": "web1"}), _request())

    assert exc.value.status_code == 400
    assert exc.value.detail == "'site_url' must be defined in settings."
    service.start.assert_not_called()


def test_start_run_without_body_uses_settings_file_and_generates_log_id():
    store = Mock()
    store.load_dict.return_value = {"site_url": "example.com", "allowed_ip": "127.0.0.1"}
    router, service = _router(store=store)
    service.start.side_effect = lambda s: s.log_id
    endpoint = _get_endpoint(router, "/monitor/runs", "POST")

    resp = endpoint(RunRequest(), _request())

    assert resp["log_id"].startswith("monitor_web_")


def test_missing_settings_file_is_bad_request():
    store = Mock()
    store.load_dict.side_effect = ConfigMissing("Settings file does not exist.")
    router, _ = _router(store=store)
    endpoint = _get_endpoint(router, "/monitor/runs", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint(RunRequest(), _request())
    assert exc.value.status_code == 400


def test_tick_requires_dispatch_token():
    router, service = _router()
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}/tick", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint("web1", "wrong")
    assert exc.value.status_code == 401
    service.tick.assert_not_called()


def test_tick_disabled_without_configured_token():
    router, _ = _router(token=None)
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}/tick", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint("web1", "anything")
    assert exc.value.status_code == 503


def test_tick_runs_one_step():
    router, service = _router()
    service.tick.return_value = TickOutcome.PROCESSED
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}/tick", "POST")

    assert endpoint("web1", "s3cret") == {"log_id": "web1", "outcome": "processed"}
    service.tick.assert_called_once_with("web1")


def test_tick_unknown_run():
    router, service = _router()
    service.tick.side_effect = RunNotFound("nope")
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}/tick", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint("nope", "s3cret")
    assert exc.value.status_code == 404


def test_get_run_reads_back_state():
    router, service = _router()
    service.pending_urls.return_value = []
    service.get_state.return_value = CrawlState(
        log_id="web1",
        settings={},
        log_records=[{"level": 3, "message": "*** boom ***"}],
        links=["http://example.com/", "http://example.com/a"],
        visited=["http://example.com/"],
        broken=["http://example.com/a"],
        diffs=[
            DiffEntry("http://example.com/", DiffStatus.UNMODIFIED),
            DiffEntry("http://example.com/a", DiffStatus.ADDED),
        ],
        completed=True,
    )
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}", "GET")

    resp = endpoint("web1")

    assert resp["completed"] is True
    assert resp["links"] == 2
    assert resp["visited"] == 1
    assert resp["pending"] == []
    assert resp["broken"] == ["http://example.com/a"]
    assert resp["diffs"] == [{"text": "http://example.com/a", "status": "added"}]
    assert resp["log"] == [{"level": 3, "message": "*** boom ***"}]


def test_get_unknown_run():
    router, service = _router()
    service.get_state.side_effect = RunNotFound("nope")
    endpoint = _get_endpoint(router, "/monitor/runs/{log_id}", "GET")

    with pytest.raises(HTTPException) as exc:
        endpoint("nope")
    assert exc.value.status_code == 404
