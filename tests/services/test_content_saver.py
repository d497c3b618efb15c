import os

from conftest import FakeSite, page

from sitemonitor.domain.log import LogLevel, RunLog
from sitemonitor.services.content_saver import ContentSaver


def test_path_mirrors_url_path(tmp_path):
    saver = ContentSaver(str(tmp_path), RunLog())
    assert saver.path_for("http://example.com/") == os.path.join(str(tmp_path), "index.html")
    assert saver.path_for("http://example.com/blog/post") == os.path.join(str(tmp_path), "blog", "post.html")
    assert saver.path_for("http://example.com/../../etc/passwd") == os.path.join(str(tmp_path), "etc", "passwd.html")


def test_page_html_is_written(tmp_path):
    url = "http://example.com/blog/post"
    saver = ContentSaver(str(tmp_path), RunLog())
    saver(url, FakeSite({url: page("Post")}).fetch(url))
    assert (tmp_path / "blog" / "post.html").read_text(encoding="utf-8") == page("Post")


def test_unusable_directory_is_reported_in_run_log(tmp_path):
    blocker = tmp_path / "content"
    blocker.write_text("not a directory")
    url = "http://example.com/"
    log = RunLog()

    ContentSaver(str(blocker), log)(url, FakeSite({url: page("Home")}).fetch(url))

    assert [(r.level, r.message) for r in log.records] == [
        (LogLevel.ERROR, f'*** Cannot create directory "{blocker}". ***')
    ]
