import logging
import os
from urllib.parse import urlsplit

from sitemonitor.domain.log import RunLog
from sitemonitor.domain.page import FetchedPage

logger = logging.getLogger(__name__)


class ContentSaver:
    """Stores fetched HTML under `content_dir`, mirroring the URL path."""

    def __init__(self, content_dir: str, run_log: RunLog):
        self.content_dir = content_dir
        self.run_log = run_log

    def path_for(self, url: str) -> str:
        segments = [s for s in urlsplit(url).path.split("/") if s not in ("", ".", "..")]
        return os.path.join(self.content_dir, *(segments or ["index"])) + ".html"

    def __call__(self, url: str, page: FetchedPage) -> None:
        filename = self.path_for(url)
        dirname = os.path.dirname(filename)
        try:
            os.makedirs(dirname, exist_ok=True)
        except OSError:
            logger.exception("Cannot create %s", dirname)
            self.run_log.error(f'Cannot create directory "{dirname}".')
            return
        with open(filename, "w", encoding="utf-8") as f:
            f.write(page.html)
