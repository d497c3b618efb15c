import logging
import re
from urllib.parse import unquote

from sitemonitor.domain.log import RunLog
from sitemonitor.domain.page import FetchedPage
from sitemonitor.domain.settings import MonitorSettings

logger = logging.getLogger(__name__)


class PageChecks:
    """Required header and required element checks for fetched pages.

    Violations are logged into the run log and never stop the crawl.
    """

    def __init__(self, settings: MonitorSettings):
        self.required_headers = dict(settings.required_headers)
        self.required_elements = dict(settings.required_elements)

    def check(self, page: FetchedPage, run_log: RunLog) -> bool:
        """Run all checks; return True when the page passes every one."""
        ok = self.check_headers(page, run_log)
        return self.check_required_elements(page, run_log) and ok

    def check_headers(self, page: FetchedPage, run_log: RunLog) -> bool:
        missing = [
            name
            for name, expected in self.required_headers.items()
            if (page.header(name) or "").strip() != str(expected).strip()
        ]
        if missing:
            logger.debug("Missing headers on %s: %s", page.url, missing)
            run_log.warning(f"Page {unquote(page.url)} does not contain required headers.")
            return False
        return True

    def check_required_elements(self, page: FetchedPage, run_log: RunLog) -> bool:
        ok = True
        for pattern, selector in self.required_elements.items():
            if not re.search(pattern, page.url):
                continue
            if page.document is None or not page.document.has_element(selector):
                run_log.error(f'Page {unquote(page.url)} does not contain required element "{selector}".')
                ok = False
        return ok
