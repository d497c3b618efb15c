import enum
import logging
import time
from typing import Callable, Iterable, List, Optional
from urllib.parse import unquote

from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.diff import DiffEntry
from sitemonitor.domain.frontier import Frontier
from sitemonitor.domain.log import RunLog
from sitemonitor.domain.page import FetchedPage
from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.exceptions import PageFetchError
from sitemonitor.services.baseline_diff import BaselineDiffEngine, natural_sorted
from sitemonitor.services.notifier import NullNotifier
from sitemonitor.services.page_checks import PageChecks
from sitemonitor.services.page_fetcher import Fetcher
from sitemonitor.services.report import Report

logger = logging.getLogger(__name__)

UrlHook = Callable[[str, FetchedPage], None]


class Mode(enum.Enum):
    SYNC = "sync"
    RESUMABLE = "resumable"


class CrawlDriver:
    """Crawl state machine shared by the synchronous and resumable modes.

    `process_one` is the single step both modes run. In SYNC mode `run`
    drains the frontier in one go; in RESUMABLE mode every link that a step
    discovers is handed to `on_new_links` and an external scheduler calls
    `process_one` once per tick.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        fetcher: Fetcher,
        *,
        mode: Mode = Mode.SYNC,
        run_log: Optional[RunLog] = None,
        frontier: Optional[Frontier] = None,
        baseline: Optional[BaselineDiffEngine] = None,
        notifier=None,
        checks: Optional[PageChecks] = None,
        url_hooks: Iterable[UrlHook] = (),
        completion_hooks: Iterable[Callable[["CrawlDriver"], None]] = (),
        on_new_links: Optional[Callable[[List[str]], None]] = None,
        clock: Callable[[], float] = time.time,
        time_start: Optional[float] = None,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.mode = mode
        self.run_log = run_log if run_log is not None else RunLog()
        self.frontier = frontier if frontier is not None else Frontier.for_settings(settings)
        self.baseline = baseline
        self.notifier = notifier or NullNotifier()
        self.checks = checks if checks is not None else PageChecks(settings)
        self.url_hooks = list(url_hooks)
        self.completion_hooks = list(completion_hooks)
        self.on_new_links = on_new_links
        self.clock = clock
        self.time_start = time_start if time_start is not None else clock()
        self.time_end: Optional[float] = None
        self.diffs: List[DiffEntry] = []
        self.completed = False

    @classmethod
    def from_state(cls, state: CrawlState, fetcher: Fetcher, **kwargs) -> "CrawlDriver":
        """Rebuild a driver from a persisted snapshot."""
        settings = MonitorSettings.from_mapping(state.settings)
        frontier = Frontier.for_settings(
            settings,
            links=state.links,
            visited=state.visited,
            broken=state.broken,
        )
        kwargs.setdefault("mode", Mode.RESUMABLE)
        driver = cls(
            settings,
            fetcher,
            run_log=RunLog.from_list(state.log_records),
            frontier=frontier,
            time_start=state.time_start,
            **kwargs,
        )
        driver.time_end = state.time_end
        driver.diffs = list(state.diffs)
        driver.completed = state.completed
        return driver

    def snapshot(self) -> CrawlState:
        return CrawlState(
            log_id=self.settings.log_id,
            settings=self.settings.to_dict(),
            log_records=self.run_log.to_list(),
            links=self.frontier.links,
            visited=self.frontier.visited,
            broken=self.frontier.broken,
            diffs=list(self.diffs),
            time_start=self.time_start,
            time_end=self.time_end,
            completed=self.completed,
        )

    def completion_percent(self) -> int:
        """Progress shown while checking a page, before that page is counted."""
        visited = self.frontier.visited_count()
        total = self.frontier.link_count()
        if not visited or not total:
            return 0
        return int((visited + 1) / total * 100)

    def _emit_new_links(self, since: int) -> None:
        if self.mode is not Mode.RESUMABLE or self.on_new_links is None:
            return
        new_links = [
            self.frontier.link_at(i)
            for i in range(since, self.frontier.link_count())
            if not self.frontier.is_visited(self.frontier.link_at(i))
        ]
        if new_links:
            self.on_new_links(new_links)

    def _run_url_hooks(self, url: str, page: FetchedPage) -> None:
        for hook in self.url_hooks:
            try:
                hook(url, page)
            except Exception:
                logger.exception("URL hook %r failed for %s", hook, url)

    def process_one(self, url: str) -> Optional[FetchedPage]:
        """Fetch `url` once and feed its links back into the frontier.

        Returns the fetched page, or None when the URL was rejected, already
        visited, or could not be loaded.
        """
        url = self.frontier.normalize(url)
        if not self.frontier.add_link(url):
            return None
        if self.frontier.is_visited(url):
            return None

        known_links = self.frontier.link_count()
        try:
            page = self.fetcher.fetch(url)
        except PageFetchError as e:
            logger.warning("Fetch failed for %s: %s", url, e.reason)
            page = None
        except Exception as e:
            logger.error("Fetch error for %s: %s", url, e, exc_info=True)
            page = None

        if page is None:
            self.run_log.error(f'Cannot load "{unquote(url)}" page.')
            self.frontier.mark_broken(url)
            return None

        percent = self.completion_percent()
        self.run_log.log(f'Checking "{page.title}" page ({unquote(url)}). {percent}%')
        self.frontier.mark_visited(url)

        if self.settings.max_load_time < page.elapsed_seconds:
            self.run_log.warning(
                f"Slow loading of {unquote(url)} page. {round(page.elapsed_seconds, 3)} seconds."
            )

        # Outer pages are checked for availability only; their links are not followed.
        if not self.frontier.is_outer(url):
            self.checks.check(page, self.run_log)
            for anchor in page.anchors:
                if anchor.nofollow:
                    continue
                self.frontier.add_link(anchor.href)

        self._emit_new_links(known_links)
        self._run_url_hooks(url, page)
        return page

    def seed(self) -> Optional[FetchedPage]:
        """Process the site root and expand the navigation menu, if configured."""
        root = self.frontier.normalize(self.settings.site_url)
        page = self.process_one(root)

        selector = self.settings.menu_links_selector
        if not selector:
            return page

        self.run_log.log("Checking pages in menu...")
        hrefs: List[str] = []
        if page is not None and page.document is not None:
            hrefs = page.document.select_hrefs(selector, base_url=root)
        self.run_log.log(f"Found {len(hrefs)} links in menu.")

        known_links = self.frontier.link_count()
        for href in hrefs:
            self.frontier.add_link(href)
        self._emit_new_links(known_links)
        return page

    def walk(self) -> None:
        """Breadth-first drain of the frontier (SYNC mode).

        Links discovered while walking are appended to the frontier and
        picked up by the same loop.
        """
        self.run_log.log("Walking on links...")
        self.run_log.log(f"Found {self.frontier.link_count()} links in total.")
        if self.mode is not Mode.SYNC:
            return

        index = 0
        while index < self.frontier.link_count():
            url = self.frontier.link_at(index)
            index += 1
            if self.frontier.is_visited(url):
                continue
            self.process_one(url)

    def run(self) -> Report:
        """Synchronous crawl from seed to report."""
        self.seed()
        self.walk()
        return self.complete()

    def build_report(self) -> Report:
        return Report(
            site_url=self.settings.site_url,
            log_id=self.settings.log_id,
            records=list(self.run_log.records),
            diffs=list(self.diffs),
            email_level=self.settings.email_level,
            mail_from=self.settings.mail_from,
            mail_to=self.settings.mail_to,
        )

    def complete(self, notify: bool = True) -> Report:
        """Summarize the run, diff against the baseline and notify.

        With `notify=False` the caller sends the report itself through
        `notify`, once the completed state is stored.
        """
        self.run_log.info(f"There are {self.frontier.link_count()} links on site.")
        self.run_log.info(f"There are {self.frontier.visited_count()} visited.")

        not_visited = self.frontier.not_visited()
        if not_visited:
            self.run_log.info("Not visited:")
            for item in not_visited:
                self.run_log.error(item)

        sorted_links = natural_sorted(link for link in self.frontier.links if link)
        if self.baseline is not None:
            try:
                self.diffs = self.baseline.run(sorted_links)
            except OSError:
                logger.exception("Baseline comparison failed for %s", self.settings.log_id)
                self.run_log.error("Cannot compare links with the base links file.")
                self.diffs = []

        for hook in self.completion_hooks:
            try:
                hook(self)
            except Exception:
                logger.exception("Completion hook %r failed", hook)

        self.time_end = self.clock()
        elapsed = self.time_end - self.time_start
        self.run_log.info(f"Time elapsed: {round(elapsed, 3)} seconds.")

        self.completed = True
        report = self.build_report()
        if notify:
            self.notify(report)
        return report

    def notify(self, report: Report) -> None:
        try:
            self.notifier.notify(report)
        except Exception:
            logger.exception("Notifier failed for %s", self.settings.log_id)
