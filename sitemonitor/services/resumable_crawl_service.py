import enum
import logging
import time
from typing import Callable, List, Optional

from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.exceptions import RunNotFound
from sitemonitor.services.content_saver import ContentSaver
from sitemonitor.services.crawl_driver import CrawlDriver, Mode
from sitemonitor.services.task_queue import SqlTaskQueue

logger = logging.getLogger(__name__)


class TickOutcome(enum.Enum):
    PROCESSED = "processed"
    COMPLETED = "completed"
    ALREADY_COMPLETE = "already_complete"

    @property
    def processed(self) -> bool:
        return self is TickOutcome.PROCESSED


class ResumableCrawlService:
    """Runs crawls one queued URL per tick, persisting state between ticks.

    No in-process state survives between ticks: every tick reloads the
    CrawlState by log id and commits the step before returning.
    """

    def __init__(
        self,
        *,
        repo,
        fetcher,
        dispatcher=None,
        baseline_factory: Optional[Callable[[], object]] = None,
        notifier=None,
        content_dir: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.repo = repo
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.baseline_factory = baseline_factory
        self.notifier = notifier
        self.content_dir = content_dir
        self.clock = clock
        if dispatcher is not None:
            dispatcher.bind(self.tick)

    def _queue(self, log_id: str) -> SqlTaskQueue:
        return SqlTaskQueue(self.repo, log_id, self.dispatcher)

    def _driver_kwargs(self) -> dict:
        return {
            "baseline": self.baseline_factory() if self.baseline_factory else None,
            "notifier": self.notifier,
            "clock": self.clock,
        }

    def _attach_hooks(self, driver: CrawlDriver) -> CrawlDriver:
        if driver.settings.save_content and self.content_dir:
            driver.url_hooks.append(ContentSaver(self.content_dir, driver.run_log))
        return driver

    def _driver(self, settings: MonitorSettings, queue: SqlTaskQueue) -> CrawlDriver:
        driver = CrawlDriver(
            settings,
            self.fetcher,
            mode=Mode.RESUMABLE,
            on_new_links=queue.enqueue_urls,
            **self._driver_kwargs(),
        )
        return self._attach_hooks(driver)

    def _driver_from_state(self, state: CrawlState, queue: SqlTaskQueue) -> CrawlDriver:
        driver = CrawlDriver.from_state(
            state,
            self.fetcher,
            on_new_links=queue.enqueue_urls,
            **self._driver_kwargs(),
        )
        return self._attach_hooks(driver)

    def start(self, settings: MonitorSettings) -> str:
        """Seed a run synchronously, queue its links and ask for ticks."""
        log_id = settings.log_id
        queue = self._queue(log_id)
        if self.repo.load_state(log_id) is not None:
            logger.info("Run %s already exists; re-dispatching", log_id)
            queue.dispatch()
            return log_id

        driver = self._driver(settings, queue)
        driver.seed()
        driver.walk()
        queue.save(driver.snapshot())
        logger.info("Run %s started: %d link(s) queued", log_id, self.repo.pending_count(log_id))
        queue.dispatch()
        return log_id

    def _complete(self, state: CrawlState, queue: SqlTaskQueue) -> None:
        driver = self._driver_from_state(state, queue)
        report = driver.complete(notify=False)
        # The completed state is stored before the report is sent.
        self.repo.save_state(driver.snapshot())
        logger.info("Run %s completed", state.log_id)
        driver.notify(report)

    def tick(self, log_id: str) -> TickOutcome:
        """Process exactly one queued URL of `log_id`, or complete the run when the queue is empty."""
        state = self.repo.load_state(log_id)
        if state is None:
            raise RunNotFound(log_id)
        if state.completed:
            return TickOutcome.ALREADY_COMPLETE

        queue = self._queue(log_id)
        queue.on_complete(lambda: self._complete(state, queue))
        item = queue.next_tick()
        if item is None:
            return TickOutcome.COMPLETED

        driver = self._driver_from_state(state, queue)
        driver.process_one(item.url)
        queue.commit(item, driver.snapshot())
        queue.dispatch()
        return TickOutcome.PROCESSED

    def drain(self, log_id: str, max_ticks: Optional[int] = None) -> int:
        """Tick `log_id` in-process until it completes. Returns the number of ticks."""
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            ticks += 1
            if not self.tick(log_id).processed:
                break
        return ticks

    def get_state(self, log_id: str) -> CrawlState:
        state = self.repo.load_state(log_id)
        if state is None:
            raise RunNotFound(log_id)
        return state

    def pending_urls(self, log_id: str) -> List[str]:
        """URLs still queued for `log_id`, in the order they will be ticked."""
        return [item.url for item in self.repo.list_pending_items(log_id)]
