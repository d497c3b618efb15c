from __future__ import annotations

import hashlib
import logging
import threading
from typing import Callable, Iterable, List, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.queue_item import QueueItem
from sitemonitor.exceptions import RunNotFound
from sitemonitor.repository.crawl_runs import KEY_PREFIX

logger = logging.getLogger(__name__)


def batch_key(log_id: str, urls: Iterable[str]) -> str:
    """Deterministic key of a logical batch.

    The same run pushing the same URLs always yields the same key, so a
    repeated save merges into the existing batch instead of creating a new one.
    """
    digest = hashlib.sha1("\n".join([log_id, *urls]).encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}_batch_{digest}_{log_id[:31]}"


class TaskQueue(Protocol):
    """Queue of pending URLs driven by an external scheduler."""

    def enqueue(self, item: QueueItem) -> None: ...

    def dispatch(self) -> None: ...

    def next_tick(self) -> Optional[QueueItem]: ...

    def on_complete(self, callback: Callable[[], None]) -> None: ...


class SqlTaskQueue:
    """TaskQueue over `CrawlRunRepository` for a single run.

    Enqueued items are buffered until `save` or `commit`, which persist them
    together with the run state.
    """

    def __init__(self, repo, log_id: str, dispatcher=None):
        self.repo = repo
        self.log_id = log_id
        self.dispatcher = dispatcher
        self._buffer: List[QueueItem] = []
        self._complete_callbacks: List[Callable[[], None]] = []

    def enqueue(self, item: QueueItem) -> None:
        if item.log_id != self.log_id:
            raise ValueError(f"Item for run {item.log_id!r} pushed to queue of {self.log_id!r}")
        self._buffer.append(item)

    def enqueue_urls(self, urls: Iterable[str]) -> None:
        for url in urls:
            self.enqueue(QueueItem(log_id=self.log_id, url=url))

    def _drain_buffer(self) -> List[str]:
        urls = [item.url for item in self._buffer]
        self._buffer = []
        return urls

    def save(self, state: CrawlState) -> Optional[str]:
        """Persist `state` and the buffered items. Returns the batch key, if any items were buffered."""
        return self.commit(None, state)

    def commit(self, consumed: Optional[QueueItem], state: CrawlState) -> Optional[str]:
        """Persist a completed step: state, consumption of `consumed`, buffered items."""
        urls = self._drain_buffer()
        key = batch_key(self.log_id, urls) if urls else None
        added = self.repo.commit_step(
            state,
            consumed_item_id=consumed.item_id if consumed is not None else None,
            new_urls=urls,
            batch_key=key,
        )
        logger.debug("Run %s: committed step, %d new queue item(s)", self.log_id, added)
        return key

    def dispatch(self) -> None:
        if self.dispatcher is None:
            logger.debug("No dispatcher configured for %s; waiting for an external tick", self.log_id)
            return
        self.dispatcher.dispatch(self.log_id)

    def next_tick(self) -> Optional[QueueItem]:
        """Return the next pending item, or None and fire the completion callbacks."""
        item = self.repo.peek_next_item(self.log_id)
        if item is None:
            for callback in self._complete_callbacks:
                callback()
        return item

    def on_complete(self, callback: Callable[[], None]) -> None:
        self._complete_callbacks.append(callback)


class TickDispatcher:
    """Issues ticks for resumable runs from an APScheduler background scheduler.

    Each run gets one interval job (`tick:<log_id>`) with `max_instances=1`,
    so duplicate dispatch requests coalesce and a run is never ticked twice
    at the same time. The job removes itself once the tick callback reports
    that nothing was processed.
    """

    def __init__(self, interval_seconds: float = 1.0, scheduler_factory=BackgroundScheduler):
        self.interval_seconds = float(interval_seconds)
        self._scheduler_factory = scheduler_factory
        self._sched = None
        self._tick_callback: Optional[Callable[[str], object]] = None
        self._lock = threading.Lock()

    @staticmethod
    def job_id(log_id: str) -> str:
        return f"tick:{log_id}"

    def bind(self, tick_callback: Callable[[str], object]) -> None:
        self._tick_callback = tick_callback

    @property
    def running(self) -> bool:
        return self._sched is not None

    def start(self) -> None:
        if self._sched is not None:
            return
        self._sched = self._scheduler_factory()
        self._sched.start()
        logger.info("Tick dispatcher started (interval %.2fs)", self.interval_seconds)

    def shutdown(self, wait: bool = True) -> None:
        if not self._sched:
            return
        try:
            self._sched.shutdown(wait=wait)
            logger.info("Tick dispatcher shut down")
        finally:
            self._sched = None

    def dispatch(self, log_id: str) -> bool:
        """Make sure ticks are being issued for `log_id`. Returns True if a job was added."""
        if self._sched is None:
            logger.warning("Tick dispatcher not started; cannot dispatch %s", log_id)
            return False
        job_id = self.job_id(log_id)
        with self._lock:
            if self._sched.get_job(job_id) is not None:
                return False
            self._sched.add_job(
                self._run_tick,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                args=[log_id],
                id=job_id,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        logger.info("Dispatched ticks for %s", log_id)
        return True

    def _remove(self, log_id: str) -> None:
        if self._sched is None:
            return
        with self._lock:
            try:
                self._sched.remove_job(self.job_id(log_id))
            except JobLookupError:
                pass

    def _run_tick(self, log_id: str) -> None:
        if self._tick_callback is None:
            logger.error("No tick callback bound; dropping ticks for %s", log_id)
            self._remove(log_id)
            return
        try:
            outcome = self._tick_callback(log_id)
        except RunNotFound:
            logger.error("Run %s not found; stopping its ticks", log_id)
            self._remove(log_id)
            return
        except Exception:
            # Keep the job: the next interval retries from the last committed step.
            logger.exception("Tick failed for %s", log_id)
            return
        if not getattr(outcome, "processed", False):
            logger.info("Run %s finished (%s); stopping its ticks", log_id, outcome)
            self._remove(log_id)
