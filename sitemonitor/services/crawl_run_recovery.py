import logging
from typing import List, Optional

from sitemonitor.repository.crawl_runs import CrawlRunRepository

logger = logging.getLogger(__name__)


class CrawlRunRecovery:
    """Best-effort recovery for resumable runs left incomplete in the DB.

    A run whose process died between ticks still has its last committed
    state and its pending queue items; re-dispatching it is enough to resume.
    """

    def __init__(
        self,
        *,
        repo: CrawlRunRepository,
        dispatcher,
        within_seconds: Optional[int] = None,
    ) -> None:
        self.repo = repo
        self.dispatcher = dispatcher
        self.within_seconds = within_seconds

    def recover(self) -> List[str]:
        """Re-dispatch incomplete runs. Returns the log ids dispatched."""
        if self.repo is None or self.dispatcher is None:
            return []

        logger.info("Recovery: scanning for incomplete runs")
        try:
            log_ids = self.repo.list_resumable_log_ids(within_seconds=self.within_seconds)
        except Exception:
            logger.exception("Recovery: could not list incomplete runs")
            return []
        logger.info("Recovery: found %d incomplete run(s)", len(log_ids))

        dispatched = []
        for log_id in log_ids:
            try:
                pending = self.repo.pending_count(log_id)
                logger.info("Recovery: run %s has %d pending item(s)", log_id, pending)
                # An empty queue still needs one tick to complete the run.
                self.dispatcher.dispatch(log_id)
                dispatched.append(log_id)
            except Exception:
                logger.exception("Recovery: failed dispatching run %s", log_id)
        return dispatched
