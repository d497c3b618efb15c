import json
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sitemonitor.db.models import CrawlStateRow, QueueItemRow
from sitemonitor.domain.crawl_state import CrawlState
from sitemonitor.domain.queue_item import QueueItem

logger = logging.getLogger(__name__)

KEY_PREFIX = "sitemonitor"


def data_key(log_id: str) -> str:
    return f"{KEY_PREFIX}_data_{log_id}"


class CrawlRunRepository:
    """Key-value store for CrawlState plus the durable per-run URL queue.

    Requires an explicit `session_factory` (callable returning a `Session`).
    A step is committed with `commit_step`, which writes the new state,
    consumes the processed item and enqueues newly discovered URLs in one
    transaction, so a stored snapshot always reflects a completed step.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    @staticmethod
    def _to_domain_item(row: QueueItemRow) -> QueueItem:
        return QueueItem(log_id=row.log_id, url=row.url, item_id=row.item_id, batch_key=row.batch_key)

    def _upsert_state(self, session: Session, state: CrawlState) -> None:
        row = session.get(CrawlStateRow, state.log_id)
        payload = json.dumps(state.to_dict())
        if row is None:
            row = CrawlStateRow(log_id=state.log_id, data_key=data_key(state.log_id))
            session.add(row)
        row.state_json = payload
        row.completed = bool(state.completed)
        row.updated_at = datetime.utcnow()

    def _add_items(self, session: Session, log_id: str, urls: Iterable[str], batch_key: Optional[str]) -> int:
        unique_urls = list(dict.fromkeys(u for u in urls if u))
        if not unique_urls:
            return 0
        q = select(QueueItemRow.url).where(QueueItemRow.log_id == log_id, QueueItemRow.url.in_(unique_urls))
        existing = set(session.execute(q).scalars().all())
        added = 0
        for url in unique_urls:
            if url in existing:
                continue
            session.add(QueueItemRow(log_id=log_id, url=url, batch_key=batch_key))
            added += 1
        return added

    def save_state(self, state: CrawlState) -> None:
        with self.get_session() as session:
            self._upsert_state(session, state)
            session.commit()

    def load_state(self, log_id: str) -> Optional[CrawlState]:
        with self.get_session() as session:
            row = session.get(CrawlStateRow, log_id)
            if row is None:
                return None
            return CrawlState.from_dict(json.loads(row.state_json))

    def push_items(self, log_id: str, urls: Iterable[str], batch_key: Optional[str] = None) -> int:
        """Queue `urls` for `log_id`; URLs already queued (or consumed) are skipped."""
        urls = list(urls)
        with self.get_session() as session:
            added = self._add_items(session, log_id, urls, batch_key)
            try:
                session.commit()
            except IntegrityError:
                # Another writer queued some of the same URLs; retry row by row.
                session.rollback()
                added = 0
                for url in dict.fromkeys(urls):
                    session.add(QueueItemRow(log_id=log_id, url=url, batch_key=batch_key))
                    try:
                        session.commit()
                        added += 1
                    except IntegrityError:
                        session.rollback()
            return added

    def peek_next_item(self, log_id: str) -> Optional[QueueItem]:
        """Return the oldest unconsumed item of the run without consuming it."""
        with self.get_session() as session:
            q = (
                select(QueueItemRow)
                .where(QueueItemRow.log_id == log_id, QueueItemRow.consumed_at.is_(None))
                .order_by(QueueItemRow.item_id)
                .limit(1)
            )
            row = session.execute(q).scalars().first()
            return self._to_domain_item(row) if row else None

    def commit_step(
        self,
        state: CrawlState,
        consumed_item_id: Optional[int] = None,
        new_urls: Iterable[str] = (),
        batch_key: Optional[str] = None,
    ) -> int:
        """Persist one completed step atomically. Returns the number of URLs queued."""
        with self.get_session() as session:
            if consumed_item_id is not None:
                row = session.get(QueueItemRow, consumed_item_id)
                if row is None:
                    raise ValueError(f"QueueItem with item_id={consumed_item_id} not found")
                if row.consumed_at is not None:
                    # Already committed by an earlier attempt at this step.
                    session.rollback()
                    logger.warning("Queue item %s for %s already consumed", consumed_item_id, state.log_id)
                    return 0
                row.consumed_at = datetime.utcnow()
            self._upsert_state(session, state)
            added = self._add_items(session, state.log_id, new_urls, batch_key)
            session.commit()
            return added

    def pending_count(self, log_id: str) -> int:
        with self.get_session() as session:
            q = select(func.count(QueueItemRow.item_id)).where(
                QueueItemRow.log_id == log_id, QueueItemRow.consumed_at.is_(None)
            )
            return int(session.execute(q).scalar_one())

    def list_pending_items(self, log_id: str) -> List[QueueItem]:
        with self.get_session() as session:
            q = (
                select(QueueItemRow)
                .where(QueueItemRow.log_id == log_id, QueueItemRow.consumed_at.is_(None))
                .order_by(QueueItemRow.item_id)
            )
            return [self._to_domain_item(r) for r in session.execute(q).scalars().all()]

    def list_resumable_log_ids(self, within_seconds: Optional[int] = None) -> List[str]:
        """Log ids of runs that have not completed, oldest first."""
        with self.get_session() as session:
            q = select(CrawlStateRow.log_id).where(CrawlStateRow.completed.is_(False))
            if within_seconds is not None:
                cutoff = datetime.utcnow() - timedelta(seconds=within_seconds)
                q = q.where(CrawlStateRow.updated_at >= cutoff)
            q = q.order_by(CrawlStateRow.created_at, CrawlStateRow.log_id)
            return list(session.execute(q).scalars().all())
