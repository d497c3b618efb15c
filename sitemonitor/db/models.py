from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class CrawlStateRow(Base):
    """Persisted CrawlState of one run, keyed by its log id."""
    __tablename__ = "crawl_states"

    log_id = Column(Text, primary_key=True)
    data_key = Column(Text, nullable=False)
    state_json = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class QueueItemRow(Base):
    """One pending URL of a resumable run. Consumed rows are kept so a URL is queued once per run."""
    __tablename__ = "queue_items"
    __table_args__ = (UniqueConstraint("log_id", "url", name="uq_queue_items_log_id_url"),)

    item_id = Column(Integer, primary_key=True, autoincrement=True)
    log_id = Column(Text, nullable=False, index=True)
    url = Column(Text, nullable=False)
    batch_key = Column(Text, nullable=True)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
