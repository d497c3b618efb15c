from .engine import make_engine, init_schema
from .models import Base, CrawlStateRow, QueueItemRow

__all__ = [
    "make_engine",
    "init_schema",
    "Base",
    "CrawlStateRow",
    "QueueItemRow",
]
