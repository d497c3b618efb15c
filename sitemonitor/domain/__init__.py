"""Domain objects for the site monitor - explicit re-exports to satisfy linters."""
from .crawl_state import CrawlState as CrawlState
from .diff import DiffEntry as DiffEntry, DiffStatus as DiffStatus
from .frontier import Frontier as Frontier
from .log import LogLevel as LogLevel, LogRecord as LogRecord, RunLog as RunLog
from .page import Anchor as Anchor, FetchedPage as FetchedPage
from .queue_item import QueueItem as QueueItem
from .settings import MonitorSettings as MonitorSettings

__all__ = [
    "CrawlState",
    "DiffEntry",
    "DiffStatus",
    "Frontier",
    "LogLevel",
    "LogRecord",
    "RunLog",
    "Anchor",
    "FetchedPage",
    "QueueItem",
    "MonitorSettings",
]
