"""Leveled run log: the records that end up in the report."""
import enum
import logging
from typing import List, NamedTuple, Optional

report_logger = logging.getLogger("sitemonitor.report")


class LogLevel(enum.IntEnum):
    LOG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @classmethod
    def parse(cls, value) -> "LogLevel":
        """Accept a LogLevel, its integer value, or its (case-insensitive) name."""
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown log level: {value!r}") from None
        return cls(int(value))

    def to_logging(self) -> int:
        return _STDLIB_LEVELS[self]


_STDLIB_LEVELS = {
    LogLevel.LOG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LogRecord(NamedTuple):
    level: LogLevel
    message: str

    def to_dict(self) -> dict:
        return {"level": int(self.level), "message": self.message}

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        return cls(LogLevel.parse(data["level"]), data["message"])


class RunLog:
    """Accumulates log records for one crawl run.

    Every record is also forwarded to the `sitemonitor.report` logger, which
    the CLI streams to stdout as the crawl progresses.
    """

    def __init__(self, records: Optional[List[LogRecord]] = None):
        self.records: List[LogRecord] = list(records or [])

    def log(self, message: str, level: LogLevel = LogLevel.LOG) -> LogRecord:
        level = LogLevel.parse(level)
        if level is LogLevel.ERROR:
            message = f"*** {message} ***"
        record = LogRecord(level, message)
        self.records.append(record)
        report_logger.log(level.to_logging(), "%s", message)
        return record

    def info(self, message: str) -> LogRecord:
        return self.log(message, LogLevel.INFO)

    def warning(self, message: str) -> LogRecord:
        return self.log(message, LogLevel.WARNING)

    def error(self, message: str) -> LogRecord:
        return self.log(message, LogLevel.ERROR)

    def records_at_least(self, level: LogLevel) -> List[LogRecord]:
        level = LogLevel.parse(level)
        return [r for r in self.records if r.level >= level]

    def to_list(self) -> List[dict]:
        return [r.to_dict() for r in self.records]

    @classmethod
    def from_list(cls, items) -> "RunLog":
        return cls([LogRecord.from_dict(item) for item in items or []])

    def __len__(self) -> int:
        return len(self.records)
