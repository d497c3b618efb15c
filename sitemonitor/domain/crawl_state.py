from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sitemonitor.domain.diff import DiffEntry


@dataclass
class CrawlState:
    """Serializable snapshot of a run, persisted between resumable ticks."""

    log_id: str
    settings: Dict[str, Any]
    log_records: List[Dict[str, Any]] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    visited: List[str] = field(default_factory=list)
    broken: List[str] = field(default_factory=list)
    diffs: List[DiffEntry] = field(default_factory=list)
    time_start: Optional[float] = None
    time_end: Optional[float] = None
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_id": self.log_id,
            "settings": dict(self.settings),
            "log_records": list(self.log_records),
            "links": list(self.links),
            "visited": list(self.visited),
            "broken": list(self.broken),
            "diffs": [d.to_dict() for d in self.diffs],
            "time_start": self.time_start,
            "time_end": self.time_end,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlState":
        return cls(
            log_id=data["log_id"],
            settings=dict(data.get("settings") or {}),
            log_records=list(data.get("log_records") or []),
            links=list(data.get("links") or []),
            visited=list(data.get("visited") or []),
            broken=list(data.get("broken") or []),
            diffs=[DiffEntry.from_dict(d) for d in data.get("diffs") or []],
            time_start=data.get("time_start"),
            time_end=data.get("time_end"),
            completed=bool(data.get("completed", False)),
        )
