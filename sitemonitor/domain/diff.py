import enum
from typing import NamedTuple


class DiffStatus(enum.Enum):
    UNMODIFIED = "unmodified"
    REMOVED = "removed"
    ADDED = "added"


class DiffEntry(NamedTuple):
    """One line of a baseline comparison."""
    text: str
    status: DiffStatus

    def to_dict(self) -> dict:
        return {"text": self.text, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: dict) -> "DiffEntry":
        return cls(data["text"], DiffStatus(data["status"]))
