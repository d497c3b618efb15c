from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class QueueItem:
    """A pending URL of a resumable run.

    `item_id` is assigned by the durable queue; `batch_key` names the logical
    batch the item was pushed with.
    """
    log_id: str
    url: str
    item_id: Optional[int] = None
    batch_key: Optional[str] = None
