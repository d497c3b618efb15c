from typing import Dict, NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    elapsed_seconds: float = 0.0
