import time
from typing import Callable, Mapping

import requests

from sitemonitor.domain.http_response import HttpResponse
from sitemonitor.exceptions import HttpFetchError


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection.
    This enables easy testing without patching and allows swapping HTTP libraries.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: int = 10, max_redirects: int = 5):
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.http_client = http_client

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL and return status code, body text, headers and elapsed wall time."""
        headers = {"User-Agent": self.user_agent}
        started = time.perf_counter()
        try:
            resp = self.http_client(
                url,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=self.max_redirects > 0,
            )
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        elapsed = time.perf_counter() - started

        history = getattr(resp, "history", None)
        if isinstance(history, list) and len(history) > self.max_redirects:
            raise HttpFetchError(url, requests.exceptions.TooManyRedirects(f"more than {self.max_redirects} redirects"))

        raw_headers = getattr(resp, "headers", None)
        resp_headers = dict(raw_headers) if isinstance(raw_headers, Mapping) else {}
        ct = None
        for key, value in resp_headers.items():
            if key.lower() == "content-type":
                ct = value
                break

        return HttpResponse(resp.status_code, resp.text, ct, resp_headers, elapsed)
