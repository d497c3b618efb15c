"""URL canonicalization used as the dedup key for discovered links."""
import logging
import re
from typing import Optional
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)

INVALID = ""

ALLOWED_SCHEMES = ("http", "https")

# Upper bound for repeated percent-decoding of double-encoded input.
_MAX_DECODE_PASSES = 10

_PATH_STRIP = "/\\ \t\r\n"


def _fully_unquote(value: str) -> str:
    for _ in range(_MAX_DECODE_PASSES):
        decoded = unquote(value)
        if decoded == value:
            break
        value = decoded
    return value


def _format_host(host: str) -> str:
    # IPv6 literals lose their brackets in `hostname`.
    if ":" in host:
        return f"[{host}]"
    return host


def normalize_link(raw: Optional[str], site_url: str) -> str:
    """Return the canonical absolute form of `raw`, or `INVALID` ("").

    Relative links borrow scheme and host from `site_url`. Anything
    containing `@` (mailto, credentials) is returned untouched.
    """
    if not raw:
        return INVALID
    raw = raw.strip()
    if not raw:
        return INVALID
    if "@" in raw:
        return raw

    decoded = _fully_unquote(raw)
    site = urlsplit(site_url)
    try:
        parts = urlsplit(decoded)
        port = parts.port
    except ValueError:
        logger.debug("Unparseable link %r", raw)
        return INVALID

    scheme = (parts.scheme or site.scheme).lower()
    if scheme not in ALLOWED_SCHEMES:
        return INVALID

    host = parts.hostname if parts.netloc else site.hostname
    if not host:
        return INVALID

    url = f"{scheme}://{_format_host(host)}"
    if parts.netloc and port is not None:
        url += f":{port}"

    url += "/" + parts.path.strip(_PATH_STRIP)
    query = parts.query.strip()
    if query:
        url += "?" + query
    return url


def strip_www(host: str) -> str:
    return re.sub(r"^www\.", "", host or "", flags=re.IGNORECASE)


def is_outer_url(url: str, site_url: str) -> bool:
    """True when `url` is not on the site host or one of its subdomains.

    A leading `www.` on the site host is ignored.
    """
    site_host = strip_www(urlsplit(site_url).hostname or "")
    try:
        url_host = urlsplit(url).hostname
    except ValueError:
        return True
    if not url_host or not site_host:
        return True
    return re.match(r"^(?:.*\.)?" + re.escape(site_host) + r"$", url_host, re.IGNORECASE) is None
