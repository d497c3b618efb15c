import logging
from typing import Mapping, Optional

from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.exceptions import AccessDenied

logger = logging.getLogger(__name__)

# Checked in order; the first non-empty header wins.
CLIENT_IP_HEADERS = ("CF-Connecting-IP", "Client-IP", "X-Forwarded-For")


def client_ip_from(headers: Mapping[str, str], remote_addr: Optional[str] = None) -> Optional[str]:
    """Best guess at the caller address behind proxies."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in CLIENT_IP_HEADERS:
        value = lowered.get(name.lower())
        if not value:
            continue
        # X-Forwarded-For is "client, proxy1, proxy2".
        first = value.split(",")[0].strip()
        if first:
            return first
    return remote_addr


class AccessPolicy:
    """IP allow-list for web-triggered runs."""

    def check(self, settings: MonitorSettings, client_ip: Optional[str], internal: bool = False) -> None:
        """Raise AccessDenied unless the caller may start a run.

        Internal dispatch skips the check. An empty `allowed_ip` denies every
        web caller.
        """
        if internal:
            return
        allowed = settings.allowed_ip
        if not allowed or not client_ip or client_ip != allowed:
            logger.warning("Access denied for %s (run %s)", client_ip, settings.log_id)
            raise AccessDenied(client_ip)
