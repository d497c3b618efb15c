from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from sitemonitor.domain.log import LogLevel
from sitemonitor.exceptions import ConfigMissing


# None means the value must come from the settings source.
DEFAULT_SETTINGS: Dict[str, Any] = {
    "site_url": None,
    "ignored_urls": [],
    "ignore_outer_urls": True,
    "menu_links_selector": "",
    "from": "",
    "to": "",
    "allowed_ip": "",
    "max_load_time": 1,
    "log_id": None,
    "save_content": False,
    "required_headers": {},
    "required_elements": {},
    "email_level": "INFO",
}


@dataclass(frozen=True)
class MonitorSettings:
    """Validated, immutable settings for a single crawl run."""

    site_url: str
    log_id: str
    ignored_urls: Tuple[str, ...] = ()
    ignore_outer_urls: bool = True
    menu_links_selector: str = ""
    mail_from: str = ""
    mail_to: str = ""
    allowed_ip: str = ""
    max_load_time: float = 1.0
    save_content: bool = False
    required_headers: Dict[str, str] = field(default_factory=dict)
    required_elements: Dict[str, str] = field(default_factory=dict)
    email_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_mapping(
        cls,
        data: Optional[Mapping[str, Any]],
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> "MonitorSettings":
        """Merge `data` over `defaults` and validate.

        Keys unknown to the defaults are ignored. Any key that still resolves
        to None raises ConfigMissing.
        """
        merged: Dict[str, Any] = {}
        base = dict(DEFAULT_SETTINGS)
        if defaults:
            base.update(defaults)
        data = data or {}
        for name, default in base.items():
            merged[name] = data[name] if name in data else default

        for name, value in merged.items():
            if value is None:
                raise ConfigMissing(f"'{name}' must be defined in settings.", field=name)

        site_url = str(merged["site_url"]).strip()
        if not site_url:
            raise ConfigMissing("'site_url' must be defined in settings.", field="site_url")
        if not urlsplit(site_url).scheme:
            site_url = "http://" + site_url

        ignored = merged["ignored_urls"]
        if isinstance(ignored, str):
            ignored = [ignored]
        ignored = tuple(str(p) for p in ignored)
        for pattern in ignored:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigMissing(f"Invalid ignored_urls pattern {pattern!r}: {e}", field="ignored_urls") from e

        try:
            max_load_time = float(merged["max_load_time"])
        except (TypeError, ValueError) as e:
            raise ConfigMissing("'max_load_time' must be a number.", field="max_load_time") from e

        try:
            email_level = LogLevel.parse(merged["email_level"])
        except ValueError as e:
            raise ConfigMissing(str(e), field="email_level") from e

        return cls(
            site_url=site_url,
            log_id=str(merged["log_id"]),
            ignored_urls=ignored,
            ignore_outer_urls=bool(merged["ignore_outer_urls"]),
            menu_links_selector=merged["menu_links_selector"] or "",
            mail_from=merged["from"] or "",
            mail_to=merged["to"] or "",
            allowed_ip=merged["allowed_ip"] or "",
            max_load_time=max_load_time,
            save_content=bool(merged["save_content"]),
            required_headers=dict(merged["required_headers"] or {}),
            required_elements=dict(merged["required_elements"] or {}),
            email_level=email_level,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site_url": self.site_url,
            "log_id": self.log_id,
            "ignored_urls": list(self.ignored_urls),
            "ignore_outer_urls": self.ignore_outer_urls,
            "menu_links_selector": self.menu_links_selector,
            "from": self.mail_from,
            "to": self.mail_to,
            "allowed_ip": self.allowed_ip,
            "max_load_time": self.max_load_time,
            "save_content": self.save_content,
            "required_headers": dict(self.required_headers),
            "required_elements": dict(self.required_elements),
            "email_level": self.email_level.name,
        }
