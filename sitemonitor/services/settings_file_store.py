import json
import os
import uuid
from typing import Any, Dict, Mapping, Optional

import yaml

from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.exceptions import ConfigMissing


def new_log_id(prefix: str = "monitor_cli") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


class SettingsFileStore:
    """Reads run settings from a YAML (or JSON) file on disk.

    Responsibility: locate, read and parse the file. Validation belongs to
    `MonitorSettings.from_mapping`.
    """

    def __init__(self, *, settings_path: str):
        self.settings_path = settings_path

    def load_dict(self) -> Dict[str, Any]:
        path = self.settings_path
        if not path or not os.path.isfile(path):
            raise ConfigMissing("Settings file does not exist.")
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigMissing("Settings file does not exist.") from e
        if not raw.strip():
            raise ConfigMissing("Settings file is empty.")

        try:
            if path.endswith(".json"):
                data = json.loads(raw)
            else:
                data = yaml.safe_load(raw)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigMissing(f"Settings file is not valid: {e}") from e

        if data is None:
            raise ConfigMissing("Settings file is empty.")
        if not isinstance(data, dict):
            raise ConfigMissing("Settings file must contain a mapping.")
        return data

    def load(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> MonitorSettings:
        """Load the file, apply non-None `overrides` and validate."""
        data = self.load_dict()
        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value
        return MonitorSettings.from_mapping(data, defaults)
