import os
import logging
from pathlib import Path
from typing import Optional

try:
    from dotenv import load_dotenv
except ImportError:
    logging.warning("python-dotenv not available; using environment variables only")
else:
    loaded = load_dotenv()
    if not loaded and Path(".env").exists():
        raise RuntimeError(".env file present but failed to load")


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/83.0.4103.116 Safari/537.36"
)


def get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw


def get_optional_str_env(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return raw


def get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except Exception:
        logging.exception("Invalid %s: %r", name, raw)
        return default


def get_optional_int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except Exception:
        logging.exception("Invalid %s: %r", name, raw)
        return None


def get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except Exception:
        logging.exception("Invalid %s: %r", name, raw)
        return default


def get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = get_str_env("DATABASE_URL", "sqlite:///sitemonitor.db")
USER_AGENT = get_str_env("USER_AGENT", DEFAULT_USER_AGENT)
HTTP_TIMEOUT = get_int_env("HTTP_TIMEOUT", 10)
HTTP_MAX_REDIRECTS = get_int_env("HTTP_MAX_REDIRECTS", 5)


def settings_file() -> str:
    return get_str_env("MONITOR_SETTINGS_FILE", "monitor.json")


def baseline_file() -> str:
    return get_str_env("MONITOR_BASELINE_FILE", os.path.join("output", "base-links.txt"))


def content_dir() -> str:
    return get_str_env("MONITOR_CONTENT_DIR", os.path.join("output", "content"))


def mail_from() -> str:
    return get_str_env("MONITOR_MAIL_FROM", "")


def recovery_within_seconds() -> Optional[int]:
    return get_optional_int_env("MONITOR_RECOVERY_WITHIN_SECONDS")


def smtp_host() -> Optional[str]:
    return get_optional_str_env("SMTP_HOST")


def smtp_port() -> int:
    return get_int_env("SMTP_PORT", 25)


def dispatch_token() -> Optional[str]:
    return get_optional_str_env("MONITOR_DISPATCH_TOKEN")


def tick_interval() -> float:
    return get_float_env("MONITOR_TICK_INTERVAL", 1.0)
