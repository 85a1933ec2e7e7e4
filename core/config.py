"""
Load/save application config (JSON) in user app data directory.
Saved by the app after endpoint add/remove and on exit; endpoints keep their
persisted online/first_check state.
"""
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from core.endpoints import Endpoint
from core.monitor import CHECK_INTERVAL_S
from core.probe import PROBE_TIMEOUT_MS

logger = logging.getLogger("portwatch.config")

APP_NAME = "Portwatch"
DEFAULT_INTERVAL_S = int(CHECK_INTERVAL_S)
DEFAULT_TIMEOUT_MS = PROBE_TIMEOUT_MS
DEFAULT_MAX_CONCURRENCY = 0  # unbounded
MIN_INTERVAL_S = 1
MIN_TIMEOUT_MS = 100
CLOSE_TO_TRAY_DEFAULT = True
RUN_AT_STARTUP_DEFAULT = False


def get_config_dir() -> Path:
    """User app data directory for config and logs."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
    else:
        base = os.path.expanduser("~")
    return Path(base) / APP_NAME


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


def get_default_config() -> dict[str, Any]:
    return {
        "endpoints": [],
        "interval_s": DEFAULT_INTERVAL_S,
        "timeout_ms": DEFAULT_TIMEOUT_MS,
        "max_concurrency": DEFAULT_MAX_CONCURRENCY,
        "notifications_enabled": True,
        "close_to_tray": CLOSE_TO_TRAY_DEFAULT,
        "run_at_startup": RUN_AT_STARTUP_DEFAULT,
        "log_path": "",
    }


def ensure_config_dir() -> None:
    get_config_dir().mkdir(parents=True, exist_ok=True)


def load_config() -> dict[str, Any]:
    path = get_config_path()
    if not path.exists():
        return get_default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read %s, using defaults: %s", path, e)
        return get_default_config()
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed config at %s", path)
        return get_default_config()
    # Merge with defaults so new keys exist
    default = get_default_config()
    for k, v in default.items():
        if k not in data:
            data[k] = v
    return data


def save_config(config: dict[str, Any]) -> None:
    ensure_config_dir()
    path = get_config_path()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def endpoint_to_dict(ep: Endpoint) -> dict[str, Any]:
    return {
        "name": ep.name,
        "host": ep.host,
        "port": ep.port,
        "online": ep.online,
        "first_check": ep.first_check,
    }


def _parse_bool(value: Any, default: bool) -> bool:
    """JSON booleans, or the strings "true"/"false"; anything else is rejected."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Expected a boolean, got {value!r}")


def dict_to_endpoint(d: dict[str, Any]) -> Endpoint:
    """Raises ValueError for entries that don't describe a valid endpoint."""
    return Endpoint(
        name=str(d.get("name", "")),
        host=str(d.get("host", "")),
        port=d.get("port"),
        online=_parse_bool(d.get("online"), False),
        first_check=_parse_bool(d.get("first_check"), True),
    )


def load_endpoints(config: dict[str, Any]) -> list[Endpoint]:
    entries = config.get("endpoints")
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        logger.warning("Ignoring malformed endpoint list: %r", entries)
        return []
    endpoints = []
    for d in entries:
        if not isinstance(d, dict):
            logger.warning("Skipping malformed endpoint entry: %r", d)
            continue
        try:
            endpoints.append(dict_to_endpoint(d))
        except ValueError as e:
            logger.warning("Skipping invalid endpoint %r: %s", d, e)
    return endpoints


def store_endpoints(config: dict[str, Any], endpoints: list[Endpoint]) -> None:
    config["endpoints"] = [endpoint_to_dict(ep) for ep in endpoints]


def _int_setting(config: dict[str, Any], key: str, default: int, minimum: int) -> int:
    value = config.get(key, default)
    if isinstance(value, bool):
        value = default
    try:
        value = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid %s %r, using %s", key, value, default)
        value = default
    return max(minimum, value)


def interval_from(config: dict[str, Any]) -> float:
    return float(_int_setting(config, "interval_s", DEFAULT_INTERVAL_S, MIN_INTERVAL_S))


def timeout_from(config: dict[str, Any]) -> int:
    return _int_setting(config, "timeout_ms", DEFAULT_TIMEOUT_MS, MIN_TIMEOUT_MS)


def max_concurrency_from(config: dict[str, Any]) -> int:
    return _int_setting(config, "max_concurrency", DEFAULT_MAX_CONCURRENCY, 0)


def log_dir_from(config: dict[str, Any]) -> Optional[str]:
    value = config.get("log_path")
    return value if isinstance(value, str) and value.strip() else None


def flag_from(config: dict[str, Any], key: str, default: bool) -> bool:
    try:
        return _parse_bool(config.get(key), default)
    except ValueError:
        logger.warning("Invalid %s %r, using %s", key, config.get(key), default)
        return default
