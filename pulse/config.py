"""
User configuration file support.

Reads/writes ``~/.netpulse/config.json``.

Supported keys::

    download_url = "https://speed.cloudflare.com/__down"
    upload_url = "https://speed.cloudflare.com/__up"
    latency_url = "https://www.cloudflare.com/cdn-cgi/trace"
    info_url = "https://ipapi.co/json/"
    server_label = "Cloudflare"
    ping_count = 10
    ping_timeout_ms = 5000
    ping_delay_ms = 100
    download_sizes = [1000000, 10000000, 25000000, 100000000]
    upload_sizes = [1000000, 5000000, 10000000, 25000000]
    save_history = true
    log_level = "WARNING"
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

from .constants import (
    DEFAULT_PING_COUNT,
    DEFAULT_PING_DELAY_MS,
    DEFAULT_PING_TIMEOUT_MS,
    DOWNLOAD_SIZES,
    DOWNLOAD_URL,
    INFO_URL,
    LATENCY_URL,
    SERVER_LABEL,
    UPLOAD_SIZES,
    UPLOAD_URL,
)

_CONFIG_DIR = os.path.join(Path.home(), ".netpulse")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "download_url": DOWNLOAD_URL,
    "upload_url": UPLOAD_URL,
    "latency_url": LATENCY_URL,
    "info_url": INFO_URL,
    "server_label": SERVER_LABEL,
    "ping_count": DEFAULT_PING_COUNT,
    "ping_timeout_ms": DEFAULT_PING_TIMEOUT_MS,
    "ping_delay_ms": DEFAULT_PING_DELAY_MS,
    "download_sizes": list(DOWNLOAD_SIZES),
    "upload_sizes": list(UPLOAD_SIZES),
    "save_history": True,
    "log_level": "WARNING",
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single known config value and persist.  Returns file path."""
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")
    config = load_config()
    config[key] = value
    return save_config(config)


def parse_config_value(key: str, raw: str) -> Any:
    """
    Convert a ``KEY=VALUE`` string from the command line to the type of
    the key's default.  Size lists are comma-separated integers.
    """
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")

    default = DEFAULTS[key]
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{key} expects true/false, got {raw!r}")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{key} expects an integer, got {raw!r}") from None
    if isinstance(default, list):
        return parse_sizes(raw)
    return raw


def parse_sizes(raw: str) -> list:
    """Parse ``"1000000,10000000"`` into a list of byte counts."""
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValueError(f"Sizes must be comma-separated integers, got {raw!r}") from None


def validate_config(config: Dict[str, Any]) -> None:
    """
    Raise ``ValueError`` if a known key holds a value whose type differs
    from its default.  Unknown keys are left alone.
    """
    for key, default in DEFAULTS.items():
        if key not in config:
            continue
        value = config[key]
        if isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif isinstance(default, list):
            ok = isinstance(value, list) and all(
                isinstance(v, int) and not isinstance(v, bool) for v in value
            )
        else:
            ok = isinstance(value, type(default))
        if not ok:
            raise ValueError(
                f"Config key {key} expects {type(default).__name__}, got {value!r}"
            )


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()
