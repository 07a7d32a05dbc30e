"""
Shared configuration loader for the Sofie take poller.

Loads a single JSON config file.  Search order:
  1. $SOFIE_TAKE_CONFIG                      (explicit override)
  2. /etc/sofie-take-poller/config.json      (deployed install)
  3. config.json                             (CWD — handy for local dev)
  4. ../../config/default.json               (repo fallback)

Usage:
    from sofie.config import cfg

    core_url  = cfg("core", "url", default="http://localhost:3000")
    delay_ms  = cfg("poll", "delay_ms", default=2000)
    take      = cfg("take")  # returns the whole dict
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None

CONFIG_ENV = "SOFIE_TAKE_CONFIG"

_SEARCH_PATHS = [
    "/etc/sofie-take-poller/config.json",
    "config.json",
    os.path.join(os.path.dirname(__file__), "..", "..", "config", "default.json"),
]


def _search_paths() -> list[str]:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return [override] + _SEARCH_PATHS
    return list(_SEARCH_PATHS)


def _section(config: dict, name: str, path: str) -> dict:
    val = config.get(name)
    if val is None:
        return {}
    if not isinstance(val, dict):
        logger.warning("Config %s: '%s' should be an object, got %s", path, name, type(val).__name__)
        return {}
    return val


def _validate(config: dict, path: str) -> None:
    """Warn about missing or suspicious config values."""
    url = _section(config, "core", path).get("url")
    if url is not None and not str(url).startswith(("http://", "https://")):
        logger.warning("Config %s: core.url '%s' is not an http(s) URL", path, url)
    delay = _section(config, "poll", path).get("delay_ms")
    if delay is not None:
        try:
            if float(delay) <= 0:
                logger.warning("Config %s: poll.delay_ms must be positive, got %s", path, delay)
        except (TypeError, ValueError):
            logger.warning("Config %s: poll.delay_ms '%s' is not a number", path, delay)


def load_config() -> dict:
    """Load config from the first JSON object found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _search_paths():
        try:
            with open(path) as f:
                loaded = json.load(f)
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue
        if not isinstance(loaded, dict):
            logger.error("Config %s is not a JSON object (got %s)", path, type(loaded).__name__)
            continue
        _config = loaded
        logger.info("Config loaded from %s", path)
        _validate(_config, path)
        return _config

    logger.warning("No config.json found — using built-in defaults")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("take")                        → config["take"]
    cfg("core", "url")                 → config["core"]["url"]
    cfg("poll", "delay_ms", default=2000)  → config["poll"]["delay_ms"] or 2000
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config()
