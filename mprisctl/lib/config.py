# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Shared configuration loader for mpris-ctl.

Loads a single JSON config file.  Search order:
  1. the path passed to load_config() (the daemon's --config flag)
  2. /etc/mpris-ctl/config.json
  3. ~/.config/mpris-ctl/config.json
  4. config.json                    (CWD — handy for local dev)

Usage:
    from mprisctl.lib.config import cfg

    socket_path = cfg("socket", "path", default=DEFAULT_SOCKET_PATH)
    interval    = cfg("poll", "interval", default=0.25)
    registry    = cfg("registry")  # returns the whole dict
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_PATH = "/tmp/mpris-ctl.sock"
SOCKET_ENV = "MPRIS_CTL_SOCKET"

_config: dict | None = None

_SEARCH_PATHS = [
    "/etc/mpris-ctl/config.json",
    os.path.join(os.path.expanduser("~"), ".config", "mpris-ctl", "config.json"),
    "config.json",
]

_KNOWN_SECTIONS = ("socket", "poll", "registry", "status", "log")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _validate(config: dict, path: str) -> None:
    """Warn about unknown or suspicious config values.

    A known section that is not an object is replaced with an empty one.
    """
    for section in list(config):
        if section not in _KNOWN_SECTIONS:
            logger.warning("Config %s: unknown section '%s'", path, section)
        elif config[section] is not None and not isinstance(config[section], dict):
            logger.warning("Config %s: section '%s' must be an object, got %r — ignoring it",
                           path, section, config[section])
            config[section] = {}
    poll = config.get("poll") or {}
    interval = poll.get("interval")
    if interval is not None and (not isinstance(interval, (int, float)) or interval <= 0):
        logger.warning("Config %s: poll.interval must be a positive number, got %r", path, interval)
    timeout = poll.get("timeout")
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        logger.warning("Config %s: poll.timeout must be a positive number, got %r", path, timeout)
    registry = config.get("registry") or {}
    if registry.get("type", "mpris") != "mpris":
        logger.warning("Config %s: unknown registry.type '%s'", path, registry.get("type"))
    status = config.get("status") or {}
    if status.get("host") not in (None, "127.0.0.1", "localhost", "::1"):
        logger.warning("Config %s: status.host '%s' is not a loopback address", path, status.get("host"))
    level = (config.get("log") or {}).get("level")
    if level is not None and str(level).upper() not in _LOG_LEVELS:
        logger.warning("Config %s: unknown log.level '%s'", path, level)


def load_config(path: str | None = None) -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    paths = [path] if path else _SEARCH_PATHS
    for candidate in paths:
        try:
            with open(candidate) as f:
                loaded = json.load(f)
        except FileNotFoundError:
            if path:
                logger.warning("Config %s not found — using empty config", candidate)
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", candidate, e)
            continue
        if not isinstance(loaded, dict):
            logger.error("Config %s: top level must be an object", candidate)
            continue
        _validate(loaded, candidate)
        _config = loaded
        logger.info("Config loaded from %s", candidate)
        return _config

    logger.debug("No config.json found — using empty config")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("registry")                    → config["registry"]
    cfg("socket", "path")              → config["socket"]["path"]
    cfg("poll", "interval", default=0.25) → config["poll"]["interval"] or 0.25
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        found = val.get(key)
        return found if found is not None else default
    return default


def socket_path(override: str | None = None) -> str:
    """Resolve the rendezvous path: flag, then $MPRIS_CTL_SOCKET, then config."""
    if override:
        return override
    return os.environ.get(SOCKET_ENV) or cfg("socket", "path", default=DEFAULT_SOCKET_PATH)


def reload_config(path: str | None = None):
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config(path)
