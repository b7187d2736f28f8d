"""
Configuration loader for mprisbar.

Everything has a working default, so the file is optional.  Search order:
  1. $XDG_CONFIG_HOME/mprisbar/config.json   (~/.config/mprisbar/config.json)
  2. /etc/mprisbar/config.json

Example:
    {
      "log_level": "INFO",
      "display":   {"max_width": 50, "tick_interval": 0.1},
      "cover_art": {"enabled": true, "path": "~/.cache/mpris-cover.png",
                    "refresh_target": "waybar", "refresh_signal": 5}
    }

Usage:
    from mprisbar.lib.config import cfg

    width    = cfg("display", "max_width", default=50)
    cover    = cfg("cover_art")  # returns the whole dict
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None

MIN_WIDTH = 4  # separator plus one codepoint


def _search_paths() -> list[str]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return [
        os.path.join(config_home, "mprisbar", "config.json"),
        "/etc/mprisbar/config.json",
    ]


def _validate(config: dict, path: str) -> None:
    """Warn about unusable values and drop them so defaults apply."""
    display = config.get("display")
    if isinstance(display, dict):
        width = display.get("max_width")
        if width is not None and (isinstance(width, bool) or not isinstance(width, int)
                                  or width < MIN_WIDTH):
            logger.warning("Config %s: display.max_width must be an integer >= %d, ignoring %r",
                           path, MIN_WIDTH, width)
            del display["max_width"]
        interval = display.get("tick_interval")
        if interval is not None and (isinstance(interval, bool)
                                     or not isinstance(interval, (int, float)) or interval <= 0):
            logger.warning("Config %s: display.tick_interval must be > 0, ignoring %r",
                           path, interval)
            del display["tick_interval"]
    cover = config.get("cover_art")
    if isinstance(cover, dict):
        sig = cover.get("refresh_signal")
        if sig is not None and (isinstance(sig, bool) or not isinstance(sig, int) or sig < 0):
            logger.warning("Config %s: cover_art.refresh_signal must be an RTMIN offset, ignoring %r",
                           path, sig)
            del cover["refresh_signal"]
    level = config.get("log_level")
    if level is not None and not isinstance(logging.getLevelName(str(level).upper()), int):
        logger.warning("Config %s: unknown log_level %r", path, level)
        del config["log_level"]


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _search_paths():
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            continue
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Cannot read config %s: %s", path, e)
            continue
        if not isinstance(data, dict):
            logger.error("Config %s: top level must be an object", path)
            continue
        _config = data
        logger.info("Config loaded from %s", path)
        _validate(_config, path)
        return _config

    logger.debug("No config.json found, using defaults")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("log_level")                        → config["log_level"]
    cfg("display", "max_width")             → config["display"]["max_width"]
    cfg("cover_art", "path", default=None)  → config["cover_art"]["path"] or None
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
