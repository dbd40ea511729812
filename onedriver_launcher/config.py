"""
Configuration file support for the onedriver launcher.

Reads onedriver's own ``config.yml`` from ``~/.config/onedriver/`` (or
``$XDG_CONFIG_HOME/onedriver/``) so the launcher looks for mounts in the
same cache directory the daemon writes to.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from onedriver_launcher.platform import APP_NAME, default_cache_dir, user_config_dir

logger = logging.getLogger("onedriver_launcher.config")

# onedriver's log level names mapped onto the logging module's
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


def default_config_path() -> Path:
    """Return the default configuration file path.

    Uses ``$XDG_CONFIG_HOME/onedriver/config.yml`` when set, otherwise
    falls back to ``~/.config/onedriver/config.yml``.
    """
    return user_config_dir() / APP_NAME / "config.yml"


@dataclass
class OnedriverConfig:
    """Settings the launcher shares with the onedriver daemon."""

    cache_dir: Optional[Path] = None
    log: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OnedriverConfig":
        """Construct an ``OnedriverConfig`` from a parsed YAML dictionary."""
        if not isinstance(data, dict):
            return cls()

        cache_dir = data.get("cacheDir")
        if cache_dir is not None and not isinstance(cache_dir, str):
            logger.warning("Ignoring invalid cacheDir value: %s", cache_dir)
            cache_dir = None

        log = data.get("log")
        if log is not None:
            log = str(log).lower()
            if log not in LOG_LEVELS:
                logger.warning("Ignoring unknown log level: %s", log)
                log = None

        return cls(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            log=log,
        )

    @classmethod
    def from_file(cls, path: Path) -> "OnedriverConfig":
        """Read onedriver's YAML config at *path*.

        onedriver runs fine without a config file, so a missing file gives
        the defaults quietly. Unreadable or malformed files are logged and
        also give the defaults.
        """
        try:
            with open(path, "rb") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            logger.debug("No config file at %s, using defaults", path)
            return cls()
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config from %s: %s", path, e)
            return cls()
        return cls.from_dict(data) if data is not None else cls()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "OnedriverConfig":
        """Load config from *config_path*, or from onedriver's default location."""
        return cls.from_file(config_path or default_config_path())

    def resolved_cache_dir(self) -> Path:
        """The configured cache directory, or onedriver's default one."""
        return self.cache_dir or default_cache_dir()

    def log_level(self) -> Optional[int]:
        """The configured log level as a ``logging`` constant, if any."""
        if self.log is None:
            return None
        return LOG_LEVELS[self.log]
