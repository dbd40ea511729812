"""
Host environment lookups for the onedriver launcher.

Centralizes the home directory and XDG base directory lookups so the rest
of the codebase can take them as plain arguments instead of reading the
environment in several places.
"""

import os
from pathlib import Path

APP_NAME = "onedriver"


def home_dir() -> str:
    """Return the current user's home directory."""
    return str(Path.home())


def user_cache_dir() -> Path:
    """Return ``$XDG_CACHE_HOME``, falling back to ``~/.cache``."""
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".cache"


def user_config_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME``, falling back to ``~/.config``."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def default_cache_dir() -> Path:
    """Return the directory onedriver keeps per-mount caches in."""
    return user_cache_dir() / APP_NAME
