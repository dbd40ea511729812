"""
onedriver-launcher - helpers for the onedriver mount launcher.

Find the mounts you have, wait for them to come up, show them nicely.
"""

from importlib.metadata import version as _version

__version__ = _version("onedriver-launcher")
