"""
Mountpoint helpers for the onedriver launcher.

onedriver drops a ``.xdg-volume-info`` file into the root of a mount once the
filesystem is up. That file tells us both that the mount is ready and which
account it belongs to. Mounts the user has set up before are found through
the per-mount folders in onedriver's cache directory, whose names are the
systemd-escaped mountpoint paths.
"""

import enum
import logging
import os
import stat
import threading
import time
from pathlib import Path
from typing import List, Optional, Union

from onedriver_launcher.platform import default_cache_dir
from onedriver_launcher.systemd import unescape_path

logger = logging.getLogger("onedriver_launcher.mounts")

XDG_VOLUME_INFO = ".xdg-volume-info"
DEFAULT_TIMEOUT = 120
POLL_INTERVAL = 0.1

PathLike = Union[str, Path]


class MountStatus(enum.Enum):
    """Outcome of waiting for a mount to come up."""

    READY = "ready"
    TIMED_OUT = "timed_out"
    NOT_PRESENT = "not_present"
    CANCELLED = "cancelled"


def _has_volume_info(mountpoint: PathLike) -> bool:
    with os.scandir(mountpoint) as entries:
        return any(entry.name == XDG_VOLUME_INFO for entry in entries)


def wait_until_ready(
    mountpoint: PathLike,
    timeout: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
    interval: float = POLL_INTERVAL,
) -> MountStatus:
    """
    Block until the filesystem at *mountpoint* is available.

    Args:
        mountpoint: Directory the filesystem is mounted on
        timeout: Seconds to wait. ``None`` or -1 means the default of 120
        cancel: Optional event that stops the wait when set
        interval: Seconds between checks

    Returns:
        READY once the volume info file shows up, NOT_PRESENT if the
        directory can't be opened, TIMED_OUT or CANCELLED otherwise.
    """
    if timeout is None or timeout == -1:
        timeout = DEFAULT_TIMEOUT

    attempts = int(timeout * 10)
    for attempt in range(attempts):
        if cancel is not None and cancel.is_set():
            logger.debug(f"Stopped waiting for {mountpoint}")
            return MountStatus.CANCELLED

        try:
            if _has_volume_info(mountpoint):
                logger.debug(f"{mountpoint} ready after {attempt + 1} checks")
                return MountStatus.READY
        except OSError as e:
            logger.debug(f"Cannot open {mountpoint}: {e}")
            return MountStatus.NOT_PRESENT

        if attempt < attempts - 1:
            time.sleep(interval)

    logger.warning(f"Timed out after {timeout}s waiting for {mountpoint}")
    return MountStatus.TIMED_OUT


def read_account_name(mount_name: PathLike) -> Optional[str]:
    """
    Read the account name from a mount's ``.xdg-volume-info`` file.

    Args:
        mount_name: Mountpoint of a running onedriver filesystem

    Returns:
        The value of the ``Name=`` line, or None if there is no such line.
        An empty ``Name=`` gives an empty string.

    Raises:
        OSError: The volume info file could not be opened.
    """
    fname = Path(mount_name) / XDG_VOLUME_INFO
    try:
        f = open(fname, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error(f"Could not open file {fname}: {e}")
        raise

    with f:
        for line in f:
            if line.startswith("Name="):
                return line[len("Name=") :].rstrip("\r\n")

    logger.debug(f"No Name= entry in {fname}")
    return None


def is_valid_mountpoint(path: Optional[PathLike]) -> bool:
    """Check that *path* exists, is a directory, and has nothing in it."""
    if not path:
        return False

    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError:
        return False


def list_known_mounts(cache_dir: Optional[PathLike] = None) -> List[str]:
    """
    Return the mountpoints onedriver has cache folders for.

    Each folder in the cache directory is named after the systemd-escaped
    path of its mountpoint. Only mountpoints that still exist as directories
    are returned, in directory order.

    Args:
        cache_dir: onedriver's cache directory. Defaults to
            ``$XDG_CACHE_HOME/onedriver``.
    """
    cache = Path(cache_dir) if cache_dir is not None else default_cache_dir()

    mounts: List[str] = []
    try:
        with os.scandir(cache) as entries:
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                if not entry.is_dir(follow_symlinks=False):
                    continue

                path = "/" + unescape_path(entry.name)
                try:
                    st = os.stat(path)
                except (OSError, ValueError):
                    logger.debug(f"Skipping {entry.name}: no directory at {path}")
                    continue
                if stat.S_ISDIR(st.st_mode):
                    mounts.append(path)
    except OSError as e:
        logger.debug(f"Cannot read cache directory {cache}: {e}")
        return []

    return mounts
