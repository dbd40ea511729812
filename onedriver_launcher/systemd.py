"""
systemd helpers for the onedriver launcher.

onedriver runs one ``onedriver@.service`` instance per mountpoint, with the
mountpoint path escaped the way ``systemd-escape --path`` does it. The same
escaped name is used for the mount's cache directory, so the launcher needs
both directions of that transform, plus a way to start, stop, enable and
query the per-mount units through ``systemctl --user``.
"""

import logging
import re
import shlex
import string
import subprocess
from typing import List, Tuple

logger = logging.getLogger("onedriver_launcher.systemd")

ONEDRIVER_TEMPLATE = "onedriver@.service"

_VALID_CHARS = frozenset((string.ascii_letters + string.digits + ":_.").encode())
_HEX_ESCAPE = re.compile(rb"\\x([0-9a-fA-F]{2})")


def _simplify(path: str) -> str:
    """Collapse repeated slashes and ``.`` components, drop outer slashes."""
    parts = [p for p in path.split("/") if p and p != "."]
    return "/".join(parts)


def escape_path(path: str) -> str:
    """Escape *path* into a unit name fragment.

    >>> escape_path("/home/user/OneDrive")
    'home-user-OneDrive'
    >>> escape_path("/")
    '-'
    """
    simplified = _simplify(path)
    if not simplified:
        return "-"

    out: List[str] = []
    for i, byte in enumerate(simplified.encode("utf-8")):
        if byte == ord("/"):
            out.append("-")
        elif byte in _VALID_CHARS and not (i == 0 and byte == ord(".")):
            out.append(chr(byte))
        else:
            out.append(f"\\x{byte:02x}")
    return "".join(out)


def unescape_path(name: str) -> str:
    """Reverse :func:`escape_path`, without restoring the leading ``/``.

    Malformed ``\\x`` sequences are left as they are.
    """
    if name == "-":
        return ""

    raw = name.encode("utf-8").replace(b"-", b"/")
    raw = _HEX_ESCAPE.sub(lambda m: bytes([int(m.group(1), 16)]), raw)
    return raw.decode("utf-8", errors="surrogateescape")


def template_unit(template: str, instance: str) -> str:
    """Fill *instance* into a template unit name such as ``foo@.service``."""
    prefix, at, suffix = template.partition("@")
    if not at:
        raise ValueError(f"{template} is not a template unit")
    return f"{prefix}@{instance}{suffix}"


def mount_unit_name(mountpoint: str) -> str:
    """Return the onedriver unit name that serves *mountpoint*."""
    return template_unit(ONEDRIVER_TEMPLATE, escape_path(mountpoint))


def _systemctl(args: List[str]) -> Tuple[int, str, str]:
    """Run a ``systemctl --user`` command and return (code, stdout, stderr)."""
    cmd = ["systemctl", "--user"] + args
    cmd_str = " ".join(shlex.quote(arg) for arg in cmd)
    logger.debug(f"Running command: {cmd_str}")

    result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    return result.returncode, result.stdout or "", result.stderr or ""


def unit_is_active(unit: str) -> bool:
    """Return True when *unit* is currently running."""
    try:
        returncode, stdout, _ = _systemctl(["is-active", unit])
    except FileNotFoundError:
        logger.error("`systemctl` command not found.")
        return False
    return returncode == 0 and stdout.strip() == "active"


def unit_is_enabled(unit: str) -> bool:
    """Return True when *unit* starts on login."""
    try:
        returncode, stdout, _ = _systemctl(["is-enabled", unit])
    except FileNotFoundError:
        logger.error("`systemctl` command not found.")
        return False
    return returncode == 0 and stdout.strip() == "enabled"


def unit_set_active(unit: str, active: bool) -> bool:
    """Start or stop *unit*. Returns True on success."""
    action = "start" if active else "stop"
    try:
        returncode, _, stderr = _systemctl([action, unit])
    except FileNotFoundError:
        logger.error("`systemctl` command not found.")
        return False
    if returncode != 0:
        logger.error(f"Failed to {action} {unit}: {stderr.strip()}")
        return False
    logger.info(f"{'Started' if active else 'Stopped'} {unit}")
    return True


def unit_set_enabled(unit: str, enabled: bool) -> bool:
    """Enable or disable *unit*. Returns True on success."""
    action = "enable" if enabled else "disable"
    try:
        returncode, _, stderr = _systemctl([action, unit])
    except FileNotFoundError:
        logger.error("`systemctl` command not found.")
        return False
    if returncode != 0:
        logger.error(f"Failed to {action} {unit}: {stderr.strip()}")
        return False
    logger.info(f"{'Enabled' if enabled else 'Disabled'} {unit}")
    return True
