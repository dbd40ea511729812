"""
Home directory substitution for displaying mountpoints.

``/home/user/OneDrive`` is shown as ``~/OneDrive`` and turned back into an
absolute path when the user picks it.
"""

from typing import Optional

from onedriver_launcher.platform import home_dir


def abbreviate_home(path: str, home: Optional[str] = None) -> str:
    """Replace a leading home directory in *path* with ``~``."""
    home = (home if home is not None else home_dir()).rstrip("/")
    if not home:
        return path
    if path == home or path.startswith(home + "/"):
        return "~" + path[len(home) :]
    return path


def expand_home(path: str, home: Optional[str] = None) -> str:
    """Replace the leading ``~`` of *path* with the home directory.

    Absolute paths come back unchanged and an empty path stays empty. The
    first character is always taken as the ``~``, so ``~foo`` becomes
    ``/home/userfoo``. Only ``~`` and ``~/...`` map back through
    :func:`abbreviate_home`.
    """
    if not path or path.startswith("/"):
        return path
    home = (home if home is not None else home_dir()).rstrip("/")
    return home + path[1:]
