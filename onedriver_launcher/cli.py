"""
Command-line interface for the onedriver launcher helpers.

This module exposes the mountpoint helpers used by the launcher GUI as
commands, which is handy for scripting and for checking a setup by hand.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from onedriver_launcher import __version__
from onedriver_launcher.config import OnedriverConfig
from onedriver_launcher.mounts import (
    MountStatus,
    is_valid_mountpoint,
    list_known_mounts,
    read_account_name,
    wait_until_ready,
)
from onedriver_launcher.paths import abbreviate_home, expand_home
from onedriver_launcher.systemd import (
    mount_unit_name,
    unit_is_active,
    unit_is_enabled,
    unit_set_active,
    unit_set_enabled,
)

# Set up the console and logger
console = Console()
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger("onedriver_launcher")

app = typer.Typer(
    help="Helpers for managing onedriver mountpoints.",
    add_completion=False,
)


class State:
    """Options shared by every command."""

    config: OnedriverConfig = OnedriverConfig()


state = State()


def log_error(message: str) -> None:
    """Log an error message to both logger and console."""
    logger.error(message)
    console.print(f"[red]{message}[/red]")
    return None


def describe_mount(mountpoint: str) -> Dict[str, Any]:
    """Collect what the launcher shows for one mountpoint."""
    unit_name = mount_unit_name(mountpoint)
    account: Optional[str] = None
    if unit_is_active(unit_name):
        try:
            account = read_account_name(mountpoint)
        except OSError:
            account = None
    return {
        "mountpoint": mountpoint,
        "display": abbreviate_home(mountpoint),
        "account": account,
        "unit": unit_name,
        "enabled": unit_is_enabled(unit_name),
    }


@app.callback()
def callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output."
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to onedriver's config.yml. Defaults to ~/.config/onedriver.",
    ),
) -> None:
    """
    onedriver-launcher: find, check, and wait for onedriver mounts.
    """
    state.config = OnedriverConfig.load(config)

    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")
    else:
        level = state.config.log_level()
        if level is not None:
            logger.setLevel(level)


@app.command()
def mounts(
    as_json: bool = typer.Option(False, "--json", help="Print mounts as JSON."),
) -> None:
    """List the mountpoints onedriver has been set up for."""
    cache_dir = state.config.resolved_cache_dir()
    logger.debug(f"Looking for mounts in {cache_dir}")
    found: List[Dict[str, Any]] = [
        describe_mount(m) for m in list_known_mounts(cache_dir)
    ]

    if as_json:
        typer.echo(orjson.dumps(found, option=orjson.OPT_INDENT_2).decode())
        return

    if not found:
        console.print("No mounts configured yet.")
        return

    table = Table(title="onedriver mounts")
    table.add_column("Mountpoint", style="cyan")
    table.add_column("Account")
    table.add_column("Unit", style="dim")
    table.add_column("On login")
    for mount in found:
        table.add_row(
            mount["display"],
            mount["account"] or "-",
            mount["unit"],
            "yes" if mount["enabled"] else "no",
        )
    console.print(table)


@app.command()
def wait(
    mountpoint: str = typer.Argument(..., help="Mountpoint to wait for."),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait (default 120)."
    ),
) -> None:
    """Wait for a mount to come up."""
    status = wait_until_ready(expand_home(mountpoint), timeout=timeout)
    typer.echo(status.value)
    if status is not MountStatus.READY:
        raise typer.Exit(1)


@app.command()
def account(
    mountpoint: str = typer.Argument(..., help="Mountpoint of a running mount."),
) -> None:
    """Print the account name of a running mount."""
    try:
        name = read_account_name(expand_home(mountpoint))
    except OSError:
        log_error(f"{mountpoint} is not a running onedriver mount")
        raise typer.Exit(1)

    if name is None:
        log_error(f"No account name found for {mountpoint}")
        raise typer.Exit(1)
    typer.echo(name)


@app.command()
def check(
    mountpoint: str = typer.Argument(..., help="Directory to check."),
) -> None:
    """Check that a directory can be used as a new mountpoint."""
    if not is_valid_mountpoint(expand_home(mountpoint)):
        log_error(f"{mountpoint} must be an existing, empty directory")
        raise typer.Exit(1)
    typer.echo(f"{mountpoint} is a valid mountpoint")


@app.command()
def start(
    mountpoint: str = typer.Argument(..., help="Mountpoint to mount on."),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for the mount (default 120)."
    ),
) -> None:
    """Start the onedriver unit for a mountpoint and wait for it."""
    path = expand_home(mountpoint)
    unit_name = mount_unit_name(path)
    if not unit_is_active(unit_name) and not is_valid_mountpoint(path):
        log_error(f"{mountpoint} must be an existing, empty directory")
        raise typer.Exit(1)

    if not unit_set_active(unit_name, True):
        log_error(f"Could not start {unit_name}")
        raise typer.Exit(1)

    status = wait_until_ready(path, timeout=timeout)
    typer.echo(status.value)
    if status is not MountStatus.READY:
        raise typer.Exit(1)


@app.command()
def stop(
    mountpoint: str = typer.Argument(..., help="Mountpoint to unmount."),
) -> None:
    """Stop the onedriver unit for a mountpoint."""
    unit_name = mount_unit_name(expand_home(mountpoint))
    if not unit_set_active(unit_name, False):
        log_error(f"Could not stop {unit_name}")
        raise typer.Exit(1)


@app.command()
def enable(
    mountpoint: str = typer.Argument(..., help="Mountpoint to mount on login."),
    disable: bool = typer.Option(
        False, "--disable", help="Stop mounting on login instead."
    ),
) -> None:
    """Mount a mountpoint automatically on login."""
    unit_name = mount_unit_name(expand_home(mountpoint))
    if not unit_set_enabled(unit_name, not disable):
        log_error(f"Could not change {unit_name}")
        raise typer.Exit(1)


@app.command()
def abbreviate(path: str = typer.Argument(..., help="Absolute path.")) -> None:
    """Show a path with the home directory replaced by ~."""
    typer.echo(abbreviate_home(path))


@app.command()
def expand(path: str = typer.Argument(..., help="Path starting with ~.")) -> None:
    """Show a ~ path as an absolute path."""
    typer.echo(expand_home(path))


@app.command()
def unit(
    mountpoint: str = typer.Argument(..., help="Mountpoint to name the unit for."),
) -> None:
    """Print the systemd unit that serves a mountpoint."""
    typer.echo(mount_unit_name(expand_home(mountpoint)))


@app.command()
def version() -> None:
    """Show the application version and exit."""
    console.print(f"onedriver-launcher version: {__version__}")


if __name__ == "__main__":
    app()
