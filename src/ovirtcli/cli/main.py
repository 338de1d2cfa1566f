"""Main CLI application."""

import typer
from rich.console import Console

from .. import __version__
from ..utils.logging import configure_logging
from . import config, disk, vm

console = Console()

app = typer.Typer(
    name="ovirtcli",
    help="VM lifecycle CLI for the oVirt engine API",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(config.app, name="config")
app.add_typer(vm.app, name="vm")
app.add_typer(disk.app, name="disk")


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: Whether version flag was set
    """
    if value:
        console.print(f"ovirtcli version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log lifecycle steps and retries"),
) -> None:
    """ovirtcli - VM lifecycle CLI for the oVirt engine API.

    Create VMs from YAML manifests, wire up their disks and NICs, and tear
    them down again without losing data disks.

    Get started:
        ovirtcli config add prod --host engine.example.com --user admin@internal
        ovirtcli vm create web1.yaml
        ovirtcli --help         # Show all available commands
    """
    configure_logging(verbose)


if __name__ == "__main__":
    app()
