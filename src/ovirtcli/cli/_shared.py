"""Shared helpers for the VM and disk command modules."""

from pathlib import Path
from typing import Any, Coroutine, TypeVar

import typer
import yaml
from pydantic import BaseModel, ValidationError
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api.exceptions import OvirtCliError
from ..config import Config, ConfigManager
from ..utils import confirm, console, print_cancelled, print_error

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def load_manifest(path: Path, model: type[M]) -> M:
    """Load a YAML manifest and validate it into ``model``.

    Exits with status 1 on unreadable or invalid manifests.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        print_error(f"Cannot read manifest {path}: {e}")
        raise typer.Exit(1)
    except yaml.YAMLError as e:
        print_error(f"Invalid YAML in {path}: {e}")
        raise typer.Exit(1)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        print_error(f"Invalid manifest {path}:\n{e}")
        raise typer.Exit(1)


def load_config(config_manager: ConfigManager) -> Config:
    """Load the configuration, exiting with status 1 on failure."""
    try:
        return config_manager.get()
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


def output_format(config: Config, override: str | None) -> str:
    """Pick the output format: the --output option wins over the config."""
    fmt = override or config.output.format
    if fmt not in ("table", "json", "yaml"):
        print_error(f"Unknown output format '{fmt}' (expected table, json or yaml)")
        raise typer.Exit(1)
    return fmt


async def run_with_spinner(action_desc: str, coro: Coroutine[Any, Any, T]) -> T:
    """Await a coroutine behind a Progress spinner.

    Args:
        action_desc: Spinner description (e.g. "Creating VM web1...")
        coro: Coroutine to await

    Returns:
        The coroutine's result
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description=action_desc, total=None)
        return await coro


def confirm_action(message: str, config: Config, yes: bool) -> bool:
    """Ask for confirmation of a destructive action unless skipped.

    Returns:
        True if the action should proceed
    """
    if yes or not config.output.confirm_destructive:
        return True
    if not confirm(message):
        print_cancelled()
        return False
    return True
