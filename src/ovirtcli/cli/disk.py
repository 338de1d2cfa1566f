"""Disk management commands."""

from pathlib import Path

import typer

from ..api.client import OvirtClient
from ..api.exceptions import OvirtCliError
from ..config import ConfigManager
from ..lifecycle import DiskManager
from ..models.disk import DiskSpec
from ..utils import (
    console,
    create_table,
    format_bytes,
    print_data,
    print_error,
    print_info,
    print_success,
)
from ..utils.helpers import async_to_sync, ordered_group
from ._shared import confirm_action, load_config, load_manifest, output_format, run_with_spinner

app = typer.Typer(
    help="Manage disks", no_args_is_help=True, cls=ordered_group(["create", "show", "remove"])
)


@app.command("create")
@async_to_sync
async def create_disk(
    manifest: Path = typer.Argument(..., help="YAML file describing the disk", exists=True, dir_okay=False),
    wait: bool = typer.Option(False, "--wait", "-w", help="Wait until the disk is provisioned"),
    timeout: int = typer.Option(300, "--timeout", help="Maximum wait time in seconds"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
) -> None:
    """Create a floating disk."""
    config_manager = ConfigManager()
    config = load_config(config_manager)
    spec = load_manifest(manifest, DiskSpec)

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            disks = DiskManager(client, settings=config.lifecycle)
            disk_id = await run_with_spinner(
                f"Creating disk {spec.name}...", disks.create(spec, wait=wait, timeout=timeout)
            )

        print_success(f"Disk '{spec.name}' created ({disk_id})")

    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("show")
@async_to_sync
async def show_disk(
    disk_id: str = typer.Argument(..., help="Disk ID"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
    output: str = typer.Option(None, "--output", "-o", help="Output format: table, json or yaml"),
) -> None:
    """Show a disk."""
    config_manager = ConfigManager()
    config = load_config(config_manager)
    fmt = output_format(config, output)

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            spec = await DiskManager(client, settings=config.lifecycle).read(disk_id)

        if spec is None:
            print_error(f"Disk {disk_id} not found")
            raise typer.Exit(1)

        if fmt != "table":
            print_data({"id": disk_id, **spec.model_dump(mode="json")}, fmt)
            return

        table = create_table(columns=[("Property", "bold"), ("Value", "")])
        table.add_row("ID", disk_id)
        table.add_row("Name", spec.name)
        table.add_row("Size", format_bytes(spec.size))
        table.add_row("Format", spec.format.value)
        table.add_row("Storage domain", spec.storage_domain_id or "-")
        table.add_row("Bootable", "Yes" if spec.bootable else "No")
        table.add_row("Shareable", "Yes" if spec.shareable else "No")
        table.add_row("Sparse", "Yes" if spec.sparse else "No")
        console.print(table)

    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("remove")
@async_to_sync
async def remove_disk(
    disk_id: str = typer.Argument(..., help="Disk ID"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a disk and its data."""
    config_manager = ConfigManager()
    config = load_config(config_manager)

    if not confirm_action(f"Delete disk {disk_id} and its data?", config, yes):
        return

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            disks = DiskManager(client, settings=config.lifecycle)
            if await disks.read(disk_id) is None:
                print_info(f"Disk {disk_id} does not exist, nothing to remove")
                return
            await disks.delete(disk_id)

        print_success(f"Disk {disk_id} removed")

    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)
