"""VM lifecycle commands."""

from pathlib import Path
from typing import Any

import typer
from rich.panel import Panel

from ..api.client import OvirtClient
from ..api.exceptions import LifecycleError, OvirtCliError
from ..config import ConfigManager
from ..lifecycle import CreateResult, DeleteState, VmOrchestrator
from ..models.desired import BootDiskVmDesiredState, VmDesiredState
from ..utils import (
    console,
    create_table,
    print_data,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from ..utils.helpers import async_to_sync, ordered_group
from ._shared import confirm_action, load_config, load_manifest, output_format, run_with_spinner

_CMD_ORDER = ["create", "show", "update", "remove"]

app = typer.Typer(help="Manage virtual machines", no_args_is_help=True, cls=ordered_group(_CMD_ORDER))


def _state_data(vm_id: str, state: VmDesiredState) -> dict[str, Any]:
    return {"id": vm_id, **state.model_dump(mode="json", exclude_none=True)}


def _print_state(vm_id: str, state: VmDesiredState, fmt: str) -> None:
    """Render a VM desired state as a panel plus NIC and disk tables, or as data."""
    if fmt != "table":
        print_data(_state_data(vm_id, state), fmt)
        return

    lines = []
    lines.append("[bold]── General ──[/bold]")
    lines.append(f"[bold]ID:[/bold]          {vm_id}")
    lines.append(f"[bold]Cluster:[/bold]     {state.cluster}")
    lines.append(f"[bold]Template:[/bold]    {state.template}")
    lines.append("")
    lines.append("[bold]── Resources ──[/bold]")
    lines.append(
        f"[bold]CPU:[/bold]         {state.sockets} socket(s) x {state.cores} core(s) "
        f"x {state.threads} thread(s)"
    )
    if state.memory:
        lines.append(f"[bold]Memory:[/bold]      {state.memory} MiB")
    if state.authorized_ssh_key:
        lines.append(f"[bold]SSH key:[/bold]     {state.authorized_ssh_key[:40]}...")
    console.print(Panel("\n".join(lines), title=f"VM: {state.name}", border_style="blue"))

    if state.network_interfaces:
        table = create_table(
            title="Network interfaces",
            columns=[
                ("Label", "bold"),
                ("Boot protocol", "cyan"),
                ("IP address", ""),
                ("Netmask", ""),
                ("Gateway", ""),
                ("On boot", ""),
            ],
        )
        for nic in state.network_interfaces:
            table.add_row(
                nic.label or "-",
                nic.boot_protocol.value,
                nic.ip_address or "-",
                nic.subnet_mask or "-",
                nic.gateway or "-",
                "Yes" if nic.on_boot else "No",
            )
        console.print(table)

    if state.disk_attachments:
        table = create_table(
            title="Disk attachments",
            columns=[
                ("Disk", "bold"),
                ("Interface", "cyan"),
                ("Bootable", ""),
                ("Active", ""),
                ("Read only", ""),
                ("Logical name", ""),
            ],
        )
        for disk in state.disk_attachments:
            table.add_row(
                disk.disk_id,
                disk.interface.value,
                "Yes" if disk.bootable else "No",
                "Yes" if disk.active else "No",
                "Yes" if disk.read_only else "No",
                disk.logical_name or "-",
            )
        console.print(table)


def _print_lifecycle_error(e: LifecycleError) -> None:
    print_error(str(e))
    if e.vm_id:
        print_warning(f"VM {e.vm_id} was left on the engine and may need manual cleanup")


@app.command("create")
@async_to_sync
async def create_vm(
    manifest: Path = typer.Argument(..., help="YAML file describing the VM", exists=True, dir_okay=False),
    boot_disk: bool = typer.Option(False, "--require-boot-disk", help="Require at least one disk attachment"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
    output: str = typer.Option(None, "--output", "-o", help="Output format: table, json or yaml"),
) -> None:
    """Create a VM, attach its disks, add its NICs and start it."""
    config_manager = ConfigManager()
    config = load_config(config_manager)
    fmt = output_format(config, output)
    desired = load_manifest(manifest, BootDiskVmDesiredState if boot_disk else VmDesiredState)

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            orchestrator = VmOrchestrator(client, settings=config.lifecycle)
            result: CreateResult = await run_with_spinner(
                f"Creating VM {desired.name}...", orchestrator.create(desired)
            )

        for error in result.nic_errors:
            print_warning(str(error))
        print_success(f"VM '{desired.name}' created and started ({result.vm_id})")
        _print_state(result.vm_id, result.state, fmt)

        if result.nic_errors:
            raise typer.Exit(2)

    except LifecycleError as e:
        _print_lifecycle_error(e)
        raise typer.Exit(1)
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("show")
@async_to_sync
async def show_vm(
    vm_id: str = typer.Argument(..., help="VM ID"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
    output: str = typer.Option(None, "--output", "-o", help="Output format: table, json or yaml"),
) -> None:
    """Show a VM in the shape of a create manifest."""
    config_manager = ConfigManager()
    config = load_config(config_manager)
    fmt = output_format(config, output)

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            state = await VmOrchestrator(client, settings=config.lifecycle).read(vm_id)

        if state is None:
            print_error(f"VM {vm_id} not found")
            raise typer.Exit(1)
        _print_state(vm_id, state, fmt)

    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("update")
@async_to_sync
async def update_vm(
    vm_id: str = typer.Argument(..., help="VM ID"),
    manifest: Path = typer.Argument(..., help="YAML file describing the VM", exists=True, dir_okay=False),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
) -> None:
    """Update a VM in place (not supported; remove and create instead)."""
    config_manager = ConfigManager()
    config = load_config(config_manager)
    desired = load_manifest(manifest, VmDesiredState)

    try:
        profile_config = config_manager.get_profile(profile)
        async with OvirtClient(profile_config) as client:
            await VmOrchestrator(client, settings=config.lifecycle).update(vm_id, desired)
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command("remove")
@async_to_sync
async def remove_vm(
    vm_id: str = typer.Argument(..., help="VM ID"),
    profile: str = typer.Option(None, "--profile", "-p", help="Profile to use"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Shut a VM down and remove it. Its disks are detached, not deleted."""
    config_manager = ConfigManager()
    config = load_config(config_manager)

    if not confirm_action(f"Remove VM {vm_id}?", config, yes):
        return

    try:
        profile_config = config_manager.get_profile(profile)

        async with OvirtClient(profile_config) as client:
            orchestrator = VmOrchestrator(client, settings=config.lifecycle)
            final = await run_with_spinner(f"Removing VM {vm_id}...", orchestrator.delete(vm_id))

        if final == DeleteState.NOT_FOUND:
            print_info(f"VM {vm_id} does not exist, nothing to remove")
        else:
            print_success(f"VM {vm_id} removed")

    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)
