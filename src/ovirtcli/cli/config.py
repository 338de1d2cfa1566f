"""Configuration management commands for ovirtcli."""

from getpass import getpass

import typer
from pydantic import ValidationError
from rich.panel import Panel

from ..api.client import OvirtClient
from ..api.exceptions import OvirtCliError
from ..config import AuthConfig, ConfigManager, ProfileConfig
from ..utils import (
    confirm,
    console,
    create_table,
    print_cancelled,
    print_error,
    print_info,
    print_success,
)
from ..utils.helpers import async_to_sync, ordered_group

app = typer.Typer(
    help="Manage ovirtcli configuration",
    no_args_is_help=True,
    cls=ordered_group(["add", "list", "show", "use", "test", "remove"]),
)


def _render_profile_panel(name: str, profile: ProfileConfig, is_default: bool = False) -> Panel:
    """Build a Rich Panel for a profile."""
    lines = []
    lines.append("[bold]── Connection ──[/bold]")
    lines.append(f"[bold]Host:[/bold]        {profile.host}:{profile.port}")
    lines.append(f"[bold]Auth:[/bold]        {profile.auth.type}")
    if profile.auth.user:
        lines.append(f"[bold]User:[/bold]        {profile.auth.user}")
    lines.append(f"[bold]SSL:[/bold]         {'Yes' if profile.verify_ssl else 'No'}")
    if profile.ca_file:
        lines.append(f"[bold]CA file:[/bold]     {profile.ca_file}")
    lines.append(f"[bold]Timeout:[/bold]     {profile.timeout}s")

    if is_default:
        lines.append("")
        lines.append("[green]Default profile[/green]")

    return Panel("\n".join(lines), title=f"Profile: {name}", border_style="blue")


# ── config add ───────────────────────────────────────────────────────────


@app.command("add")
def add_profile(
    name: str = typer.Argument(..., help="Profile name"),
    host: str = typer.Option(..., "--host", "-H", help="Engine host (IP or hostname)"),
    port: int = typer.Option(443, "--port", help="Engine HTTPS port"),
    user: str = typer.Option(None, "--user", "-u", help="Username (e.g., admin@internal)"),
    password: str = typer.Option(None, "--password", help="Password (prompted if --user is given without it)"),
    token: str = typer.Option(None, "--token", help="Pre-issued SSO access token"),
    verify_ssl: bool = typer.Option(True, "--verify-ssl/--no-verify-ssl", help="Verify the engine certificate"),
    ca_file: str = typer.Option(None, "--ca-file", help="CA bundle for the engine certificate"),
    timeout: int = typer.Option(30, "--timeout", help="Request timeout in seconds"),
    default: bool = typer.Option(False, "--default", help="Make this the default profile"),
) -> None:
    """Add or replace a profile."""
    config_manager = ConfigManager()

    if token and (user or password):
        print_error("Use either --token or --user/--password, not both")
        raise typer.Exit(1)
    if not token and not user:
        print_error("Either --token or --user is required")
        raise typer.Exit(1)
    if user and not password:
        password = getpass("Password: ")

    try:
        if token:
            auth = AuthConfig(type="token", token=token)
        else:
            auth = AuthConfig(type="password", user=user, password=password)
        profile = ProfileConfig(
            host=host,
            port=port,
            verify_ssl=verify_ssl,
            ca_file=ca_file,
            auth=auth,
            timeout=timeout,
        )
    except ValidationError as e:
        print_error(f"Invalid profile:\n{e}")
        raise typer.Exit(1)

    try:
        config_manager.add_profile(name, profile)
        if default:
            config_manager.set_default_profile(name)
        is_default = config_manager.get().default_profile == name
        print_success(f"Profile '{name}' added" + (" (set as default)" if is_default else ""))
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── config list / show ───────────────────────────────────────────────────


@app.command("list")
def list_profiles() -> None:
    """List configured profiles."""
    config_manager = ConfigManager()

    if not config_manager.exists():
        print_info("No configuration found. Run 'ovirtcli config add' first.")
        return

    try:
        config = config_manager.get()
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not config.profiles:
        print_info("No profiles configured. Run 'ovirtcli config add' to create one.")
        return

    table = create_table(
        columns=[
            ("Name", "bold"),
            ("Host", "cyan"),
            ("Auth", ""),
            ("Verify SSL", ""),
            ("Default", "green"),
        ]
    )
    for name in sorted(config.profiles):
        profile = config.profiles[name]
        table.add_row(
            name,
            f"{profile.host}:{profile.port}",
            profile.auth.type,
            "Yes" if profile.verify_ssl else "No",
            "*" if name == config.default_profile else "",
        )
    console.print(table)


@app.command("show")
def show_profile(
    name: str = typer.Argument(None, help="Profile name (default profile if omitted)"),
) -> None:
    """Show a profile."""
    config_manager = ConfigManager()

    try:
        profile = config_manager.get_profile(name)
        config = config_manager.get()
        name = name or config.default_profile
        console.print(_render_profile_panel(name, profile, name == config.default_profile))
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── config use ───────────────────────────────────────────────────────────


@app.command("use")
def use_profile(name: str = typer.Argument(..., help="Profile name")) -> None:
    """Set the default profile."""
    config_manager = ConfigManager()

    try:
        config_manager.set_default_profile(name)
        print_success(f"Default profile set to '{name}'")
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── config test ──────────────────────────────────────────────────────────


@app.command("test")
@async_to_sync
async def test_profile(
    name: str = typer.Argument(None, help="Profile name (default profile if omitted)"),
) -> None:
    """Test the connection to the engine of a profile."""
    config_manager = ConfigManager()

    try:
        profile = config_manager.get_profile(name)
        async with OvirtClient(profile) as client:
            info = await client.get_api_info()
        product = (info or {}).get("product_info", {})
        version = product.get("version", {}).get("full_version", "unknown version")
        print_success(f"Connected to {product.get('name', 'oVirt engine')} {version}")
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)


# ── config remove ────────────────────────────────────────────────────────


@app.command("remove")
def remove_profile(
    name: str = typer.Argument(..., help="Profile name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove a profile."""
    config_manager = ConfigManager()

    try:
        if not yes and not confirm(f"Remove profile '{name}'?", default=False):
            print_cancelled()
            return
        config_manager.remove_profile(name)
        print_success(f"Profile '{name}' removed")
    except OvirtCliError as e:
        print_error(str(e))
        raise typer.Exit(1)
