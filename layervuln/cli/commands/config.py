"""CLI commands for the scanner config artifact."""

from __future__ import annotations

import click

from layervuln.cli.output import console
from layervuln.core.exceptions import ConfigIOError


@click.group("config")
def config_cmd() -> None:
    """Manage the scanner's config artifact."""


def _guard():
    from layervuln.core.config import get_settings
    from layervuln.core.config_guard import CredentialConfigGuard

    return CredentialConfigGuard.from_settings(get_settings())


@config_cmd.command("init")
def config_init() -> None:
    """Create the scanner config artifact if it does not exist."""
    guard = _guard()
    try:
        guard.ensure_config()
    except ConfigIOError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)
    console.print(f"[green]Scanner config ready:[/green] {guard.config_path}")


@config_cmd.command("show")
def config_show() -> None:
    """Print the scanner config (registry credentials are never shown)."""
    guard = _guard()
    try:
        config = guard.read_config()
    except ConfigIOError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        console.print("[dim]Run `lvuln config init` to create it.[/dim]")
        raise SystemExit(1)

    console.print(f"[dim]# {guard.config_path}[/dim]")
    click.echo(config.to_yaml(include_secrets=False))
    if config.registry.auth:
        console.print(
            f"[yellow]{len(config.registry.auth)} registry credential entr"
            f"{'y' if len(config.registry.auth) == 1 else 'ies'} present (values hidden).[/yellow]"
        )
