"""CLI commands for running scans and attributing existing reports."""

from __future__ import annotations

import json
from pathlib import Path

import click

from layervuln.cli.output import console, layers_table, vulnerabilities_table
from layervuln.core.attribution import attribute
from layervuln.core.exceptions import ConfigIOError, ExecutionError, LayerVulnError
from layervuln.schemas.layers import LayerVulnerability, dump_layers
from layervuln.schemas.report import decode_report
from layervuln.schemas.scan import ScanCredentials


@click.group("scan")
def scan_cmd() -> None:
    """Image scanning operations."""


@scan_cmd.command("run")
@click.argument("image")
@click.option("--username", envvar="REGISTRY_USERNAME", default="", help="Registry username")
@click.option(
    "--password",
    envvar="REGISTRY_PASSWORD",
    default="",
    help="Registry password (prefer the REGISTRY_PASSWORD env var)",
)
@click.option("--manager", default=None, help="Package manager slug for file resolution (e.g. dpkg)")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Extracted image filesystem used for package file resolution",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the layer chain as JSON")
def scan_run(
    image: str,
    username: str,
    password: str,
    manager: str | None,
    root: Path | None,
    as_json: bool,
) -> None:
    """Scan IMAGE with grype and attribute its vulnerabilities to layers.

    Example:

        lvuln scan run registry.local/app:1.2 --username ci --root ./rootfs
    """
    from layervuln.core.orchestrator import ScanOrchestrator
    from layervuln.core.registry import get_registry

    if bool(username) != bool(password):
        missing = "--password" if username else "--username"
        raise click.BadParameter(
            "--username and --password must be given together", param_hint=missing
        )

    credentials = None
    if username and password:
        credentials = ScanCredentials(username=username, password=password)

    package_manager = None
    if root is not None:
        registry = get_registry()
        if manager:
            try:
                package_manager = registry.create(manager, root)
            except KeyError as exc:
                raise click.BadParameter(str(exc.args[0]), param_hint="--manager")
        else:
            package_manager = registry.detect(root)
            if package_manager is None:
                console.print(f"[yellow]No known package database under {root}; skipping file resolution.[/yellow]")
    elif manager:
        raise click.BadParameter("--manager requires --root", param_hint="--manager")

    orchestrator = ScanOrchestrator.from_settings()
    try:
        if not as_json:
            with console.status(f"[dim]Scanning {image}…[/dim]"):
                layers = orchestrator.run_scan(image, credentials, package_manager)
        else:
            layers = orchestrator.run_scan(image, credentials, package_manager)
    except ExecutionError as exc:
        console.print(f"[red]Scanner failed:[/red] {exc}")
        if exc.stderr:
            console.print(f"[dim]{exc.stderr.strip()}[/dim]")
        raise SystemExit(1)
    except ConfigIOError as exc:
        console.print(f"[bold red]Scanner config error:[/bold red] {exc}")
        if credentials is not None:
            console.print(
                f"[red]Check {orchestrator.guard.config_path} for leftover registry credentials.[/red]"
            )
        raise SystemExit(2)
    except LayerVulnError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    _print_layers(image, layers, as_json)


@scan_cmd.command("attribute")
@click.argument("report", type=click.File("rb"))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the layer chain as JSON")
def scan_attribute(report, as_json: bool) -> None:
    """Attribute the vulnerabilities of an existing grype JSON REPORT to layers ('-' reads stdin)."""
    try:
        scan_report = decode_report(report.read())
        layers = attribute(scan_report)
    except LayerVulnError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    target = scan_report.image_target()
    _print_layers(target.user_input if target else report.name, layers, as_json)


def _print_layers(image: str, layers: list[LayerVulnerability], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(dump_layers(layers), indent=2))
        return
    if not layers:
        console.print(f"[yellow]{image}: report has no image layers to attribute.[/yellow]")
        return
    console.rule(f"[bold cyan]{image}")
    console.print(layers_table(layers))
    console.print(vulnerabilities_table(layers))
