"""CLI commands for package managers and package-file resolution."""

from __future__ import annotations

import json
from pathlib import Path

import click

from layervuln.cli.output import console, package_managers_table, packages_table
from layervuln.core.exceptions import LayerVulnError


@click.group("packages")
def packages_cmd() -> None:
    """Inspect package managers and resolve package files."""


@packages_cmd.command("managers")
def packages_managers() -> None:
    """List all available package managers."""
    from layervuln.core.registry import get_registry

    console.print(package_managers_table(get_registry().all()))


@packages_cmd.command("resolve")
@click.argument("report", type=click.File("rb"))
@click.option(
    "--root",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Extracted image filesystem holding the package database",
)
@click.option("--manager", default=None, help="Package manager slug (auto-detected when omitted)")
@click.option("--layer", default="", help="Only resolve packages matched in this layer digest")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the mapping as JSON")
def packages_resolve(report, root: Path, manager: str | None, layer: str, as_json: bool) -> None:
    """Resolve the files owned by every package matched in a grype JSON REPORT."""
    from layervuln.core.config import get_settings
    from layervuln.core.registry import get_registry
    from layervuln.core.resolver import resolve_package_files
    from layervuln.schemas.report import decode_report

    registry = get_registry()
    if manager:
        try:
            package_manager = registry.create(manager, root)
        except KeyError as exc:
            raise click.BadParameter(str(exc.args[0]), param_hint="--manager")
    else:
        package_manager = registry.detect(root)
        if package_manager is None:
            console.print(f"[red]No known package database under {root}.[/red] Use --manager.")
            raise SystemExit(1)

    try:
        scan_report = decode_report(report.read())
    except LayerVulnError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    resolved = resolve_package_files(
        layer, scan_report, package_manager, remap=get_settings().package_remap
    )

    if as_json:
        click.echo(
            json.dumps({name: pkg.model_dump(by_alias=True) for name, pkg in resolved.items()}, indent=2)
        )
        return
    console.print(f"[dim]Package manager:[/dim] {package_manager.get_type()}  [dim]root:[/dim] {root}")
    console.print(packages_table(resolved))
