"""Rich output helpers — tables and status display."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from layervuln.package_managers.base import BasePackageManager
from layervuln.schemas.layers import LayerVulnerability, ResolvedPackage

console = Console()


def severity_style(severity: str) -> str:
    return {
        "critical": "bold red",
        "high": "red",
        "medium": "yellow",
        "low": "cyan",
        "negligible": "dim",
        "unknown": "dim",
    }.get(severity.lower(), "white")


def short_digest(digest: str, length: int = 19) -> str:
    if not digest:
        return "—"
    return digest if len(digest) <= length else digest[:length] + "…"


def layers_table(layers: list[LayerVulnerability]) -> Table:
    table = Table(
        title=f"Layers ({len(layers)})",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Layer", no_wrap=True)
    table.add_column("Parent", style="dim", no_wrap=True)
    table.add_column("Vulnerabilities", justify="right")
    table.add_column("Packages w/ files", justify="right")

    for i, layer in enumerate(layers):
        count = len(layer.vulnerabilities)
        count_text = Text(str(count), style="red" if count else "dim")
        table.add_row(
            str(i),
            short_digest(layer.layer_hash),
            short_digest(layer.parent_layer_hash),
            count_text,
            str(len(layer.packages)) if layer.packages else "—",
        )
    return table


def vulnerabilities_table(layers: list[LayerVulnerability]) -> Table:
    total = sum(len(layer.vulnerabilities) for layer in layers)
    table = Table(
        title=f"Vulnerabilities ({total})",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Package")
    table.add_column("Version", style="dim")
    table.add_column("Fix")
    table.add_column("Layer", style="dim", no_wrap=True)

    for layer in layers:
        for vuln in layer.vulnerabilities:
            fix = vuln.fixes[0] if vuln.fixes else None
            fix_str = "—"
            if fix is not None:
                fix_str = f"{fix.version} ({fix.name})" if fix.version else fix.name or "—"
            table.add_row(
                vuln.name,
                Text(vuln.severity or "?", style=severity_style(vuln.severity or "")),
                vuln.package_name,
                vuln.package_version,
                fix_str,
                short_digest(layer.layer_hash),
            )
    return table


def packages_table(packages: dict[str, ResolvedPackage], max_files: int = 5) -> Table:
    table = Table(
        title=f"Resolved packages ({len(packages)})",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Package", style="bold")
    table.add_column("Files", justify="right")
    table.add_column("Sample")

    for name, package in sorted(packages.items()):
        sample = ", ".join(f.filename for f in package.files[:max_files])
        if len(package.files) > max_files:
            sample += f" +{len(package.files) - max_files}"
        table.add_row(name, str(len(package.files)), sample)
    return table


def package_managers_table(managers: dict[str, type[BasePackageManager]]) -> Table:
    table = Table(
        title=f"Available package managers ({len(managers)})",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Name", style="bold")
    table.add_column("Display name")
    table.add_column("Package types")
    table.add_column("Description")

    for name, cls in sorted(managers.items()):
        table.add_row(
            name,
            cls.metadata.display_name,
            ", ".join(cls.metadata.package_types),
            cls.metadata.description,
        )
    return table
