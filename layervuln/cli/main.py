"""layervuln CLI entry point — `lvuln` command group."""

from __future__ import annotations

import sys

import click

from layervuln.cli.commands.config import config_cmd
from layervuln.cli.commands.packages import packages_cmd
from layervuln.cli.commands.scan import scan_cmd
from layervuln.core.logging import configure_logging


@click.group()
@click.version_option(package_name="layervuln")
def cli() -> None:
    """layervuln — layer-attributed container image vulnerability scanning.

    \b
    Quick start:
      lvuln config init
      lvuln scan run alpine:3.19
      lvuln scan attribute grype-report.json
      lvuln packages resolve grype-report.json --root ./rootfs
    """
    configure_logging(force=True, stream=sys.stderr)


# Register sub-commands
cli.add_command(scan_cmd)
cli.add_command(packages_cmd)
cli.add_command(config_cmd)


@cli.command("serve")
@click.option("--host", default=None, help="Bind host (defaults to APP_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to APP_PORT)")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload (dev mode)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the layervuln API server."""
    import uvicorn

    from layervuln.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "layervuln.api.app:app",
        host=host or settings.app_host,
        port=port or settings.app_port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    cli()
