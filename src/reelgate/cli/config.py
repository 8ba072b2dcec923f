"""Configuration CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from reelgate.cli.ui import console
from reelgate.config import effective_video_provider_mode, settings


def _configured(value: str | None) -> str:
    return "[green]set[/green]" if value else "[grey62]unset[/grey62]"


@click.group()
def config() -> None:
    """Inspect configuration."""


@config.command("show")
def config_show() -> None:
    """Show key configuration settings (secrets are never printed)."""
    table = Table(title="Reelgate Configuration", show_lines=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Environment", settings.environment)
    table.add_row("Provider Mode", effective_video_provider_mode(settings))
    table.add_row("Kling API Key", _configured(settings.kling_api_key))
    table.add_row("Kling O1 API Key", _configured(settings.kling_o1_api_key or settings.kling_api_key))
    table.add_row("Vidu API Key", _configured(settings.vidu_api_key))
    table.add_row("Doubao API Key", _configured(settings.doubao_api_key))
    table.add_row("Storage Backend", settings.storage_backend)
    if settings.storage_backend == "s3":
        table.add_row("S3 Bucket", settings.storage_s3_bucket or "-")
        table.add_row("CDN Host", settings.storage_cdn_host or "-")
    else:
        table.add_row("Local Dir", str(settings.storage_local_dir))
        table.add_row("Public Base URL", settings.storage_public_base_url)
    table.add_row("Relocation Policy", settings.relocation_host_policy)
    table.add_row("Extra Allowed Hosts", ", ".join(settings.allowed_proxy_hosts) or "-")
    table.add_row("API Host", settings.api_host)
    table.add_row("API Port", str(settings.api_port))

    console.print(table)


def register(cli: click.Group) -> None:
    cli.add_command(config)
