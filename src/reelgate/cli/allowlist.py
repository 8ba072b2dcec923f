"""Host allowlist CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from reelgate.cli.ui import console
from reelgate.config import get_settings
from reelgate.errors import DomainError
from reelgate.security.host_allowlist import DEFAULT_ALLOWED_HOSTS, HostAllowlist
from reelgate.services.runtime import build_allowlist
from reelgate.storage.object_store import get_object_store


def _current_allowlist() -> tuple[HostAllowlist, list[str]]:
    store = get_object_store()
    return build_allowlist(get_settings(), store), store.allowed_hosts()


@click.group()
def allowlist() -> None:
    """Inspect the egress host allowlist."""


@allowlist.command("show")
def allowlist_show() -> None:
    """List every host relocation and the asset proxy may fetch from."""
    hosts, store_hosts = _current_allowlist()
    defaults = set(DEFAULT_ALLOWED_HOSTS)
    table = Table(title="Allowed Hosts", show_lines=False)
    table.add_column("Host", style="white")
    table.add_column("Source", style="cyan")
    for host in sorted(hosts.entries):
        if host in store_hosts:
            source = "object store"
        elif host in defaults:
            source = "default"
        else:
            source = "ALLOWED_PROXY_HOSTS"
        table.add_row(host, source)
    console.print(table)


@allowlist.command("check")
@click.argument("target")
def allowlist_check(target: str) -> None:
    """Check whether TARGET (a host or an absolute URL) may be fetched."""
    hosts, _ = _current_allowlist()
    if "://" in target:
        try:
            host = hosts.ensure_allowed(target, component="cli")
        except DomainError as exc:
            console.print(f"[red]denied[/red] {exc}")
            raise SystemExit(1) from exc
    else:
        host = target
        if not hosts.is_allowed(host):
            console.print(f"[red]denied[/red] {host}")
            raise SystemExit(1)
    console.print(f"[green]allowed[/green] {host}")


def register(cli: click.Group) -> None:
    cli.add_command(allowlist)
