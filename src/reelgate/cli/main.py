"""Reelgate command-line interface.

Commands live in submodules under `reelgate.cli.*`; each exposes `register(cli)`.
"""

from __future__ import annotations

import click

from reelgate.app_version import get_app_version
from reelgate.observability import init_observability


@click.group()
@click.version_option(version=get_app_version(), prog_name="reelgate")
def cli() -> None:
    """Reelgate - multi-vendor video generation with asset relocation."""
    init_observability()


def _register_commands() -> None:
    from reelgate.cli import allowlist, config, serve, tasks

    allowlist.register(cli)
    config.register(cli)
    serve.register(cli)
    tasks.register(cli)


_register_commands()


if __name__ == "__main__":
    cli()
