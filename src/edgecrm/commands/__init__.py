"""Subcommand modules for edgecrm.

Provides register_commands() which uses deferred imports to keep
``edgecrm --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``records`` group and the standalone commands."""
    from edgecrm.commands.records import records

    cli.add_command(records)

    from edgecrm.commands.init_cmd import init_cmd
    from edgecrm.commands.search import search

    cli.add_command(init_cmd)
    cli.add_command(search)
