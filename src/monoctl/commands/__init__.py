"""Subcommand modules for monoctl.

Provides register_commands() which uses deferred imports to keep
``monoctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from monoctl.commands.list_cmd import list_cmd
    from monoctl.commands.pushpull import pushpull
    from monoctl.commands.run import run

    cli.add_command(list_cmd)
    cli.add_command(run)
    cli.add_command(pushpull)
