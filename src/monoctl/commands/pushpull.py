"""Standalone command: publish projects and pull them into their consumers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from monoctl.commands._base import MonoCommand
from monoctl.domain.projects import split_targets
from monoctl.services.run import RunService

if TYPE_CHECKING:
    from monoctl.commands._context import AppContext


@click.command(
    cls=MonoCommand,
    examples="""\
  monoctl pushpull from common
  monoctl pushpull iso client
  monoctl pushpull to server --install
  monoctl pushpull --dry-run""",
)
@click.argument("targets", nargs=-1)
@click.option("--install", is_flag=True, help="Run a full install in each project first.")
@click.option("--dry-run", is_flag=True, help="Print the commands without running them.")
@click.pass_obj
def pushpull(app: AppContext, targets: tuple[str, ...], install: bool, dry_run: bool) -> None:
    """Publish [MODIFIER] PROJECTS in order, updating each consumer."""
    modifier, ids = split_targets(targets)
    app.emit(
        RunService(app.workspace).run(
            ids, modifier, install=install, dry_run=dry_run, pushpull=True
        )
    )
