"""Standalone command: run a script across projects in dependency order."""

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
  monoctl run build
  monoctl run build client server
  monoctl run test to iso
  monoctl run build from client --pushpull
  monoctl run build all --install --dry-run""",
)
@click.argument("script")
@click.argument("targets", nargs=-1)
@click.option("--install", is_flag=True, help="Run a full install in each project first.")
@click.option("--dry-run", is_flag=True, help="Print the commands without running them.")
@click.option(
    "--pushpull",
    is_flag=True,
    help="Publish projects with consumers and pull them into their consumers.",
)
@click.pass_obj
def run(
    app: AppContext,
    script: str,
    targets: tuple[str, ...],
    install: bool,
    dry_run: bool,
    pushpull: bool,
) -> None:
    """Run SCRIPT in [MODIFIER] PROJECTS, dependencies first."""
    modifier, ids = split_targets(targets)
    app.emit(
        RunService(app.workspace).run(
            ids,
            modifier,
            script=script,
            install=install,
            dry_run=dry_run,
            pushpull=pushpull,
        )
    )
