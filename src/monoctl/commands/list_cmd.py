"""Standalone command: list workspace projects, or a selection in order."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from monoctl.commands._base import MonoCommand
from monoctl.domain.projects import split_targets
from monoctl.services.order import OrderService

if TYPE_CHECKING:
    from monoctl.commands._context import AppContext


@click.command(
    "list",
    cls=MonoCommand,
    examples="""\
  monoctl list
  monoctl list client server
  monoctl list to iso
  monoctl list above common
  monoctl --json list from client""",
)
@click.argument("targets", nargs=-1)
@click.pass_obj
def list_cmd(app: AppContext, targets: tuple[str, ...]) -> None:
    """List projects, or the dependency order of [MODIFIER] PROJECTS.

    MODIFIER is one of to, from, above, below or all, and anchors the
    selection on a single project.
    """
    service = OrderService(app.workspace)
    if not targets:
        app.emit(service.list_projects())
        return
    modifier, ids = split_targets(targets)
    app.emit(service.select(ids, modifier))
