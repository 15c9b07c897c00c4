"""Click classes shared by every monoctl command.

``--help`` stays short; the worked command lines live behind an eager
``--examples`` flag that prints them and exits before required arguments
such as SCRIPT are checked.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds ``--examples`` to a click command when given example text."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class MonoCommand(_ExamplesMixin, click.Command):
    pass


class MonoGroup(_ExamplesMixin, click.Group):
    """Root group. Subcommands default to MonoCommand and are listed in
    the order they were registered (list, run, pushpull) rather than
    alphabetically.
    """

    command_class = MonoCommand

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(self.commands)
