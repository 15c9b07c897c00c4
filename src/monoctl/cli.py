"""Root CLI group for monoctl with global flags and command registration."""

from __future__ import annotations

import click

from monoctl import __version__
from monoctl.commands import register_commands
from monoctl.commands._base import MonoGroup
from monoctl.commands._context import AppContext
from monoctl.config.settings import MonoSettings


@click.group(
    cls=MonoGroup,
    invoke_without_command=True,
    examples="""\
  monoctl list
  monoctl list to iso
  monoctl run build from common
  monoctl pushpull common --dry-run
  monoctl -c ../monoctl.toml --json list""",
)
@click.version_option(version=__version__, prog_name="monoctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """monoctl — build and publish monorepo projects in dependency order."""
    ctx.ensure_object(dict)
    settings = MonoSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
