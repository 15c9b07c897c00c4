"""The object every subcommand receives through ``@click.pass_obj``.

Built once by the root group from the global flags. It installs logging
(and telemetry under ``-v``) before any command runs, and owns the one
place where a :class:`ServiceResult` becomes terminal output and an exit
status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from monoctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from monoctl.config.settings import MonoSettings
    from monoctl.infrastructure.workspace import Workspace
    from monoctl.services.result import ServiceResult


class AppContext:
    def __init__(self, settings: MonoSettings) -> None:
        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )
        self._workspace: Workspace | None = None

        from monoctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            workspace=settings.workspace_root,
        )
        if settings.verbose:
            from monoctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        """Opened on first use, so ``--help`` and ``--examples`` never read manifests."""
        if self._workspace is None:
            from monoctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result goes to stderr and exits with status 1.

        Warnings go to stderr too, and are left out of ``--json`` output
        where the payload already carries them.
        """
        text = format_result(result, settings=self.output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if self.output.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
