"""Output mode dispatch for ServiceResult.

The CLI renders ServiceResult for humans (Rich tables and listings) or
machines (--json), or as bare project names (--quiet).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from monoctl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from monoctl.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output flags relevant to formatting, frozen after construction."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(
    result: ServiceResult,
    *,
    settings: OutputSettings | None = None,
) -> str:
    """Format a ServiceResult for display according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
