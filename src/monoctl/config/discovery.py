"""Locating and parsing ``monoctl.toml``.

The file marks the workspace root, so it is searched for upward from the
working directory the way git finds ``.git``. ``--config`` and
``MONOCTL_CONFIG`` name a file directly.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "monoctl.toml"
CONFIG_ENV_VAR = "MONOCTL_CONFIG"


def find_config(start: Path | None = None, *, explicit: str | Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    Precedence is *explicit* (the ``--config`` flag), then ``MONOCTL_CONFIG``,
    then the nearest ``monoctl.toml`` in *start* or one of its parents. A
    named file that does not exist gives None; the walk is not tried.
    """
    named = explicit or os.environ.get(CONFIG_ENV_VAR)
    if named:
        path = Path(named)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, turning syntax errors into a one-line CLI error."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc
