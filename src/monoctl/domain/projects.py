"""Project and manifest models, plus the selection modifiers.

A project is identified by its alias from ``monoctl.toml`` (``name``),
which is distinct from the package name in its ``package.json``.
Edges between projects are owned by the graph, not by the project.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

PROJECT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")


def validate_project_name(name: str) -> bool:
    """Check whether *name* is an acceptable project alias."""
    return PROJECT_NAME_PATTERN.match(name) is not None


def normalize_version(version: str) -> str:
    """Strip any pre-release identifier (``1.0.0-alpha`` -> ``1.0.0``)."""
    return version.split("-", 1)[0]


class PackageManifest(BaseModel):
    """The parts of a ``package.json`` the builder cares about."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = ""
    version: str = ""
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    scripts: dict[str, str] = Field(default_factory=dict)

    @property
    def normal_version(self) -> str:
        return normalize_version(self.version)

    @property
    def all_dependencies(self) -> frozenset[str]:
        """Names of regular and dev dependencies, including non-workspace ones."""
        return frozenset(self.dependencies) | frozenset(self.dev_dependencies)


@dataclass(frozen=True, eq=False)
class Project:
    """A workspace project. Hashed by identity; the graph owns one per alias."""

    name: str
    location: Path
    package: PackageManifest
    scripts: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Project({self.name!r})"


# --- Selection modifiers ---


class Modifier(StrEnum):
    """Which projects around an anchor a command touches."""

    TO = "to"
    FROM = "from"
    ABOVE = "above"
    BELOW = "below"
    ALL = "all"


@dataclass(frozen=True)
class Direction:
    """Anchor-relative inclusion flags for single-anchor ordering."""

    include_anchor: bool
    include_ancestors: bool
    include_descendants: bool

    def describe(self, anchor: str) -> str:
        sides = " and ".join(
            side
            for side, on in (("above", self.include_ancestors), ("below", self.include_descendants))
            if on
        )
        if self.include_anchor:
            return f"{anchor} and projects {sides}".rstrip()
        return f"projects {sides} {anchor}"


MODIFIER_DIRECTIONS: dict[Modifier, Direction] = {
    Modifier.TO: Direction(True, False, True),
    Modifier.FROM: Direction(True, True, False),
    Modifier.ABOVE: Direction(False, True, False),
    Modifier.BELOW: Direction(False, False, True),
    Modifier.ALL: Direction(True, True, True),
}


# --- Script resolution ---


def resolve_script(
    project: Project,
    script: str,
    workspace_scripts: dict[str, str],
    *,
    npm: str = "npm",
) -> tuple[str, str] | None:
    """Find the command for *script* in *project*.

    Precedence: the project's own override in ``monoctl.toml``, then the
    workspace-wide ``[scripts]`` table, then a ``package.json`` script of
    that name (run through ``<npm> run``). Returns ``(command, source)`` or
    None when no definition exists.
    """
    if project.scripts.get(script):
        return project.scripts[script], "schema for project"
    if workspace_scripts.get(script):
        return workspace_scripts[script], "schema"
    if project.package.scripts.get(script):
        return f"{npm} run {script}", "package.json"
    return None


def split_targets(targets: Sequence[str]) -> tuple[Modifier | None, list[str]]:
    """Split ``[modifier] [projects...]`` command arguments.

    A leading word matching a modifier is taken as the modifier, so a
    project aliased ``all`` can only be named after a modifier.
    """
    if targets and targets[0] in {m.value for m in Modifier}:
        return Modifier(targets[0]), list(targets[1:])
    return None, list(targets)
