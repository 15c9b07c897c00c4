"""Shared pytest fixtures and test helpers for monoctl tests."""

from __future__ import annotations

import json
from collections.abc import Generator, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from monoctl.config.settings import MonoSettings
from monoctl.domain.projects import PackageManifest, Project
from monoctl.infrastructure.graph.engine import ProjectGraph
from monoctl.infrastructure.workspace import Workspace
from monoctl.services.telemetry import disable_telemetry

# Each project maps to the projects it depends on.
SAMPLE_WORKSPACE: dict[str, list[str]] = {
    "assets": [],
    "iso": [],
    "server": ["iso"],
    "client": ["iso", "server"],
}


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """Verbose CLI invocations enable telemetry for the whole thread."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary monorepo with the sample projects and a ``monoctl.toml``.

    This is the single source of truth for the on-disk workspace layout.
    All workspace-related fixtures build on this.
    """
    write_workspace(tmp_path, SAMPLE_WORKSPACE)
    return tmp_path


@pytest.fixture
def workspace(workspace_root: Path) -> Workspace:
    """Workspace instance over the sample monorepo."""
    return Workspace(MonoSettings.from_cli(workspace_root=workspace_root))


@pytest.fixture
def sample_graph() -> ProjectGraph:
    """In-memory graph of the sample projects (no filesystem)."""
    return graph_from(SAMPLE_WORKSPACE)


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the sample workspace so the CLI discovers its config.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.delenv("MONOCTL_CONFIG", raising=False)
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def package_name(alias: str) -> str:
    return f"@acme/{alias}"


def graph_from(spec: Mapping[str, Sequence[str]]) -> ProjectGraph:
    """Build a ProjectGraph from ``{alias: [dependency aliases]}``.

    Edges are added the way the manifest builder adds them: projects in
    mapping order, dependency names sorted.
    """
    projects = [
        Project(
            name=alias,
            location=Path(alias),
            package=PackageManifest(
                name=package_name(alias),
                version="1.0.0",
                dependencies={package_name(d): "*" for d in deps},
            ),
        )
        for alias, deps in spec.items()
    ]
    edges = [(dep, alias) for alias, deps in spec.items() for dep in sorted(deps)]
    return ProjectGraph(projects, edges)


def names(projects: Sequence[Project]) -> list[str]:
    return [p.name for p in projects]


def write_workspace(
    root: Path,
    spec: Mapping[str, Sequence[str]],
    *,
    toml_extra: str = "",
    package_scripts: Mapping[str, dict[str, str]] | None = None,
    project_scripts: Mapping[str, dict[str, str]] | None = None,
) -> Path:
    """Write one ``package.json`` per project plus ``monoctl.toml`` under *root*.

    Returns the path of the written config file.
    """
    package_scripts = package_scripts or {}
    project_scripts = project_scripts or {}
    sections: list[str] = []
    for alias, deps in spec.items():
        project_dir = root / alias
        project_dir.mkdir(parents=True, exist_ok=True)
        manifest: dict[str, Any] = {
            "name": package_name(alias),
            "version": "1.0.0",
            "dependencies": {package_name(d): "^1.0.0" for d in deps},
            "devDependencies": {"typescript": "^5.0.0"},
        }
        if alias in package_scripts:
            manifest["scripts"] = package_scripts[alias]
        (project_dir / "package.json").write_text(json.dumps(manifest, indent=2))
        section = f"[projects.{alias}]\npath = \"{alias}\"\n"
        if alias in project_scripts:
            pairs = ", ".join(f"{k} = {json.dumps(v)}" for k, v in project_scripts[alias].items())
            section += f"scripts = {{ {pairs} }}\n"
        sections.append(section)

    config = root / "monoctl.toml"
    config.write_text(toml_extra + "\n" + "\n".join(sections))
    return config
