"""Tests for RunService — scripts and publish/pull in dependency order."""

from __future__ import annotations

from pathlib import Path

import pytest

from monoctl.config.settings import MonoSettings
from monoctl.domain.projects import Modifier
from monoctl.infrastructure.process import ProcessRunner
from monoctl.infrastructure.workspace import Workspace
from monoctl.services.run import RunService
from tests.conftest import SAMPLE_WORKSPACE, write_workspace

UPDATE_FLAGS = "--fund=false --audit=false"
PUBLISH = "npm publish && npm --no-git-tag-version version 1.0.0 --allow-same-version=true"


def _workspace(root: Path, toml_extra: str = "") -> Workspace:
    write_workspace(
        root,
        SAMPLE_WORKSPACE,
        toml_extra='[scripts]\nbuild = "echo build"\ncheck = "true"\n' + toml_extra,
        package_scripts={"iso": {"test": "jest"}},
        project_scripts={"server": {"build": "make server", "check": "exit 3"}},
    )
    return Workspace(MonoSettings.from_cli(workspace_root=root))


@pytest.fixture
def scripted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Workspace:
    monkeypatch.delenv("MONOCTL_CONFIG", raising=False)
    return _workspace(tmp_path)


@pytest.fixture
def runner() -> ProcessRunner:
    return ProcessRunner(dry_run=True)


def _commands(runner: ProcessRunner) -> list[tuple[str, str]]:
    return [(c.project, c.command) for c in runner.history]


class TestRunScript:
    def test_script_resolution_per_project(
        self, scripted: Workspace, runner: ProcessRunner
    ) -> None:
        result = RunService(scripted, runner).run([], script="build", dry_run=True)
        assert result.ok
        assert result.op == "run"
        assert result.data["projects"] == ["assets", "iso", "server", "client"]
        assert _commands(runner) == [
            ("assets", "echo build"),
            ("iso", "echo build"),
            ("server", "make server"),
            ("client", "echo build"),
        ]
        assert result.data["count"] == 4
        assert len(result.data["steps"]) == 4

    def test_package_json_script(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["iso"], script="test")
        assert result.ok
        assert _commands(runner) == [("iso", "npm run test")]

    def test_commands_run_in_project_directory(
        self, scripted: Workspace, runner: ProcessRunner
    ) -> None:
        RunService(scripted, runner).run(["server"], script="build")
        assert runner.history[0].cwd == scripted.graph.lookup("server").location

    def test_install_first(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["iso"], script="build", install=True)
        assert result.ok
        assert _commands(runner) == [
            ("iso", "npm install --fund=false"),
            ("iso", "echo build"),
        ]

    def test_missing_script(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["iso", "server"], script="test")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "SCRIPT_NOT_DEFINED"
        assert "'test'" in result.error.message
        assert result.data["failed"] == "server"
        assert result.data["completed"] == ["iso"]
        assert result.data["not_run"] == []
        assert result.data["position"] == 2

    def test_empty_selection(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["assets"], Modifier.ABOVE, script="build")
        assert result.ok
        assert result.data["count"] == 0
        assert result.warnings == ["No projects - nothing to do"]
        assert runner.history == []

    def test_unknown_project(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["ghost"], script="build")
        assert not result.ok
        assert result.op == "run"
        assert result.error is not None
        assert result.error.code == "UNKNOWN_PROJECT"

    def test_failing_command_reports_progress(self, scripted: Workspace) -> None:
        result = RunService(scripted).run([], script="check")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "PROCESS_FAILED"
        assert result.error.detail["returncode"] == 3
        assert result.data["completed"] == ["assets", "iso"]
        assert result.data["failed"] == "server"
        assert result.data["not_run"] == ["client"]
        assert result.data["position"] == 3

    def test_custom_npm_executable(self, tmp_path: Path, runner: ProcessRunner) -> None:
        ws = _workspace(tmp_path, toml_extra='[npm]\nexecutable = "pnpm"\n')
        RunService(ws, runner).run(["iso"], script="test", install=True)
        assert _commands(runner) == [
            ("iso", "pnpm install --fund=false"),
            ("iso", "pnpm run test"),
        ]


class TestPushPull:
    def test_publishes_projects_with_consumers(
        self, scripted: Workspace, runner: ProcessRunner
    ) -> None:
        result = RunService(scripted, runner).run(["iso"], Modifier.FROM, pushpull=True)
        assert result.ok
        assert result.op == "pushpull"
        commands = _commands(runner)
        assert [project for project, _ in commands] == [
            "iso",
            "iso",
            "server",
            "server",
            "server",
            "client",
        ]
        assert commands[0][1].startswith("npm --no-git-tag-version version 1.0.0-")
        assert commands[1][1] == PUBLISH
        assert commands[2][1] == f"npm update @acme/iso {UPDATE_FLAGS}"
        assert commands[4][1] == PUBLISH
        assert commands[5][1] == f"npm update @acme/iso @acme/server {UPDATE_FLAGS}"
        assert result.data["updated_consumers"] == []

    def test_script_runs_between_version_and_publish(
        self, scripted: Workspace, runner: ProcessRunner
    ) -> None:
        RunService(scripted, runner).run(["iso"], script="build", pushpull=True)
        commands = [command for _, command in _commands(runner)]
        assert commands[0].startswith("npm --no-git-tag-version version")
        assert commands[1] == "echo build"
        assert commands[2] == PUBLISH

    def test_updates_consumers_outside_selection(
        self, scripted: Workspace, runner: ProcessRunner
    ) -> None:
        result = RunService(scripted, runner).run(["iso"], pushpull=True)
        assert result.ok
        assert result.data["updated_consumers"] == ["server", "client"]
        assert _commands(runner)[2:] == [
            ("server", f"npm update @acme/iso {UPDATE_FLAGS}"),
            ("client", f"npm update @acme/iso {UPDATE_FLAGS}"),
        ]

    def test_leaf_project_not_published(self, scripted: Workspace, runner: ProcessRunner) -> None:
        result = RunService(scripted, runner).run(["assets"], pushpull=True)
        assert result.ok
        assert runner.history == []

    def test_dry_run_flag_reported(self, scripted: Workspace) -> None:
        result = RunService(scripted).run(["iso"], pushpull=True, dry_run=True)
        assert result.ok
        assert result.data["dry_run"] is True
        assert all(step["dry_run"] for step in result.data["steps"])
