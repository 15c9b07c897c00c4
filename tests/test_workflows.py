"""Integration workflow tests — real commands executed in dependency order.

These tests run actual shell commands in the project directories, so they
exercise the full path from ``monoctl.toml`` through graph building,
ordering, script resolution and process execution.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from monoctl.cli import cli
from monoctl.config.settings import MonoSettings
from monoctl.domain.projects import Modifier
from monoctl.infrastructure.workspace import Workspace
from monoctl.services.run import RunService
from tests.conftest import write_workspace

# Each project appends its own directory name to a shared log one level up.
RECORD = 'basename "$PWD" >> ../order.log'

DIAMOND = {
    "core": [],
    "left": ["core"],
    "right": ["core"],
    "app": ["left", "right"],
    "docs": [],
}


@pytest.fixture
def diamond_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    write_workspace(
        tmp_path,
        DIAMOND,
        toml_extra=f"[scripts]\nrecord = '{RECORD}'\n[npm]\nexecutable = \"echo npm\"\n",
    )
    monkeypatch.delenv("MONOCTL_CONFIG", raising=False)
    return tmp_path


def _log(root: Path) -> list[str]:
    return (root / "order.log").read_text().split()


class TestRunInOrder:
    def test_script_runs_dependencies_first(self, diamond_root: Path) -> None:
        ws = Workspace(MonoSettings.from_cli(workspace_root=diamond_root))
        result = RunService(ws).run([], script="record")
        assert result.ok, result.error
        ran = _log(diamond_root)
        assert sorted(ran) == sorted(DIAMOND)
        assert ran.index("core") < ran.index("left") < ran.index("app")
        assert ran.index("right") < ran.index("app")

    def test_cli_run_to_anchor(
        self, cli_runner: CliRunner, diamond_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(diamond_root / "app")
        result = cli_runner.invoke(cli, ["run", "record", "to", "left"])
        assert result.exit_code == 0, result.output
        assert _log(diamond_root) == ["core", "left"]

    def test_dry_run_executes_nothing(self, diamond_root: Path) -> None:
        ws = Workspace(MonoSettings.from_cli(workspace_root=diamond_root))
        result = RunService(ws).run(["app"], script="record", dry_run=True)
        assert result.ok
        assert not (diamond_root / "order.log").exists()


class TestPushPullWorkflow:
    def test_publish_chain_with_stub_npm(self, diamond_root: Path) -> None:
        ws = Workspace(MonoSettings.from_cli(workspace_root=diamond_root))
        result = RunService(ws).run(["core"], pushpull=True, script="record")
        assert result.ok, result.error
        assert _log(diamond_root) == ["core"]
        assert result.data["updated_consumers"] == ["left", "right"]
        commands = [step["command"] for step in result.data["steps"]]
        assert commands[-2:] == [
            "echo npm update @acme/core --fund=false --audit=false",
            "echo npm update @acme/core --fund=false --audit=false",
        ]

    def test_failure_stops_the_run(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_workspace(
            tmp_path,
            DIAMOND,
            toml_extra=f"[scripts]\nrecord = '{RECORD}'\n",
            project_scripts={"left": {"record": "exit 1"}},
        )
        monkeypatch.delenv("MONOCTL_CONFIG", raising=False)
        ws = Workspace(MonoSettings.from_cli(workspace_root=tmp_path))
        result = RunService(ws).run(["app"], Modifier.TO, script="record")
        assert not result.ok
        assert result.data["failed"] == "left"
        assert _log(tmp_path) == ["core"]
        assert "app" in result.data["not_run"]
