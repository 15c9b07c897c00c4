"""RunService — run scripts and publish/pull projects in dependency order.

For each selected project, in order:

1. Refresh dependencies (``--install`` runs ``npm install``; with
   ``--pushpull`` alone, ``npm update`` pulls the selected dependencies).
2. With ``--pushpull``, version the project to a unique pre-release so the
   build embeds it.
3. Run the requested script, if any.
4. With ``--pushpull``, publish and restore the normal version.

Only projects with consumers are versioned and published. After the loop,
consumers outside the selection pull the freshly published packages.
A failing step stops the run; the result reports which projects completed.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from monoctl.domain.errors import OrderingError
from monoctl.domain.projects import resolve_script
from monoctl.infrastructure.manifests import WorkspaceError
from monoctl.infrastructure.process import ProcessRunner
from monoctl.services.base import BaseService
from monoctl.services.order import OrderService
from monoctl.services.result import ServiceResult
from monoctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from monoctl.domain.projects import Modifier, Project
    from monoctl.infrastructure.graph.engine import ProjectGraph
    from monoctl.infrastructure.workspace import Workspace

log = structlog.get_logger(__name__)


class ScriptNotDefinedError(Exception):
    code = "SCRIPT_NOT_DEFINED"

    def __init__(self, script: str, project: str) -> None:
        self.script = script
        self.project = project
        super().__init__(
            f"Script name '{script}' not defined in schema or package.json of '{project}'"
        )


def _elapsed(start: float) -> str:
    return f"{time.monotonic() - start:.1f}s"


class RunService(BaseService):
    """Executes per-project steps over an ordered selection."""

    def __init__(self, workspace: Workspace, runner: ProcessRunner | None = None) -> None:
        super().__init__(workspace)
        self._runner = runner

    @traced
    def run(
        self,
        ids: Sequence[str],
        modifier: Modifier | None = None,
        *,
        script: str | None = None,
        install: bool = False,
        dry_run: bool = False,
        pushpull: bool = False,
    ) -> ServiceResult:
        """Run *script* (and/or publish-and-pull) over the selected projects."""
        op = "run" if script else "pushpull"
        try:
            selected, description = OrderService(self._workspace).resolve(ids, modifier)
            graph = self._graph()
        except (OrderingError, WorkspaceError) as exc:
            return self._failure(op, exc)

        base: dict[str, Any] = {
            "selection": description,
            "script": script,
            "dry_run": dry_run,
            "pushpull": pushpull,
            "install": install,
            "projects": [p.name for p in selected],
        }
        if not selected:
            return ServiceResult(
                ok=True,
                op=op,
                data={**base, "count": 0, "steps": []},
                warnings=["No projects - nothing to do"],
            )

        runner = self._runner or ProcessRunner(dry_run=dry_run)
        start = time.monotonic()
        index = -1
        current: Project | None = None
        try:
            with trace_span("process_projects") as span:
                outside_consumers: dict[Project, None] = {}
                for index, current in enumerate(selected):
                    log.info("project.start", project=current.name, index=index + 1)
                    self._process(
                        runner,
                        graph,
                        current,
                        selected,
                        script=script,
                        install=install,
                        pushpull=pushpull,
                    )
                    if pushpull:
                        for consumer in graph.consumers(current):
                            if consumer not in selected:
                                outside_consumers[consumer] = None

                current = None
                for consumer in outside_consumers:
                    self._update_dependencies(runner, graph, consumer, selected, install=False)
                if span:
                    span.annotate("projects", len(selected))
                    span.annotate("commands", len(runner.history))
        except (ScriptNotDefinedError, subprocess.CalledProcessError, OSError) as exc:
            return self._progress_failure(op, exc, base, selected, current, index, start, runner)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                **base,
                "count": len(selected),
                "elapsed": _elapsed(start),
                "steps": self._steps(runner),
                "updated_consumers": [c.name for c in outside_consumers],
            },
        )

    # ------------------------------------------------------------------
    # Per-project steps
    # ------------------------------------------------------------------

    @property
    def _npm(self) -> str:
        return self._workspace.config.npm.executable

    def _process(
        self,
        runner: ProcessRunner,
        graph: ProjectGraph,
        project: Project,
        selected: Sequence[Project],
        *,
        script: str | None,
        install: bool,
        pushpull: bool,
    ) -> None:
        publishes = pushpull and bool(graph.consumers(project))

        if pushpull or install:
            self._update_dependencies(runner, graph, project, selected, install=install)

        if publishes:
            stamp = int(datetime.now(UTC).timestamp())
            version = f"{project.package.normal_version}-{stamp}"
            log.info("project.version", project=project.name, version=version)
            runner.run(
                project.name,
                f"{self._npm} --no-git-tag-version version {version}",
                project.location,
            )

        if script:
            resolved = resolve_script(
                project, script, self._workspace.config.scripts, npm=self._npm
            )
            if resolved is None:
                raise ScriptNotDefinedError(script, project.name)
            command, source = resolved
            log.info("project.script", project=project.name, script=script, source=source)
            runner.run(project.name, command, project.location)

        if publishes:
            normal = project.package.normal_version
            log.info("project.publish", project=project.name, version=normal)
            runner.run(
                project.name,
                f"{self._npm} publish && {self._npm} --no-git-tag-version version {normal}"
                " --allow-same-version=true",
                project.location,
            )

    def _update_dependencies(
        self,
        runner: ProcessRunner,
        graph: ProjectGraph,
        project: Project,
        selected: Sequence[Project],
        *,
        install: bool,
    ) -> None:
        """Install everything, or update only the dependencies built in this run."""
        if install:
            runner.run(project.name, f"{self._npm} install --fund=false", project.location)
            return

        names = [d.package.name for d in graph.dependencies(project) if d in selected]
        if names:
            runner.run(
                project.name,
                f"{self._npm} update {' '.join(names)} --fund=false --audit=false",
                project.location,
            )

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _steps(runner: ProcessRunner) -> list[dict[str, Any]]:
        return [
            {"project": c.project, "command": c.command, "dry_run": c.dry_run}
            for c in runner.history
        ]

    def _progress_failure(
        self,
        op: str,
        exc: Exception,
        base: dict[str, Any],
        selected: Sequence[Project],
        current: Project | None,
        index: int,
        start: float,
        runner: ProcessRunner,
    ) -> ServiceResult:
        """Report completed, failed, and not-run projects after a broken step."""
        if current is None:
            completed = [p.name for p in selected]
            not_run: list[str] = []
            failed = runner.history[-1].project if runner.history else None
        else:
            completed = [p.name for p in selected[:index]]
            not_run = [p.name for p in selected[index + 1 :]]
            failed = current.name

        code = getattr(exc, "code", "PROCESS_FAILED")
        detail: dict[str, Any] = {"project": failed}
        if isinstance(exc, subprocess.CalledProcessError):
            detail["returncode"] = exc.returncode
            detail["command"] = exc.cmd
        log.error("project.failed", project=failed, error=str(exc))

        return ServiceResult.failure(
            op,
            code,
            str(exc),
            detail=detail,
            data={
                **base,
                "count": len(selected),
                "position": index + 1,
                "completed": completed,
                "failed": failed,
                "not_run": not_run,
                "elapsed": _elapsed(start),
                "steps": self._steps(runner),
            },
        )
