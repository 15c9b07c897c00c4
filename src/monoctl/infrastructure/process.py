"""Shell command execution inside project directories.

Commands run through the shell with inherited stdio so build tools keep
their own output. In dry-run mode nothing is executed; the command is only
logged and recorded.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExecutedCommand:
    """A command issued for a project (run or dry-run)."""

    project: str
    command: str
    cwd: Path
    dry_run: bool


@dataclass
class ProcessRunner:
    """Runs shell commands for projects and keeps a history of them.

    Raises ``subprocess.CalledProcessError`` when a command exits non-zero
    and ``OSError`` when it cannot be started.
    """

    dry_run: bool = False
    history: list[ExecutedCommand] = field(default_factory=list)

    def run(self, project: str, command: str, cwd: Path) -> None:
        entry = ExecutedCommand(project=project, command=command, cwd=cwd, dry_run=self.dry_run)
        self.history.append(entry)
        if self.dry_run:
            log.info("process.dry_run", project=project, command=command)
            return

        log.debug("process.start", project=project, command=command, cwd=str(cwd))
        subprocess.run(command, cwd=cwd, shell=True, check=True)
        log.debug("process.done", project=project, command=command)
