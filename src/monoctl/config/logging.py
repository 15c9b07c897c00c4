"""Log routing for monoctl.

Everything goes to stderr so stdout stays clean for ``list`` output and
``--json`` results. structlog loggers and plain stdlib loggers (the domain
layer uses ``logging.getLogger``) share one ``ProcessorFormatter``, so both
render the same way: coloured key/value lines on a terminal, one JSON
object per line under ``--log-json``.

Only the ``monoctl`` logger tree is opened up to DEBUG by ``--verbose``;
third-party libraries stay at WARNING. Each line carries the workspace
root once one is known.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
from structlog.types import Processor

LOGGER_NAME = "monoctl"


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(log_json: bool) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    workspace: Path | None = None,
) -> None:
    """(Re)install the stderr handler. Safe to call once per CLI invocation."""
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if workspace is not None:
        structlog.contextvars.bind_contextvars(workspace=str(workspace))
