"""Human output for each service operation.

``list``/``select`` print a project table, ``run``/``pushpull`` print the
dependency order, the commands (on dry runs or with ``-v``) and a summary.
A failed build shows completed projects, the failing one between ``>`` and
``<``, then the projects that never ran. Unknown ops fall back to
key-value lines. Under ``-v`` the telemetry span tree follows as a Rich tree.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.tree import Tree
from rich.text import Text

from monoctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from monoctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    if verbose:
        _render_meta(console, result)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: project names, one per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item.get("id", "")) for item in items)
    projects = result.data.get("projects")
    if projects and isinstance(projects, list):
        return "\n".join(str(p) for p in projects)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "mono.ok"), (f"  {result.op}", "mono.op")))


def _field(console: Console, key: str, value: Any) -> None:
    style = "mono.path" if key == "path" else ""
    console.print(Text.assemble((f"  {key}: ", "mono.key"), (str(value), style)))


def _project_list(console: Console, names: list[str], *, prefix: str = "") -> None:
    for name in names:
        console.print(f"  {prefix}[mono.id]{name}[/mono.id]")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Verbose footer: the span tree of the service call, then any other meta."""
    if not result.meta:
        return

    console.print()
    extras = {k: v for k, v in result.meta.items() if k != "telemetry"}
    if "telemetry" in result.meta:
        console.print(_span_tree(result.meta["telemetry"]))
    for key, value in extras.items():
        _field(console, key, value)


def _span_label(span: dict[str, Any]) -> Text:
    duration = float(span.get("duration_ms") or 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    label = Text.assemble((f"{duration:.2f}ms", style), "  ", str(span.get("name", "?")))
    annotations = span.get("annotations") or {}
    if annotations:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")", "dim")
    return label


def _span_tree(span: dict[str, Any], parent: Tree | None = None) -> Tree:
    """Timing tree, slow steps in yellow (>100ms) or red (>1s)."""
    label = _span_label(span)
    node = Tree(label, guide_style="dim") if parent is None else parent.add(label)
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="mono.error")
    op = Text(f"  {result.op}", style="mono.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    d = result.data
    if "failed" in d:
        console.print(
            f"Project [mono.failed]{d.get('position', '?')}[/mono.failed] of "
            f"[mono.failed]{d.get('count', '?')}[/mono.failed] failed at "
            f"[mono.failed]{d.get('elapsed', '?')}[/mono.failed]"
        )
        _project_list(console, d.get("completed", []))
        if d.get("failed"):
            failed = Text(str(d["failed"]), style="mono.failed")
            console.print(Text(">", style="mono.error"), failed, Text("<", style="mono.error"))
        _project_list(console, d.get("not_run", []))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Project renderers ─────────────────────────────────────────────────


def _render_projects(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list/select results as a project table."""
    items: list[dict[str, Any]] = result.data.get("items", [])
    if result.data.get("selection"):
        console.print(f"For {result.data['selection']}")

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    if result.op == "select":
        table.add_column("#", justify="right", style="dim")
    table.add_column("Project", style="mono.id", no_wrap=True)
    table.add_column("Package", style="mono.package")
    table.add_column("Version")
    table.add_column("Dependencies")
    if verbose:
        table.add_column("Path", style="mono.path")

    for position, item in enumerate(items, start=1):
        row: list[str] = []
        if result.op == "select":
            row.append(str(position))
        row.extend(
            [
                str(item.get("id", "")),
                str(item.get("package", "")),
                str(item.get("version", "")),
                ", ".join(item.get("dependencies", [])) or "-",
            ]
        )
        if verbose:
            row.append(str(item.get("path", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} project(s)")


def _render_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render run/pushpull results: order, commands, and summary."""
    d = result.data
    _status_line(console, result)
    if d.get("selection"):
        _field(console, "selection", d["selection"])
    if d.get("dry_run"):
        console.print(Text("  DRY RUN: nothing was executed.", style="mono.warning"))

    console.print("Dependency order:")
    _project_list(console, d.get("projects", []))

    steps = d.get("steps", [])
    if steps and (verbose or d.get("dry_run")):
        console.print("Commands:")
        for step in steps:
            console.print(
                f"  [mono.id]{step['project']}[/mono.id]"
                f"  [mono.command]{step['command']}[/mono.command]"
            )

    if d.get("updated_consumers"):
        console.print("Updated consumers:")
        _project_list(console, d["updated_consumers"])

    if "elapsed" in d:
        console.print(f"\nProcessed {d.get('count', 0)} project(s) in {d['elapsed']}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            value = _json.dumps(value, separators=(",", ":"))
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS = {
    "list": _render_projects,
    "select": _render_projects,
    "run": _render_run,
    "pushpull": _render_run,
}
