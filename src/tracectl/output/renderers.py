"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO); the caller
extracts the text via ``get_output(console)``. Renderers are dispatched
by ``result.op`` in :func:`render_result`. Unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tracectl.output.console import create_console, get_output, style_for_layer

if TYPE_CHECKING:
    from rich.console import Console

    from tracectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    Listings print one id (or session name) per line, expansions print
    the ids they added, everything else prints ``OK: <op>``.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    data = result.data
    for key in ("items", "nodes"):
        rows = data.get(key)
        if rows and isinstance(rows, list):
            return "\n".join(_extract_id(row) for row in rows if _extract_id(row))
    added = data.get("added_nodes")
    if added:
        return "\n".join(str(a) for a in added)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "name"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="trace.ok")
    op = Text(f"  {result.op}", style="trace.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="trace.key")
    if key in ("id", "session", "name") or key.endswith("_id"):
        v = Text(str(value), style="trace.id")
    elif isinstance(value, list):
        v = Text(", ".join(str(x) for x in value) if value else "-")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{ak}={av}" for ak, av in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _counts_line(console: Console, data: dict[str, Any]) -> None:
    if "node_count" not in data:
        return
    console.print(
        f"\n{data['node_count']} nodes "
        f"({data.get('visible_node_count', data['node_count'])} visible), "
        f"{data.get('edge_count', 0)} edges"
    )


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="trace.error")
    op = Text(f"  {result.op}", style="trace.op")
    code = Text(f" [{err.code}]" if err else "", style="dim")
    console.print(label, op, code, Text(" — "), msg)
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Trace renderers ───────────────────────────────────────────────────


def _render_expansion(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render seed and expand results."""
    d = result.data
    _status_line(console, result)
    for key in ("session", "seeds", "node_id", "direction", "depth"):
        if key in d:
            _field(console, key, d[key])
    added_nodes = d.get("added_nodes", [])
    added_edges = d.get("added_edges", [])
    _field(console, "added_nodes", len(added_nodes))
    _field(console, "added_edges", len(added_edges))
    if verbose and added_nodes:
        for node_id in added_nodes:
            console.print(f"    [trace.id]{node_id}[/trace.id]")
    _counts_line(console, d)
    if verbose:
        _render_meta(console, result)


def _render_node_change(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render collapse, pin and hide results."""
    d = result.data
    _status_line(console, result)
    for key in ("session", "node_id", "pinned", "hidden", "removed"):
        if key in d:
            _field(console, key, d[key])
    _counts_line(console, d)
    if verbose:
        _render_meta(console, result)


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a session's nodes and edges as tables."""
    d = result.data
    filters = d.get("filters", {})
    header = [f"session: {d.get('session', '?')}", f"seeds: {', '.join(d.get('seeds', []))}"]
    header.append(f"direction: {filters.get('direction', 'both')}")
    for key in ("relationship_types", "layers", "element_types"):
        if filters.get(key):
            header.append(f"{key}: {', '.join(filters[key])}")
    console.print(Panel("\n".join(header), title="Trace", border_style="dim", expand=False))

    nodes = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    nodes.add_column("Depth", justify="right")
    nodes.add_column("ID", style="trace.id", no_wrap=True)
    nodes.add_column("Label", style="trace.label")
    nodes.add_column("Flags")
    for node in d.get("nodes", []):
        flags: list[Text] = []
        if node.get("pinned"):
            flags.append(Text("pinned", style="trace.pinned"))
        if node.get("expanded"):
            flags.append(Text("expanded"))
        if node.get("hidden"):
            flags.append(Text("hidden", style="trace.hidden"))
        nodes.add_row(
            str(node.get("depth", "")),
            str(node.get("id", "")),
            str(node.get("label", "")),
            Text(" ").join(flags),
            style="trace.hidden" if node.get("hidden") else None,
        )
    console.print(nodes)

    edges = d.get("edges", [])
    if edges:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("From", style="trace.id", no_wrap=True)
        table.add_column("Relationship", style="trace.edge")
        table.add_column("To", style="trace.id", no_wrap=True)
        if verbose:
            table.add_column("Edge ID", style="dim")
        for edge in edges:
            row = [str(edge.get("from", "")), str(edge.get("label", "")), str(edge.get("to", ""))]
            if verbose:
                row.append(str(edge.get("id", "")))
            table.add_row(*row)
        console.print()
        console.print(table)

    _counts_line(console, d)
    if verbose:
        _render_meta(console, result)


def _render_layout(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render node boxes of a computed layout."""
    d = result.data
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="trace.id", no_wrap=True)
    table.add_column("Label")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("W", justify="right")
    table.add_column("H", justify="right")
    for node in d.get("nodes", []):
        table.add_row(
            str(node.get("id", "")),
            " / ".join(node.get("lines") or [node.get("label", "")]),
            f"{node.get('x', 0):.1f}",
            f"{node.get('y', 0):.1f}",
            f"{node.get('w', 0):.1f}",
            f"{node.get('h', 0):.1f}",
        )
    console.print(table)
    console.print(
        f"\n{len(d.get('nodes', []))} nodes, {len(d.get('edges', []))} edges, "
        f"canvas {d.get('width', 0):.0f}×{d.get('height', 0):.0f}"
    )
    if verbose:
        for edge in d.get("edges", []):
            console.print(f"  [trace.edge]{edge.get('id')}[/trace.edge]  {edge.get('pathData')}")
        _render_meta(console, result)


def _render_facets(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render facet definitions with value counts, or one node's facet values."""
    d = result.data
    if "node_id" in d:
        _status_line(console, result)
        _field(console, "node_id", d["node_id"])
        for facet_id, value in d.get("values", {}).items():
            _field(console, facet_id, value if value is not None else "-")
        return

    for facet in d.get("facets", []):
        table = Table(
            title=f"{facet.get('label', facet.get('id'))} ({facet.get('id')})",
            show_header=True,
            show_lines=False,
            pad_edge=False,
            expand=False,
        )
        table.add_column("Value")
        table.add_column("Elements", justify="right")
        for value, count in facet.get("values", {}).items():
            table.add_row(Text(value, style=style_for_layer(value)), str(count))
        console.print(table)


def _render_tooltip(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    body = "\n".join(d.get("lines", [])) or "(no details)"
    console.print(Panel(body, title=str(d.get("title", "")), border_style="dim", expand=False))


# ── Session renderers ─────────────────────────────────────────────────


def _render_session_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    items = d.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="trace.id", no_wrap=True)
    table.add_column("Seed")
    table.add_column("Depth", justify="right")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Saved", style="dim")
    for item in items:
        table.add_row(
            str(item.get("name", "")),
            str(item.get("seed_id") or ""),
            str(item.get("expand_depth", "")),
            str(item.get("nodes", "")),
            str(item.get("edges", "")),
            str(item.get("saved_at", "")),
        )
    console.print(table)
    scope = f"{d.get('kind')}/{d.get('model_id')}"
    console.print(f"\n{d.get('count', len(items))} sessions for {scope}")


def _render_session_show(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("name", "seed_id", "expand_depth", "saved_at", "nodes", "edges"):
        if key in d:
            _field(console, key, d[key])
    if verbose and "state" in d:
        console.print(json.dumps(d["state"], indent=2))


# ── Generic renderer ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)) and not (
            isinstance(value, list) and all(isinstance(v, str) for v in value)
        ):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Trace
    "seed": _render_expansion,
    "expand": _render_expansion,
    "collapse": _render_node_change,
    "pin": _render_node_change,
    "hide": _render_node_change,
    "show": _render_show,
    "layout": _render_layout,
    "facets": _render_facets,
    "tooltip": _render_tooltip,
    # Sessions
    "session_list": _render_session_list,
    "session_show": _render_session_show,
    "session_delete": _render_generic,
}
