"""Command group: build and inspect a traceability exploration."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from tracectl.commands._base import TraceGroup
from tracectl.domain.trace import StopConditions
from tracectl.domain.types import TraceDirection
from tracectl.services._helpers import split_csv
from tracectl.services.sessions import DEFAULT_SESSION
from tracectl.services.trace import TraceService

if TYPE_CHECKING:
    from tracectl.commands._context import AppContext

_TRACE_EXAMPLES = [
    "tracectl -d model.json trace seed app-crm",
    "tracectl trace expand app-crm --direction outgoing --depth 2",
    "tracectl trace expand proc-order --rel-types Serving,Realization",
    "tracectl trace collapse app-crm",
    "tracectl trace pin node-db",
    "tracectl trace show",
    "tracectl --json trace layout --no-wrap",
]

_DIRECTIONS = click.Choice([d.value for d in TraceDirection])


def _session_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "-s",
        "--session",
        default=DEFAULT_SESSION,
        show_default=True,
        help="Session to work on.",
    )(func)


def _expansion_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Depth, filter and stop-condition options shared by seed and expand."""
    options = [
        click.option("--depth", type=click.IntRange(min=0), default=None, help="Hops to expand."),
        click.option("--direction", type=_DIRECTIONS, default=None, help="Traversal direction."),
        click.option("--rel-types", default=None, help="Comma-separated relationship types."),
        click.option("--layers", default=None, help="Comma-separated layers to admit."),
        click.option("--element-types", default=None, help="Comma-separated element types."),
        click.option("--stop-type", default=None, help="Do not expand past these types."),
        click.option("--stop-layer", default=None, help="Do not expand past these layers."),
        click.option(
            "--stop-depth", type=click.IntRange(min=0), default=None, help="Depth cut-off."
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _stop_conditions(
    stop_type: str | None, stop_layer: str | None, stop_depth: int | None
) -> StopConditions | None:
    if stop_type is None and stop_layer is None and stop_depth is None:
        return None
    return StopConditions(
        stop_at_type=split_csv(stop_type),
        stop_at_layer=split_csv(stop_layer),
        stop_at_depth=stop_depth,
    )


@click.group(cls=TraceGroup, examples=_TRACE_EXAMPLES)
@click.pass_obj
def trace(app: AppContext) -> None:
    """Seed, expand and inspect a traceability graph."""


@trace.command(
    examples=[
        "tracectl trace seed app-crm",
        "tracectl trace seed app-crm proc-order --depth 2 --session review",
        "tracectl trace seed app-crm --direction incoming --layers Business",
        "tracectl trace seed app-crm --depth 0",
    ]
)
@click.argument("seed_ids", nargs=-1, required=True)
@_session_option
@_expansion_options
@click.pass_obj
def seed(
    app: AppContext,
    seed_ids: tuple[str, ...],
    session: str,
    depth: int | None,
    direction: str | None,
    rel_types: str | None,
    layers: str | None,
    element_types: str | None,
    stop_type: str | None,
    stop_layer: str | None,
    stop_depth: int | None,
) -> None:
    """Start a session from one or more elements and expand them."""
    app.emit(
        TraceService(app.workspace).seed(
            list(seed_ids),
            session=session,
            depth=depth,
            direction=direction,
            relationship_types=split_csv(rel_types),
            layers=split_csv(layers),
            element_types=split_csv(element_types),
            stop=_stop_conditions(stop_type, stop_layer, stop_depth),
        )
    )


@trace.command(
    examples=[
        "tracectl trace expand app-crm",
        "tracectl trace expand app-crm --direction outgoing --depth 3",
        "tracectl trace expand app-crm --stop-layer Technology",
        "tracectl --json trace expand app-crm --rel-types Serving",
    ]
)
@click.argument("node_id")
@_session_option
@_expansion_options
@click.pass_obj
def expand(
    app: AppContext,
    node_id: str,
    session: str,
    depth: int | None,
    direction: str | None,
    rel_types: str | None,
    layers: str | None,
    element_types: str | None,
    stop_type: str | None,
    stop_layer: str | None,
    stop_depth: int | None,
) -> None:
    """Expand a node already in the session.

    Filter options replace the session's filters for this and later
    expansions.
    """
    app.emit(
        TraceService(app.workspace).expand(
            node_id,
            session=session,
            depth=depth,
            direction=direction,
            relationship_types=split_csv(rel_types),
            layers=split_csv(layers),
            element_types=split_csv(element_types),
            stop=_stop_conditions(stop_type, stop_layer, stop_depth),
        )
    )


@trace.command(examples=["tracectl trace collapse app-crm", "tracectl -q trace collapse app-crm"])
@click.argument("node_id")
@_session_option
@click.pass_obj
def collapse(app: AppContext, node_id: str, session: str) -> None:
    """Remove what was discovered only through a node."""
    app.emit(TraceService(app.workspace).collapse(node_id, session=session))


@trace.command(examples=["tracectl trace pin node-db", "tracectl trace pin node-db -s review"])
@click.argument("node_id")
@_session_option
@click.pass_obj
def pin(app: AppContext, node_id: str, session: str) -> None:
    """Toggle a node's pin. Pinned nodes survive collapse."""
    app.emit(TraceService(app.workspace).toggle_pin(node_id, session=session))


@trace.command(examples=["tracectl trace hide node-db", "tracectl trace hide node-db --show"])
@click.argument("node_id")
@click.option("--show", "reveal", is_flag=True, help="Reveal the node instead.")
@_session_option
@click.pass_obj
def hide(app: AppContext, node_id: str, reveal: bool, session: str) -> None:
    """Hide a node (and its edges) without removing it."""
    app.emit(TraceService(app.workspace).set_hidden(node_id, hidden=not reveal, session=session))


@trace.command(examples=["tracectl trace show", "tracectl -v trace show -s review"])
@_session_option
@click.pass_obj
def show(app: AppContext, session: str) -> None:
    """Show the nodes and edges of a session."""
    app.emit(TraceService(app.workspace).show(session=session))


@trace.command(
    examples=[
        "tracectl --json trace layout",
        "tracectl trace layout --no-wrap --no-auto-fit",
        "tracectl --json trace layout --max-rich-nodes 50",
    ]
)
@_session_option
@click.option("--wrap/--no-wrap", "wrap_labels", default=None, help="Wrap long labels.")
@click.option(
    "--auto-fit/--no-auto-fit", "auto_fit_columns", default=None, help="Widen columns to fit."
)
@click.option(
    "--max-rich-nodes",
    type=click.IntRange(min=0),
    default=None,
    help="Fall back to fixed boxes above this many nodes.",
)
@click.pass_obj
def layout(
    app: AppContext,
    session: str,
    wrap_labels: bool | None,
    auto_fit_columns: bool | None,
    max_rich_nodes: int | None,
) -> None:
    """Compute the column layout of the visible graph."""
    app.emit(
        TraceService(app.workspace).layout(
            session=session,
            wrap_labels=wrap_labels,
            auto_fit_columns=auto_fit_columns,
            rich_layout_max_nodes=max_rich_nodes,
        )
    )


@trace.command(examples=["tracectl trace facets", "tracectl trace facets --node app-crm"])
@click.option("--node", "node_id", default=None, help="Show the facet values of one element.")
@click.pass_obj
def facets(app: AppContext, node_id: str | None) -> None:
    """List facets with value counts, as used by --layers and --element-types."""
    app.emit(TraceService(app.workspace).facets(node_id=node_id))


@trace.command(
    examples=[
        "tracectl trace tooltip --node app-crm",
        "tracectl trace tooltip --edge 'r1:app-crm->proc-order'",
    ]
)
@click.option("--node", "node_id", default=None, help="Element id.")
@click.option("--edge", "edge_id", default=None, help="Edge id within the session.")
@_session_option
@click.pass_obj
def tooltip(app: AppContext, node_id: str | None, edge_id: str | None, session: str) -> None:
    """Show the tooltip of an element or of a session edge."""
    if (node_id is None) == (edge_id is None):
        raise click.UsageError("Pass exactly one of --node or --edge.")
    app.emit(TraceService(app.workspace).tooltip(node_id=node_id, edge_id=edge_id, session=session))
