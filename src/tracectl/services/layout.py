"""Column layout and edge routing for the exploration graph.

:func:`compute_column_layout` maps visible nodes (each tagged with a
column ``level``) and edges to absolute boxes and SVG path strings. It is
pure and deterministic: identical input yields identical output, down to
the path strings, so results can be snapshot-tested and cached.

Routing:

- Edges between adjacent columns (or within one column) are cubic
  curves (``C``) from the right edge of the source to the left edge of
  the target.
- Edges that skip at least one column are orthogonal polylines with
  quadratic (``Q``) rounded corners. They travel through the gutters next
  to their end columns and cross the intermediate columns either in a
  free horizontal corridor shared by all of them or, when none exists,
  in one of a few reserved bus lanes above the nodes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tracectl.domain.labels import (
    DEFAULT_FONT,
    TextMeasurer,
    approx_text_width,
    max_line_width,
    wrap_label,
)
from tracectl.notations.base import LAYER_FACET

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tracectl.domain.dataset import Dataset
    from tracectl.domain.trace import TraceabilityExplorerState
    from tracectl.notations.base import NotationAdapter

logger = logging.getLogger(__name__)

# Geometry (px).
BASE_NODE_WIDTH = 190.0
BASE_NODE_HEIGHT = 34.0
MAX_COLUMN_WIDTH_FACTOR = 1.5
PADDING_X = 20.0  # left + right inside a node
PADDING_Y = 10.0
LINE_HEIGHT = 14.0
MAX_WRAPPED_LINES = 3
COLUMN_GAP = 40.0
MARGIN_X = 24.0
MARGIN_Y = 24.0
BASE_ROW_SPACING = 74.0
ROW_GAP = 44.0
MIN_SIZE_SCALE = 0.85
MAX_SIZE_SCALE = 1.25

# Routing.
LANE_SPACING = 10.0
MAX_LANES = 6
LANE_HEADROOM = 18.0
BUS_TOP = 32.0
BUS_FALLBACK_Y = 12.0
CORRIDOR_PAD = 8.0
CORRIDOR_MIN_Y = 10.0
CORRIDOR_INSET = 2.0
CORNER_RADIUS = 6.0
CURVE_MIN_DX = 26.0
CURVE_MAX_DX = 120.0

MIN_HEIGHT = 160.0
RIGHT_MARGIN = 120.0

DEFAULT_WRAP_CACHE_CAPACITY = 5000


# ---------------------------------------------------------------------------
# Input / output types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnNode:
    """A node to lay out. ``level`` is its column index."""

    id: str
    label: str
    level: int
    order: int | None = None
    size_scale: float | None = None
    hidden: bool = False
    bg: str | None = None
    badge: str | None = None


@dataclass(frozen=True)
class ColumnEdge:
    id: str
    from_id: str
    to_id: str
    hidden: bool = False


@dataclass(frozen=True)
class LayoutNode:
    id: str
    label: str
    lines: tuple[str, ...]
    level: int
    order: int
    x: float
    y: float
    w: float
    h: float
    bg: str | None = None
    badge: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "lines": list(self.lines),
            "level": self.level,
            "order": self.order,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
        }
        if self.bg is not None:
            data["bg"] = self.bg
        if self.badge is not None:
            data["badge"] = self.badge
        return data


@dataclass(frozen=True)
class LayoutEdge:
    id: str
    path_data: str

    @property
    def is_curve(self) -> bool:
        """True for adjacent-column cubic curves, False for routed polylines."""
        return " C " in self.path_data

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "pathData": self.path_data}


@dataclass(frozen=True)
class LayoutResult:
    nodes: tuple[LayoutNode, ...] = ()
    edges: tuple[LayoutEdge, ...] = ()
    width: float = 0.0
    height: float = 0.0

    def node(self, node_id: str) -> LayoutNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def edge(self, edge_id: str) -> LayoutEdge | None:
        return next((e for e in self.edges if e.id == edge_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class WrappedMetrics:
    lines: tuple[str, ...]
    max_line_width: float


@dataclass
class WrapCache:
    """Memo of wrapped labels keyed by ``(node_id, label, max_width, max_lines)``.

    Cleared wholesale once it holds *capacity* entries.
    """

    capacity: int = DEFAULT_WRAP_CACHE_CAPACITY
    _entries: dict[tuple[str, str, float, int], WrappedMetrics] = field(
        default_factory=dict, repr=False
    )

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: tuple[str, str, float, int]) -> WrappedMetrics | None:
        return self._entries.get(key)

    def put(self, key: tuple[str, str, float, int], value: WrappedMetrics) -> None:
        if len(self._entries) >= self.capacity:
            logger.debug("Wrap cache full (%d entries); clearing", len(self._entries))
            self._entries.clear()
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Path encoding
# ---------------------------------------------------------------------------


def fmt(value: float) -> str:
    """Deterministic number formatting for path data.

    Examples:
        >>> fmt(24.0)
        '24'
        >>> fmt(231.456)
        '231.46'
        >>> fmt(-0.0)
        '0'
    """
    rounded = round(value, 2) + 0.0
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.2f}".rstrip("0").rstrip(".")


type _Point = tuple[float, float]
type _Box = tuple[float, float, float, float]  # x, y, w, h


def curve_path(source: _Box, target: _Box) -> str:
    """Cubic curve from the right edge of *source* to the left edge of *target*."""
    sx, sy, sw, sh = source
    tx, ty, _, th = target
    x1, y1 = sx + sw, sy + sh / 2
    x2, y2 = tx, ty + th / 2
    dx = max(CURVE_MIN_DX, min(CURVE_MAX_DX, (x2 - x1) / 2))
    return (
        f"M {fmt(x1)} {fmt(y1)} "
        f"C {fmt(x1 + dx)} {fmt(y1)}, {fmt(x2 - dx)} {fmt(y2)}, {fmt(x2)} {fmt(y2)}"
    )


def _sign(v: float) -> int:
    return 0 if v == 0 else (1 if v > 0 else -1)


def rounded_polyline_path(points: Sequence[_Point], radius: float = CORNER_RADIUS) -> str:
    """Orthogonal polyline with quadratic corners of at most *radius*.

    Corners are shortened so they never overrun half of either adjacent
    segment; straight-through points stay plain line joins.
    """
    if not points:
        return ""
    x0, y0 = points[0]
    parts = [f"M {fmt(x0)} {fmt(y0)}"]
    r_default = max(0.0, radius)

    for i in range(1, len(points)):
        px, py = points[i - 1]
        cx, cy = points[i]
        if i + 1 == len(points):
            parts.append(f" L {fmt(cx)} {fmt(cy)}")
            continue
        nx, ny = points[i + 1]
        v1x, v1y = cx - px, cy - py
        v2x, v2y = nx - cx, ny - cy

        turns = (v1x != 0 and v2y != 0) or (v1y != 0 and v2x != 0)
        if not turns:
            parts.append(f" L {fmt(cx)} {fmt(cy)}")
            continue

        len1 = abs(v1x) + abs(v1y)
        len2 = abs(v2x) + abs(v2y)
        r = min(r_default, len1 / 2, len2 / 2)
        p1x, p1y = cx - _sign(v1x) * r, cy - _sign(v1y) * r
        p2x, p2y = cx + _sign(v2x) * r, cy + _sign(v2y) * r
        parts.append(f" L {fmt(p1x)} {fmt(p1y)}")
        parts.append(f" Q {fmt(cx)} {fmt(cy)} {fmt(p2x)} {fmt(p2y)}")

    return "".join(parts)


# ---------------------------------------------------------------------------
# Interval arithmetic for corridor search
# ---------------------------------------------------------------------------

type Interval = tuple[float, float]


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Union of overlapping or touching intervals, sorted."""
    out: list[Interval] = []
    for a, b in sorted(intervals):
        if out and a <= out[-1][1]:
            out[-1] = (out[-1][0], max(out[-1][1], b))
        else:
            out.append((a, b))
    return out


def complement_intervals(blocked: Sequence[Interval], lo: float, hi: float) -> list[Interval]:
    """Free gaps of ``[lo, hi]`` not covered by the merged *blocked* intervals."""
    if hi <= lo:
        return []
    out: list[Interval] = []
    cursor = lo
    for a, b in blocked:
        a = max(lo, min(hi, a))
        b = max(lo, min(hi, b))
        if b <= lo or a >= hi:
            continue
        if a > cursor:
            out.append((cursor, a))
        cursor = max(cursor, b)
        if cursor >= hi:
            break
    if cursor < hi:
        out.append((cursor, hi))
    return out


def intersect_interval_lists(xs: Sequence[Interval], ys: Sequence[Interval]) -> list[Interval]:
    """Pairwise intersection of two sorted, disjoint interval lists."""
    out: list[Interval] = []
    i = j = 0
    while i < len(xs) and j < len(ys):
        lo = max(xs[i][0], ys[j][0])
        hi = min(xs[i][1], ys[j][1])
        if hi > lo:
            out.append((lo, hi))
        if xs[i][1] < ys[j][1]:
            i += 1
        else:
            j += 1
    return out


def closest_interval(intervals: Sequence[Interval], desired: float) -> Interval | None:
    """Interval whose nearest point is closest to *desired* (first wins ties)."""
    best: Interval | None = None
    best_dist = math.inf
    for a, b in intervals:
        dist = abs(max(a, min(b, desired)) - desired)
        if dist < best_dist:
            best, best_dist = (a, b), dist
    return best


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def clamp_scale(scale: float | None) -> float:
    """Per-node size scale clamped to ``[0.85, 1.25]`` (1 when unset or NaN)."""
    if scale is None or math.isnan(scale):
        return 1.0
    return min(MAX_SIZE_SCALE, max(MIN_SIZE_SCALE, scale))


def _sort_key(label: str) -> str:
    return label.strip().lower()


class _Wrapper:
    """Label wrapping bound to one layout call's font, measurer and cache."""

    def __init__(self, font: str, measure: TextMeasurer, cache: WrapCache | None) -> None:
        self._font = font
        self._measure = measure
        self._cache = cache

    def measure(self, text: str) -> float:
        return self._measure(text, self._font)

    def wrap(self, node_id: str, label: str, max_width: float, max_lines: int) -> WrappedMetrics:
        key = (node_id, label, max_width, max_lines)
        if self._cache is not None:
            hit = self._cache.get(key)
            if hit is not None:
                return hit
        wrapped = wrap_label(
            label, max_width, max_lines=max_lines, font=self._font, measure=self._measure
        )
        value = WrappedMetrics(
            lines=wrapped.lines,
            max_line_width=max_line_width(wrapped, font=self._font, measure=self._measure),
        )
        if self._cache is not None:
            self._cache.put(key, value)
        return value


@dataclass(frozen=True)
class _Band:
    left: float
    right: float


class _Router:
    """Edge routing over laid-out boxes."""

    def __init__(
        self,
        levels: list[int],
        bands: dict[int, _Band],
        boxes: dict[str, _Box],
        level_of: dict[str, int],
        lane_by_edge: dict[str, int],
        lane_count: int,
    ) -> None:
        self.levels = levels
        self.bands = bands
        self.boxes = boxes
        self.level_of = level_of
        self.lane_by_edge = lane_by_edge
        self.lane_count = lane_count

        self.y_min = CORRIDOR_MIN_Y
        self.y_max = max([200.0, *(y + h for _, y, _, h in boxes.values())]) + 24.0
        blocked: dict[int, list[Interval]] = {}
        for node_id, (_, y, _, h) in boxes.items():
            blocked.setdefault(level_of[node_id], []).append(
                (y - CORRIDOR_PAD, y + h + CORRIDOR_PAD)
            )
        self._free: dict[int, list[Interval]] = {
            lvl: complement_intervals(merge_intervals(xs), self.y_min, self.y_max)
            for lvl, xs in blocked.items()
        }

    def intermediate_levels(self, a: int, b: int) -> list[int]:
        lo, hi = min(a, b), max(a, b)
        return [lvl for lvl in self.levels if lo < lvl < hi]

    def _next_right(self, lvl: int) -> int | None:
        return next((x for x in self.levels if x > lvl), None)

    def _next_left(self, lvl: int) -> int | None:
        return next((x for x in reversed(self.levels) if x < lvl), None)

    def corridor(self, a: int, b: int, desired_y: float) -> Interval | None:
        mids = self.intermediate_levels(a, b)
        if not mids:
            return None
        acc: list[Interval] | None = None
        for lvl in mids:
            free = self._free.get(lvl, [(self.y_min, self.y_max)])
            acc = free if acc is None else intersect_interval_lists(acc, free)
            if not acc:
                return None
        return closest_interval(acc or [], desired_y)

    def route(self, edge: ColumnEdge) -> str:
        source = self.boxes[edge.from_id]
        target = self.boxes[edge.to_id]
        from_lvl = self.level_of[edge.from_id]
        to_lvl = self.level_of[edge.to_id]
        if from_lvl == to_lvl or not self.intermediate_levels(from_lvl, to_lvl):
            return curve_path(source, target)

        sx, sy, sw, sh = source
        tx, ty, tw, th = target
        from_mid = sy + sh / 2
        to_mid = ty + th / 2
        desired_y = (from_mid + to_mid) / 2

        lane = self.lane_by_edge.get(edge.id, 0)
        lane_offset = 0.0
        if self.lane_count > 1:
            lane_offset = (lane - (self.lane_count - 1) / 2) * (LANE_SPACING * 0.6)

        # y_max sits below every box, so from compute_column_layout a corridor
        # always exists and the bus lanes are only a fallback.
        corridor = self.corridor(from_lvl, to_lvl, desired_y)
        if corridor is not None:
            a, b = corridor
            cross_y = max(a + CORRIDOR_INSET, min(b - CORRIDOR_INSET, desired_y + lane_offset))
        elif self.lane_count > 0:
            cross_y = BUS_TOP + lane * LANE_SPACING
        else:
            cross_y = BUS_FALLBACK_Y

        if to_lvl > from_lvl:
            near, far = self._next_right(from_lvl), self._next_left(to_lvl)
            from_band, to_band = self.bands[from_lvl], self.bands[to_lvl]
            if near is None or far is None:
                return curve_path(source, target)
            gutter1 = from_band.right + (self.bands[near].left - from_band.right) / 2
            gutter2 = self.bands[far].right + (to_band.left - self.bands[far].right) / 2
            x_start, x_end = sx + sw, tx
        else:
            near, far = self._next_left(from_lvl), self._next_right(to_lvl)
            from_band, to_band = self.bands[from_lvl], self.bands[to_lvl]
            if near is None or far is None:
                return curve_path(source, target)
            # Backward edges leave from the left side and enter from the right.
            gutter1 = self.bands[near].right + (from_band.left - self.bands[near].right) / 2
            gutter2 = to_band.right + (self.bands[far].left - to_band.right) / 2
            x_start, x_end = sx, tx + tw

        return rounded_polyline_path(
            [
                (x_start, from_mid),
                (gutter1, from_mid),
                (gutter1, cross_y),
                (gutter2, cross_y),
                (gutter2, to_mid),
                (x_end, to_mid),
            ]
        )


def _assign_lanes(long_edges: list[tuple[str, str]]) -> tuple[dict[str, int], int]:
    """Round-robin lanes per span group, over edges sorted by id."""
    lane_count = min(MAX_LANES, len(long_edges))
    lanes: dict[str, int] = {}
    if lane_count == 0:
        return lanes, 0
    counters: dict[str, int] = {}
    for edge_id, span in sorted(long_edges):
        idx = counters.get(span, 0)
        lanes[edge_id] = idx % lane_count
        counters[span] = idx + 1
    return lanes, lane_count


def compute_column_layout(
    nodes: Sequence[ColumnNode],
    edges: Sequence[ColumnEdge],
    *,
    wrap_labels: bool = True,
    auto_fit_columns: bool = True,
    rich_layout_max_nodes: int = 120,
    measure_text: TextMeasurer = approx_text_width,
    font: str = DEFAULT_FONT,
    wrap_cache: WrapCache | None = None,
) -> LayoutResult:
    """Lay out *nodes* in columns and route *edges* between them.

    Hidden nodes are skipped, as are hidden edges and edges with a hidden
    or unknown endpoint. Above *rich_layout_max_nodes* visible nodes,
    label wrapping and column auto-fit are switched off.
    """
    visible = [n for n in nodes if not n.hidden]
    rich = len(visible) <= rich_layout_max_nodes
    do_wrap = wrap_labels and rich
    do_fit = auto_fit_columns and rich
    wrapper = _Wrapper(font, measure_text, wrap_cache)

    by_level: dict[int, list[ColumnNode]] = {}
    for n in visible:
        by_level.setdefault(n.level, []).append(n)
    levels = sorted(by_level)
    level_of = {n.id: n.level for n in visible}

    def skips_column(a: int, b: int) -> bool:
        lo, hi = min(a, b), max(a, b)
        return any(lo < lvl < hi for lvl in levels)

    visible_edges = [
        e for e in edges if not e.hidden and e.from_id in level_of and e.to_id in level_of
    ]
    long_edges: list[tuple[str, str]] = []
    for e in visible_edges:
        a, b = level_of[e.from_id], level_of[e.to_id]
        if skips_column(a, b):
            long_edges.append((e.id, f"{min(a, b)}->{max(a, b)}"))
    lane_by_edge, lane_count = _assign_lanes(long_edges)
    lane_headroom = lane_count * LANE_SPACING + LANE_HEADROOM if lane_count else 0.0

    # Column widths: widest wrapped label plus padding, within [base, 1.5 * base].
    base_width: dict[int, float] = {}
    max_scale: dict[int, float] = {}
    for level in levels:
        column = by_level[level]
        max_scale[level] = max([1.0, *(clamp_scale(n.size_scale) for n in column)])
        if not do_fit:
            base_width[level] = BASE_NODE_WIDTH
            continue
        needed = 0.0
        for n in column:
            if do_wrap:
                metrics = wrapper.wrap(
                    n.id, n.label, BASE_NODE_WIDTH - PADDING_X, MAX_WRAPPED_LINES
                )
                needed = max(needed, metrics.max_line_width)
            else:
                needed = max(needed, wrapper.measure(n.label))
        base_width[level] = min(
            BASE_NODE_WIDTH * MAX_COLUMN_WIDTH_FACTOR, max(BASE_NODE_WIDTH, needed + PADDING_X)
        )

    x_of: dict[int, float] = {}
    bands: dict[int, _Band] = {}
    x_cursor = MARGIN_X
    for level in levels:
        col_width = base_width[level] * max_scale[level]
        x_of[level] = x_cursor
        bands[level] = _Band(left=x_cursor, right=x_cursor + col_width)
        x_cursor += col_width + COLUMN_GAP

    top = MARGIN_Y + lane_headroom
    laid_out: list[LayoutNode] = []
    for level in levels:
        column = by_level[level]
        if any(n.order is not None for n in column):
            column = sorted(
                column,
                key=lambda n: (n.order if n.order is not None else 0, _sort_key(n.label), n.id),
            )
        else:
            column = sorted(column, key=lambda n: (_sort_key(n.label), n.id))

        row_spacing = max(BASE_ROW_SPACING, BASE_NODE_HEIGHT * max_scale[level] + ROW_GAP)
        max_lines = MAX_WRAPPED_LINES if do_wrap else 1
        for row, n in enumerate(column):
            scale = clamp_scale(n.size_scale)
            width = base_width[level] * scale
            metrics = wrapper.wrap(n.id, n.label, width - PADDING_X, max_lines)
            height = BASE_NODE_HEIGHT
            if do_wrap:
                height = max(BASE_NODE_HEIGHT, PADDING_Y * 2 + len(metrics.lines) * LINE_HEIGHT)
            laid_out.append(
                LayoutNode(
                    id=n.id,
                    label=n.label,
                    lines=metrics.lines,
                    level=level,
                    order=row,
                    x=x_of[level],
                    y=top + row * row_spacing,
                    w=width,
                    h=height * scale,
                    bg=n.bg,
                    badge=n.badge,
                )
            )

    boxes: dict[str, _Box] = {n.id: (n.x, n.y, n.w, n.h) for n in laid_out}
    router = _Router(levels, bands, boxes, level_of, lane_by_edge, lane_count)
    routed = tuple(LayoutEdge(id=e.id, path_data=router.route(e)) for e in visible_edges)

    height = max([MIN_HEIGHT, *(n.y + n.h + MARGIN_Y for n in laid_out)])
    width = x_cursor + RIGHT_MARGIN
    return LayoutResult(nodes=tuple(laid_out), edges=routed, width=width, height=height)


# ---------------------------------------------------------------------------
# Explorer state -> layout input
# ---------------------------------------------------------------------------

PINNED_BADGE = "pinned"


def build_layout_input(
    state: TraceabilityExplorerState,
    dataset: Dataset,
    adapter: NotationAdapter,
) -> tuple[list[ColumnNode], list[ColumnEdge]]:
    """Column nodes and edges for the explorer state.

    Columns are discovery depths. Labels come from the notation adapter
    (``(missing)`` for ids no longer in the dataset); ``bg`` carries the
    layer facet as a styling hint and pinned nodes get a badge. Hidden
    flags are passed through so layout drops them itself.
    """
    nodes: list[ColumnNode] = []
    for trace_node in sorted(state.nodes_by_id.values(), key=lambda n: n.id):
        element = dataset.element(trace_node.id)
        if element is None:
            label, layer = "(missing)", None
        else:
            label = adapter.get_node_label(element, dataset)
            facet = adapter.get_node_facet_values(element, dataset).get(LAYER_FACET)
            layer = facet if isinstance(facet, str) else None
        nodes.append(
            ColumnNode(
                id=trace_node.id,
                label=label,
                level=trace_node.depth,
                hidden=trace_node.hidden,
                bg=layer,
                badge=PINNED_BADGE if trace_node.pinned else None,
            )
        )
    edges = [
        ColumnEdge(id=e.id, from_id=e.from_id, to_id=e.to_id, hidden=e.hidden)
        for e in sorted(state.edges_by_id.values(), key=lambda e: e.id)
    ]
    return nodes, edges
