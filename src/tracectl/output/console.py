"""Rich Console factory and theme for tracectl output.

Consoles render into a StringIO buffer so renderers keep a plain
``str`` contract. Rich drops colour codes by itself when the output is
not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TRACE_THEME = Theme(
    {
        "trace.ok": "bold green",
        "trace.error": "bold red",
        "trace.warning": "bold yellow",
        "trace.op": "bold cyan",
        "trace.key": "dim",
        "trace.id": "bold blue",
        "trace.label": "bold",
        "trace.edge": "magenta",
        "trace.pinned": "bold yellow",
        "trace.hidden": "dim",
        "trace.layer.business": "yellow",
        "trace.layer.application": "cyan",
        "trace.layer.technology": "green",
        "trace.layer.motivation": "magenta",
        "trace.layer.strategy": "red",
    }
)

_LAYER_STYLES: dict[str, str] = {
    "business": "trace.layer.business",
    "application": "trace.layer.application",
    "technology": "trace.layer.technology",
    "physical": "trace.layer.technology",
    "motivation": "trace.layer.motivation",
    "strategy": "trace.layer.strategy",
    "activity": "trace.layer.business",
    "event": "trace.layer.strategy",
    "gateway": "trace.layer.motivation",
    "structural": "trace.layer.application",
    "behavioural": "trace.layer.business",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Fixed width; keeps table output stable in tests.
    """
    return Console(
        file=StringIO(),
        theme=TRACE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_layer(layer: str | None) -> str:
    """Rich style for a layer or category facet value ("" when unknown)."""
    if not layer:
        return ""
    return _LAYER_STYLES.get(layer.strip().lower(), "")
