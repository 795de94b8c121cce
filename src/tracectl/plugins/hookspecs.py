"""Pluggy hook specifications for tracectl.

One setup-time hook lets plugins contribute notation adapters for
modelling notations tracectl does not ship.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from tracectl.notations.base import NotationAdapter

PROJECT_NAME = "tracectl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class TracectlHookSpec:
    """Hook specifications for the tracectl plugin system."""

    @hookspec
    def register_notation_adapters(self) -> dict[str, NotationAdapter] | None:
        """Return notation kind -> adapter mappings to extend the adapter registry."""
