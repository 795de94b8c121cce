"""Subcommand groups for tracectl.

:func:`register_commands` imports each group lazily so ``tracectl
--help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach the ``trace`` and ``session`` groups to the root group."""
    from tracectl.commands.session import session
    from tracectl.commands.trace import trace

    cli.add_command(trace)
    cli.add_command(session)
