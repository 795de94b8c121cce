"""Command group: saved exploration sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tracectl.commands._base import TraceGroup
from tracectl.services.sessions import SessionService

if TYPE_CHECKING:
    from tracectl.commands._context import AppContext


@click.group(
    cls=TraceGroup,
    examples=[
        "tracectl session list",
        "tracectl session show review",
        "tracectl --json session show default",
        "tracectl session delete review",
    ],
)
@click.pass_obj
def session(app: AppContext) -> None:
    """List, inspect and delete saved sessions of the current dataset."""


@session.command("list", examples=["tracectl session list", "tracectl -q session list"])
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List sessions saved for the current dataset."""
    app.emit(SessionService(app.workspace).list_sessions())


@session.command(examples=["tracectl session show review", "tracectl -v session show review"])
@click.argument("name")
@click.pass_obj
def show(app: AppContext, name: str) -> None:
    """Show a saved session (its full state with -v or --json)."""
    app.emit(SessionService(app.workspace).load_session(name))


@session.command(examples=["tracectl session delete review", "tracectl session delete review -y"])
@click.argument("name")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def delete(app: AppContext, name: str, yes: bool) -> None:
    """Delete a saved session."""
    if not yes and not app.settings.json_output and not app.settings.quiet:
        click.confirm(f"Delete session {name!r}?", abort=True)
    app.emit(SessionService(app.workspace).delete_session(name))
