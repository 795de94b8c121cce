"""Click base classes with an ``--examples`` flag.

``--examples`` prints usage examples and exits, keeping ``--help``
short. Examples are given either as one preformatted string or as a
sequence of command lines. :class:`TraceGroup` makes every subcommand a
:class:`TraceCommand`, so ``examples=`` works on ``@group.command``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

type Examples = str | Sequence[str]


def format_examples(examples: Examples) -> str:
    """Normalize *examples* to an indented block, one command per line."""
    if isinstance(examples, str):
        return examples
    return "\n".join(f"  {line}" for line in examples)


def _add_examples_option(cmd: click.Command, examples: Examples) -> None:
    text = format_examples(examples)

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(text)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TraceCommand(click.Command):
    """Command that accepts ``examples=``."""

    def __init__(self, *args: Any, examples: Examples | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class TraceGroup(click.Group):
    """Group that accepts ``examples=`` and builds TraceCommand subcommands."""

    command_class = TraceCommand

    def __init__(self, *args: Any, examples: Examples | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
