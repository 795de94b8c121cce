"""tracectl entry point: global options and the command groups."""

from __future__ import annotations

import click

from tracectl import __version__
from tracectl.commands import register_commands
from tracectl.commands._context import AppContext
from tracectl.config.settings import TraceSettings


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="tracectl")
@click.option(
    "-d",
    "--dataset",
    "dataset_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Model file (.json, .yaml) to explore; overrides [dataset] path.",
)
@click.option(
    "--notation",
    default=None,
    help="Read the dataset as this notation (archimate, bpmn, uml, generic).",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use this tracectl.toml instead of searching for one.",
)
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print only ids.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and operation timings.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.pass_context
def cli(
    ctx: click.Context,
    dataset_path: str | None,
    notation: str | None,
    config_path: str | None,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
) -> None:
    """tracectl — explore traceability across architecture models."""
    ctx.obj = AppContext(
        TraceSettings.from_cli(
            config_path=config_path,
            dataset_path=dataset_path,
            notation=notation,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
