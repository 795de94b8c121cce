"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The workspace is built on first use, so ``--help``
and ``--version`` never read a dataset or open a database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tracectl.config.logging import configure_logging
from tracectl.output.formatters import OutputSettings, format_result
from tracectl.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from tracectl.config.settings import TraceSettings
    from tracectl.infrastructure.workspace import Workspace
    from tracectl.services.result import ServiceResult


class AppContext:
    """Settings, the lazily built workspace, and result emission."""

    def __init__(self, settings: TraceSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            from tracectl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and exit non-zero on failure.

        * Success: stdout. Warnings go to stderr outside JSON mode, where
          they are already part of the payload.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
