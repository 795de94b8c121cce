"""structlog setup for tracectl.

Every record goes to stderr so that stdout only ever carries command
output (including ``--json`` payloads). Records from stdlib loggers
(``logging.getLogger(__name__)``) pass through the same structlog
processor chain, rendered for the console by default or as JSON lines
with ``--log-json``. Context bound with :func:`bind_log_context` (the
dataset being explored, for instance) is added to every record.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Third-party loggers that stay at WARNING even with -v.
_QUIET_LOGGERS = ("sqlalchemy", "pluggy")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging through structlog to stderr.

    Args:
        verbose: Lower ``tracectl`` loggers to DEBUG (WARNING otherwise).
        log_json: Render JSON lines instead of console output.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("tracectl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_log_context(**values: Any) -> None:
    """Attach *values* to every later log record of this context.

    ``None`` values are skipped.
    """
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )
