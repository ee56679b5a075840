"""Structured logging via structlog.

Configures structlog once at CLI startup. Library modules keep using
`logging.getLogger(__name__)`; a `ProcessorFormatter` on the root handler
bridges those records into structlog's renderer. Everything is written to
stderr so stdout stays reserved for command results (artifact paths, JSON
reports).

Renderer selection:
  json_logs=False: `ConsoleRenderer` with colours for interactive use.
  json_logs=True:  `JSONRenderer`, one object per line, for CI logs.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_structlog(debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog and the stdlib bridge for the process lifetime.

    Calling multiple times is safe; the latest call replaces the root
    handler.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    final_processors: list = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_logs:
        final_processors.append(structlog.processors.format_exc_info)
        final_processors.append(structlog.processors.JSONRenderer())
    else:
        final_processors.append(structlog.dev.ConsoleRenderer())

    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Bridge stdlib logging -> structlog renderer.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=final_processors,
        )
    )
    logging.basicConfig(handlers=[handler], level=level, force=True)
