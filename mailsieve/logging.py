"""structlog wiring for filter processes that sit in a mail server pipe."""

from __future__ import annotations

import logging
import sys

import structlog

from .config import MailFilterConfig

_EVENT_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def _stderr_handler(json: bool) -> logging.Handler:
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def setup_logging(
    *,
    json: bool = True,
    level: str = "INFO",
    config: MailFilterConfig | None = None,
) -> None:
    """Route structlog events through the root logger onto stderr.

    stdout is reserved for the rewritten message, so nothing is logged
    there.  *json* picks JSON lines over the plain console renderer and
    *level* sets the root level by name.  A *config* overrides both with
    its ``log_json`` and ``log_level``.
    """
    if config is not None:
        json, level = config.log_json, config.log_level

    structlog.configure(
        processors=_EVENT_PROCESSORS,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(json))
    root.setLevel(level.upper())
